"""PDF Generation Service Interface

Defines the contract for invoice and receipt documents.
"""

from abc import ABC, abstractmethod
from src.domain.invoice import Invoice


class PdfService(ABC):
    """Renders invoice documents as PDF bytes"""

    @abstractmethod
    def generate_invoice(self, invoice: Invoice) -> bytes:
        """Invoice PDF with payment link"""
        pass

    @abstractmethod
    def generate_receipt(self, invoice: Invoice) -> bytes:
        """Receipt PDF for a PAID invoice (requires transaction details)"""
        pass
