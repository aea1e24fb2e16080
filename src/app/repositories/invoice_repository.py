"""Invoice Repository Interface

Defines the contract for invoice persistence operations.
Every write is independently idempotent: it checks persisted state before acting.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from src.domain.invoice import Invoice, InvoiceStatus, InvoiceType


class InvoiceRepository(ABC):
    """
    Repository interface for Invoice persistence

    Single source of truth for invoice state; callers re-read rather than cache.
    """

    @abstractmethod
    async def find_by_invoice_no(self, invoice_no: str) -> Optional[Invoice]:
        """
        Retrieve invoice by invoice number

        Returns:
            Invoice if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_invoice_no(self, invoice_no: str) -> Invoice:
        """
        Retrieve invoice by invoice number

        Raises:
            InvoiceNotFoundError: if no invoice has this number
        """
        pass

    @abstractmethod
    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new DRAFT invoice

        On a unique-constraint conflict the existing record is returned instead.

        Args:
            invoice: Invoice entity to persist

        Returns:
            The persisted Invoice (new or pre-existing)
        """
        pass

    @abstractmethod
    async def set_bill_code(self, invoice_no: str, bill_code: str, bill_url: str) -> Invoice:
        """
        Persist the gateway bill code and URL if none is stored yet

        Returns:
            Invoice as persisted after the update
        """
        pass

    @abstractmethod
    async def set_pending(self, invoice_no: str) -> Invoice:
        """
        Move a DRAFT invoice with a bill code to PENDING; no-op otherwise

        Returns:
            Invoice as persisted after the update
        """
        pass

    @abstractmethod
    async def set_terminal(
        self,
        invoice_no: str,
        status: InvoiceStatus,
        transaction_id: str,
        transaction_time: datetime,
        bill_code: str,
    ) -> Invoice:
        """
        Move a non-terminal invoice to PAID or CANCELLED with settlement data

        The settled bill is stored when the invoice has none yet; an invoice
        already bound to a different bill is left untouched.

        Returns:
            Invoice as persisted after the update
        """
        pass

    @abstractmethod
    async def list_by_business(
        self,
        business_id: str,
        invoice_type: Optional[InvoiceType] = None,
        status: Optional[InvoiceStatus] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Invoice], int]:
        """
        Retrieve one page of a business's invoices, newest first

        Returns:
            (invoices, total matching count)
        """
        pass

    @abstractmethod
    async def summarize_by_status(
        self,
        business_id: str,
        invoice_type: Optional[InvoiceType] = None,
        status: Optional[InvoiceStatus] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Dict[InvoiceStatus, Tuple[int, Decimal]]:
        """
        Count and payable-amount sum per status over the same filters as list_by_business
        """
        pass
