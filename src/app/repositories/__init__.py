from .invoice_repository import InvoiceRepository
from .business_credential_repository import BusinessCredentialRepository

__all__ = [
    "InvoiceRepository",
    "BusinessCredentialRepository",
]
