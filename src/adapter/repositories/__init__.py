from .invoice_repository import SqlAlchemyInvoiceRepository
from .business_credential_repository import SqlAlchemyBusinessCredentialRepository

__all__ = [
    "SqlAlchemyInvoiceRepository",
    "SqlAlchemyBusinessCredentialRepository",
]
