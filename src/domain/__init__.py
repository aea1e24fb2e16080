from .base import BaseModel
from .invoice import Invoice, InvoiceStatus, InvoiceType
from .business_credential import BusinessPaymentCredential

__all__ = [
    "BaseModel",
    "Invoice",
    "InvoiceStatus",
    "InvoiceType",
    "BusinessPaymentCredential",
]
