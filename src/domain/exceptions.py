"""Domain and integration exceptions

Adapters raise these; use cases translate them into Result errors.
"""

from typing import Optional


class InvoiceNotFoundError(Exception):
    """No invoice exists with the given invoice number"""

    def __init__(self, invoice_no: str):
        self.invoice_no = invoice_no
        super().__init__(f"Invoice {invoice_no} not found")


class CredentialNotFoundError(Exception):
    """Business has no usable payment gateway credential"""

    def __init__(self, business_id: Optional[str] = None, detail: Optional[str] = None):
        self.business_id = business_id
        message = "Payment credential not configured"
        if business_id:
            message = f"{message} for business {business_id}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class PaymentGatewayError(Exception):
    """Payment gateway call failed (network error, non-2xx, or unusable response)"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class InvalidStateTransitionError(Exception):
    """A conditional status update found the invoice in an unexpected state"""

    def __init__(self, invoice_no: str, detail: str):
        self.invoice_no = invoice_no
        super().__init__(f"Invoice {invoice_no}: {detail}")
