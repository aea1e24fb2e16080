"""Error codes for invoicing use cases and their retry classification"""

from enum import Enum
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from libs.result import Error
from src.domain.exceptions import (
    CredentialNotFoundError,
    InvalidStateTransitionError,
    InvoiceNotFoundError,
    PaymentGatewayError,
)


class ErrorKind(str, Enum):
    """How a failure should be routed by the queue consumers"""
    TRANSIENT = "transient"
    PERMANENT = "permanent"
    NOT_FOUND = "not_found"


PAYMENT_GATEWAY_ERROR = "PAYMENT_GATEWAY_ERROR"
PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
ISSUE_INVOICE_FAILED = "ISSUE_INVOICE_FAILED"
CREDENTIAL_NOT_FOUND = "CREDENTIAL_NOT_FOUND"
INVALID_CALLBACK = "INVALID_CALLBACK"
INVALID_INVOICE = "INVALID_INVOICE"
INVOICE_NOT_FOUND = "INVOICE_NOT_FOUND"
INVALID_STATE_TRANSITION = "INVALID_STATE_TRANSITION"
QUEUE_PUBLISH_FAILED = "QUEUE_PUBLISH_FAILED"
RECONCILIATION_FAILED = "RECONCILIATION_FAILED"

ERROR_KINDS = {
    PAYMENT_GATEWAY_ERROR: ErrorKind.TRANSIENT,
    PERSISTENCE_ERROR: ErrorKind.TRANSIENT,
    ISSUE_INVOICE_FAILED: ErrorKind.TRANSIENT,
    INVALID_STATE_TRANSITION: ErrorKind.TRANSIENT,
    QUEUE_PUBLISH_FAILED: ErrorKind.TRANSIENT,
    RECONCILIATION_FAILED: ErrorKind.TRANSIENT,
    CREDENTIAL_NOT_FOUND: ErrorKind.PERMANENT,
    INVALID_CALLBACK: ErrorKind.PERMANENT,
    INVALID_INVOICE: ErrorKind.PERMANENT,
    INVOICE_NOT_FOUND: ErrorKind.NOT_FOUND,
}


def classify(error: Optional[Error]) -> ErrorKind:
    """Unknown codes are retried"""
    if error is None:
        return ErrorKind.TRANSIENT
    return ERROR_KINDS.get(error.code, ErrorKind.TRANSIENT)


def is_retryable(error: Optional[Error]) -> bool:
    return classify(error) == ErrorKind.TRANSIENT


def error_from_exception(exc: Exception, message: str) -> Error:
    """Map an exception raised inside a workflow step to an Error"""
    if isinstance(exc, PaymentGatewayError):
        code = PAYMENT_GATEWAY_ERROR
    elif isinstance(exc, CredentialNotFoundError):
        code = CREDENTIAL_NOT_FOUND
    elif isinstance(exc, InvoiceNotFoundError):
        code = INVOICE_NOT_FOUND
    elif isinstance(exc, InvalidStateTransitionError):
        code = INVALID_STATE_TRANSITION
    elif isinstance(exc, SQLAlchemyError):
        code = PERSISTENCE_ERROR
    else:
        code = ISSUE_INVOICE_FAILED
    return Error(code=code, message=message, reason=str(exc))

