"""Queue consumer workers for the invoice service"""
from .invoice_batch import InvoiceBatchWorker
from .invoice_retry import InvoiceRetryWorker
from .payment_callback import PaymentCallbackWorker
from .dead_letter import DeadLetterReplayWorker

__all__ = [
    "InvoiceBatchWorker",
    "InvoiceRetryWorker",
    "PaymentCallbackWorker",
    "DeadLetterReplayWorker",
]
