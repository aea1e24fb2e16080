"""Invoicing domain use cases"""
from .calculate_invoice import calculate_invoice, generate_invoice_number, round_money
from .issue_invoice import IssueInvoice
from .process_invoice_batch import ProcessInvoiceBatch
from .retry_invoice_issuance import RetryInvoiceIssuance
from .reconcile_payment import ReconcilePayment
from .submit_invoice_batch import SubmitInvoiceBatch
from .submit_payment_callback import SubmitPaymentCallback
from .list_invoices import ListInvoices
from .get_invoice import GetInvoice
from .replay_dead_letter import ReplayDeadLetter
from .background import fire_and_forget, wait_for_background_tasks
from .dtos import (
    RecipientDTO,
    SupplierDTO,
    InvoiceItemDTO,
    CreateInvoiceCommandDTO,
    CalculatedInvoiceItemDTO,
    CalculatedInvoiceDTO,
    PaymentCredentialDTO,
    BillDTO,
    GatewayTransactionDTO,
    IssuedInvoiceDTO,
    InvoiceBatchMessageDTO,
    RetryMessageDTO,
    DeadLetterMessageDTO,
    PaymentCallbackDTO,
    BatchResultDTO,
    RetryOutcome,
    RetryResultDTO,
    ReconciliationOutcome,
    ReconciliationResultDTO,
    QueuedResponseDTO,
    InvoiceDTO,
    ListInvoicesQueryDTO,
    InvoiceSummaryDTO,
    PaginatedInvoiceListDTO,
)

__all__ = [
    "calculate_invoice",
    "generate_invoice_number",
    "round_money",
    "IssueInvoice",
    "ProcessInvoiceBatch",
    "RetryInvoiceIssuance",
    "ReconcilePayment",
    "SubmitInvoiceBatch",
    "SubmitPaymentCallback",
    "ListInvoices",
    "GetInvoice",
    "ReplayDeadLetter",
    "fire_and_forget",
    "wait_for_background_tasks",
    "RecipientDTO",
    "SupplierDTO",
    "InvoiceItemDTO",
    "CreateInvoiceCommandDTO",
    "CalculatedInvoiceItemDTO",
    "CalculatedInvoiceDTO",
    "PaymentCredentialDTO",
    "BillDTO",
    "GatewayTransactionDTO",
    "IssuedInvoiceDTO",
    "InvoiceBatchMessageDTO",
    "RetryMessageDTO",
    "DeadLetterMessageDTO",
    "PaymentCallbackDTO",
    "BatchResultDTO",
    "RetryOutcome",
    "RetryResultDTO",
    "ReconciliationOutcome",
    "ReconciliationResultDTO",
    "QueuedResponseDTO",
    "InvoiceDTO",
    "ListInvoicesQueryDTO",
    "InvoiceSummaryDTO",
    "PaginatedInvoiceListDTO",
]
