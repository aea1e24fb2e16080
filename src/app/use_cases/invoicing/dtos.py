"""Data Transfer Objects for Invoicing Use Cases

Pydantic models for command inputs, queue messages and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from src.domain.invoice import InvoiceStatus, InvoiceType


class RecipientDTO(BaseModel):
    """Buyer details as captured on the invoice"""

    name: str = Field(..., min_length=1, description="Recipient name")
    email: Optional[str] = Field(default=None, description="Recipient email")
    phone: str = Field(default="", description="Recipient phone number")
    tin: Optional[str] = Field(default=None, description="Tax identification number")
    id_type: Optional[str] = Field(default=None, description="Identification type (BRN, NRIC, ...)")
    registration_number: Optional[str] = Field(default=None, description="Registration number")
    address_line1: Optional[str] = Field(default=None, description="Address line")
    postcode: Optional[str] = Field(default=None, description="Postcode")
    city: Optional[str] = Field(default=None, description="City")
    state: Optional[str] = Field(default=None, description="State")
    country_code: Optional[str] = Field(default=None, description="Country code")


class SupplierDTO(BaseModel):
    """Seller (business) details as captured on the invoice"""

    name: str = Field(..., min_length=1, description="Supplier name")
    email: Optional[str] = Field(default=None, description="Supplier email")
    tin: Optional[str] = Field(default=None, description="Tax identification number")
    registration_number: Optional[str] = Field(default=None, description="Registration number")
    msic_code: Optional[str] = Field(default=None, description="Industry classification code")
    business_activity_description: Optional[str] = Field(default=None, description="Business activity")
    id_type: Optional[str] = Field(default=None, description="Identification type")
    sst_registration_number: Optional[str] = Field(default=None, description="SST registration number")
    address_line1: Optional[str] = Field(default=None, description="Address line")
    city: Optional[str] = Field(default=None, description="City")
    postcode: Optional[str] = Field(default=None, description="Postcode")
    state: Optional[str] = Field(default=None, description="State")
    country: Optional[str] = Field(default=None, description="Country")


class InvoiceItemDTO(BaseModel):
    """Raw line item as submitted"""

    item_name: str = Field(..., min_length=1, description="Item description")
    quantity: Decimal = Field(..., gt=0, description="Quantity")
    unit_price: Decimal = Field(..., ge=0, description="Price per unit")
    discount_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100, description="Discount percentage")
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100, description="Tax percentage")
    classification_code: Optional[str] = Field(default=None, description="Item classification code")
    tax_type: Optional[str] = Field(default=None, description="Tax type code")


class CreateInvoiceCommandDTO(BaseModel):
    """
    Command DTO for one raw invoice request

    Input to the calculator; carried inside batch submission messages.
    """

    invoice_type: InvoiceType = Field(default=InvoiceType.INVOICE, description="Document type")
    original_invoice_ref: Optional[str] = Field(default=None, description="Referenced invoice for notes")
    currency: str = Field(default="MYR", min_length=3, max_length=3, description="Currency code")
    supplier: SupplierDTO
    recipient: RecipientDTO
    due_date: datetime = Field(..., description="Payment due date")
    items: List[InvoiceItemDTO] = Field(..., min_length=1, description="Line items")
    invoice_version: str = Field(default="1.0", description="Document version")

    class Config:
        json_schema_extra = {
            "example": {
                "invoice_type": "INVOICE",
                "currency": "MYR",
                "supplier": {"name": "Kedai Runcit Sdn Bhd", "tin": "C1234567890"},
                "recipient": {
                    "name": "Amirul Irfan",
                    "email": "amirul@example.com",
                    "phone": "0123456789",
                },
                "due_date": "2025-01-31T00:00:00Z",
                "items": [
                    {"item_name": "4 day class fee", "quantity": "3", "unit_price": "10.005", "tax_rate": "8"}
                ],
                "invoice_version": "1.0",
            }
        }


class CalculatedInvoiceItemDTO(InvoiceItemDTO):
    """Line item with rounded per-line amounts"""

    subtotal: Decimal = Field(..., description="round(quantity * unit_price)")
    discount_amount: Decimal = Field(..., description="round(subtotal * discount_rate / 100)")
    net_amount: Decimal = Field(..., description="subtotal - discount_amount")
    tax_amount: Decimal = Field(..., description="round(net_amount * tax_rate / 100)")
    line_total: Decimal = Field(..., description="net_amount + tax_amount")


class CalculatedInvoiceDTO(CreateInvoiceCommandDTO):
    """
    Frozen calculator output

    invoice_no ties every retry of one logical invoice together.
    """

    invoice_no: str = Field(..., description="Generated invoice number")
    issued_date: datetime = Field(..., description="Calculation timestamp")
    items: List[CalculatedInvoiceItemDTO] = Field(..., min_length=1)
    total_net_amount: Decimal
    total_tax_amount: Decimal
    total_discount_amount: Decimal
    total_payable_amount: Decimal

    class Config:
        frozen = True


class PaymentCredentialDTO(BaseModel):
    """Gateway credential for one business"""

    secret_key: str
    category_code: str


class BillDTO(BaseModel):
    """Result of a gateway bill creation"""

    bill_code: str
    bill_url: str


class GatewayTransactionDTO(BaseModel):
    """One authoritative transaction record returned by the gateway"""

    external_reference_no: Optional[str] = None
    payment_status: Optional[str] = None
    payment_amount: Optional[str] = None
    payment_invoice_no: Optional[str] = None
    payment_date: Optional[str] = None
    bill_status: Optional[str] = None


class IssuedInvoiceDTO(BaseModel):
    """Outcome of one issuance workflow run"""

    invoice_no: str
    business_id: str
    status: InvoiceStatus
    bill_code: Optional[str] = None
    bill_url: Optional[str] = None
    created: bool = Field(default=False, description="Record was created by this run")
    bill_created: bool = Field(default=False, description="Gateway bill was created by this run")
    activated: bool = Field(default=False, description="DRAFT -> PENDING happened in this run")


class InvoiceBatchMessageDTO(BaseModel):
    """Message on the invoice-batch-submit channel"""

    business_id: str = Field(..., min_length=1)
    invoices: List[CreateInvoiceCommandDTO] = Field(..., min_length=1)


class RetryMessageDTO(BaseModel):
    """Message on the invoice-retry channel"""

    business_id: str
    calculated_invoice: CalculatedInvoiceDTO
    attempt_no: int = Field(..., ge=1)


class DeadLetterMessageDTO(BaseModel):
    """Message on the invoice-dead-letter channel"""

    business_id: str
    calculated_invoice: CalculatedInvoiceDTO
    attempt_no: int
    error: str
    error_code: str
    failed_at: datetime


class PaymentCallbackDTO(BaseModel):
    """
    Webhook payload from the payment provider

    Every field is optional: the payload is a hint and is validated by reconciliation.
    """

    refno: Optional[str] = None
    status: Optional[str] = None
    reason: Optional[str] = None
    billcode: Optional[str] = None
    order_id: Optional[str] = None
    amount: Optional[str] = None
    status_id: Optional[str] = None
    msg: Optional[str] = None
    transaction_id: Optional[str] = None
    fpx_transaction_id: Optional[str] = None
    hash: Optional[str] = None
    transaction_time: Optional[str] = None


class BatchResultDTO(BaseModel):
    """Summary of one processed batch"""

    business_id: str
    total: int
    succeeded: int
    queued_for_retry: int
    dead_lettered: int
    rejected: int = 0
    unrouted_invoice_nos: List[str] = Field(
        default_factory=list, description="Failed items that reached neither the retry nor the dead-letter channel"
    )
    invoice_nos: List[str] = Field(default_factory=list)


class RetryOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    REQUEUED = "requeued"
    DEAD_LETTERED = "dead_lettered"


class RetryResultDTO(BaseModel):
    """Outcome of one retry attempt"""

    invoice_no: str
    attempt_no: int
    outcome: RetryOutcome
    error_code: Optional[str] = None


class ReconciliationOutcome(str, Enum):
    RECONCILED = "reconciled"
    ALREADY_SETTLED = "already_settled"
    INVOICE_NOT_FOUND = "invoice_not_found"
    NO_MATCHING_TRANSACTION = "no_matching_transaction"
    BILL_CODE_MISMATCH = "bill_code_mismatch"


class ReconciliationResultDTO(BaseModel):
    """Outcome of one payment callback reconciliation"""

    invoice_no: Optional[str]
    outcome: ReconciliationOutcome
    status: Optional[InvoiceStatus] = None
    transaction_id: Optional[str] = None


class QueuedResponseDTO(BaseModel):
    """Acknowledgement returned when work is queued"""

    message: str
    timestamp: datetime


class InvoiceDTO(BaseModel):
    """Invoice detail"""

    invoice_no: str
    business_id: str
    invoice_type: InvoiceType
    currency: str
    status: InvoiceStatus
    issued_date: datetime
    due_date: datetime
    recipient_name: str
    total_net_amount: Decimal
    total_tax_amount: Decimal
    total_discount_amount: Decimal
    total_payable_amount: Decimal
    bill_code: Optional[str] = None
    bill_url: Optional[str] = None
    transaction_id: Optional[str] = None
    transaction_time: Optional[datetime] = None


class ListInvoicesQueryDTO(BaseModel):
    """Filters and pagination for invoice listing"""

    business_id: str
    page_index: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)
    invoice_type: Optional[InvoiceType] = None
    status: Optional[InvoiceStatus] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


class InvoiceSummaryDTO(BaseModel):
    """Totals across the filtered invoice set"""

    pending_amount: Decimal = Decimal("0.00")
    total_paid: Decimal = Decimal("0.00")
    pending_count: int = 0
    paid_count: int = 0


class PaginatedInvoiceListDTO(BaseModel):
    """One page of invoices plus summary"""

    items: List[InvoiceDTO]
    total_page_count: int
    total_item_count: int
    page_number: int
    page_size: int
    invoice_summary: InvoiceSummaryDTO
