"""Invoice Domain Entity

Tracks an issued invoice, its payment bill and its settlement.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import BigInteger, DateTime, Integer, JSON, Numeric, String
from src.domain.base import BaseModel, utc_now


class InvoiceStatus(str, Enum):
    """Invoice status types"""
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED})


class InvoiceType(str, Enum):
    """Invoice document types"""
    INVOICE = "INVOICE"
    CREDIT_NOTE = "CREDIT_NOTE"
    DEBIT_NOTE = "DEBIT_NOTE"


class Invoice(BaseModel, table=True):
    """
    Invoice - A billed amount owed by a recipient to a business

    Domain Rules:
    - invoice_no is unique and never regenerated for the same logical request
    - business_id is immutable after creation
    - Status transitions: DRAFT -> PENDING -> PAID | CANCELLED
    - bill_code set => the gateway bill was created (never created twice)
    - status PENDING or later => bill_code is set
    - status PAID/CANCELLED => transaction_id and transaction_time are set
    - Totals are a frozen snapshot computed once at calculation time
    """

    __tablename__ = "invoices"
    __table_args__ = (
        Index('ix_invoices_business_id', 'business_id'),
        Index('ix_invoices_status', 'status'),
        Index('ix_invoices_invoice_no', 'invoice_no', unique=True),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True),
        description="Unique invoice identifier (auto-increment)"
    )

    business_id: str = Field(
        sa_column=Column(String(64), nullable=False),
        description="Owning business ID"
    )

    invoice_no: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True),
        description="Generated invoice number (e.g., INV-2512191830-AMIRUL-8D2F)"
    )

    invoice_type: InvoiceType = Field(
        default=InvoiceType.INVOICE,
        description="Document type (INVOICE, CREDIT_NOTE, DEBIT_NOTE)"
    )

    original_invoice_ref: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True),
        description="Referenced invoice for credit/debit notes"
    )

    currency: str = Field(
        default="MYR",
        sa_column=Column(String(3), nullable=False),
        description="Currency code (ISO 4217)"
    )

    status: InvoiceStatus = Field(
        default=InvoiceStatus.DRAFT,
        description="Invoice status (DRAFT, PENDING, PAID, CANCELLED)"
    )

    issued_date: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="Timestamp when the invoice was calculated"
    )

    due_date: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="Payment due date"
    )

    recipient: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
        description="Recipient (buyer) snapshot"
    )

    supplier: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
        description="Supplier (seller) snapshot"
    )

    items: List[Dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
        description="Calculated line items snapshot"
    )

    total_net_amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Sum of line net amounts (after discount, before tax)"
    )

    total_tax_amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Sum of line tax amounts"
    )

    total_discount_amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Sum of line discount amounts"
    )

    total_payable_amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Net plus tax"
    )

    invoice_version: str = Field(
        default="1.0",
        sa_column=Column(String(10), nullable=False),
        description="E-invoice document version"
    )

    bill_code: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="Payment gateway bill code"
    )

    bill_url: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Payment gateway bill URL"
    )

    transaction_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="Gateway transaction reference, set on reconciliation"
    )

    transaction_time: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
        description="Normalized gateway transaction time, set on reconciliation"
    )

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="Invoice creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="Last update timestamp"
    )

    def detached_copy(self) -> "Invoice":
        """Plain copy of the loaded values, usable after the session expires or closes"""
        return Invoice(**self.model_dump())

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "business_id": "biz_7f3a",
                "invoice_no": "INV-2512191830-AMIRUL-8D2F",
                "invoice_type": "INVOICE",
                "currency": "MYR",
                "status": "PENDING",
                "total_net_amount": "30.02",
                "total_tax_amount": "2.40",
                "total_discount_amount": "0.00",
                "total_payable_amount": "32.42",
                "bill_code": "x7k2mq9a",
                "bill_url": "https://toyyibpay.com/x7k2mq9a",
                "transaction_id": None,
                "transaction_time": None,
            }
        }
