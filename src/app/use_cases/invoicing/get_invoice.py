"""Get Invoice Use Case

Direct lookup by invoice number. Unlike reconciliation, a missing invoice
is an error here.
"""

from libs.result import Result, Return, Error
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice import Invoice
from .dtos import InvoiceDTO
from .errors import INVOICE_NOT_FOUND


def to_invoice_dto(invoice: Invoice) -> InvoiceDTO:
    recipient = invoice.recipient or {}
    return InvoiceDTO(
        invoice_no=invoice.invoice_no,
        business_id=invoice.business_id,
        invoice_type=invoice.invoice_type,
        currency=invoice.currency,
        status=invoice.status,
        issued_date=invoice.issued_date,
        due_date=invoice.due_date,
        recipient_name=recipient.get("name", ""),
        total_net_amount=invoice.total_net_amount,
        total_tax_amount=invoice.total_tax_amount,
        total_discount_amount=invoice.total_discount_amount,
        total_payable_amount=invoice.total_payable_amount,
        bill_code=invoice.bill_code,
        bill_url=invoice.bill_url,
        transaction_id=invoice.transaction_id,
        transaction_time=invoice.transaction_time,
    )


class GetInvoice:
    """
    Get Invoice Use Case

    Read-only lookup of a single invoice by its number.
    """

    def __init__(self, invoice_repo: InvoiceRepository):
        self.invoice_repo = invoice_repo

    async def execute(self, invoice_no: str) -> Result[InvoiceDTO]:
        """
        Args:
            invoice_no: Invoice number

        Returns:
            Result[InvoiceDTO]: invoice detail

        Errors:
            INVOICE_NOT_FOUND: No invoice with this number
        """
        invoice = await self.invoice_repo.find_by_invoice_no(invoice_no)

        if not invoice:
            return Return.err(
                Error(
                    code=INVOICE_NOT_FOUND,
                    message=f"Invoice {invoice_no} not found",
                )
            )

        return Return.ok(to_invoice_dto(invoice))
