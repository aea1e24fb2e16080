"""
List Invoices Use Case

Paginated invoice listing for a business, with a pending/paid summary
computed over the whole filtered set.
"""
import math
from decimal import Decimal

from libs.result import Result, Return
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice import InvoiceStatus
from .dtos import InvoiceSummaryDTO, ListInvoicesQueryDTO, PaginatedInvoiceListDTO
from .get_invoice import to_invoice_dto


class ListInvoices:
    """
    Use case: List invoices

    Invoices are ordered by issued_date DESC (most recent first).
    """

    def __init__(self, invoice_repo: InvoiceRepository):
        self.invoice_repo = invoice_repo

    async def execute(self, query: ListInvoicesQueryDTO) -> Result[PaginatedInvoiceListDTO]:
        """
        List invoices for a business.

        Args:
            query: Filters (type, status, issued-date range) and 1-based pagination

        Returns:
            Result[PaginatedInvoiceListDTO]: One page plus summary
        """
        filters = dict(
            business_id=query.business_id,
            invoice_type=query.invoice_type,
            status=query.status,
            date_from=query.date_from,
            date_to=query.date_to,
        )

        invoices, total = await self.invoice_repo.list_by_business(
            **filters,
            limit=query.page_size,
            offset=(query.page_index - 1) * query.page_size,
        )
        by_status = await self.invoice_repo.summarize_by_status(**filters)

        pending_count, pending_amount = by_status.get(InvoiceStatus.PENDING, (0, Decimal("0.00")))
        paid_count, total_paid = by_status.get(InvoiceStatus.PAID, (0, Decimal("0.00")))

        return Return.ok(
            PaginatedInvoiceListDTO(
                items=[to_invoice_dto(invoice) for invoice in invoices],
                total_page_count=math.ceil(total / query.page_size) if total else 0,
                total_item_count=total,
                page_number=query.page_index,
                page_size=query.page_size,
                invoice_summary=InvoiceSummaryDTO(
                    pending_amount=pending_amount,
                    total_paid=total_paid,
                    pending_count=pending_count,
                    paid_count=paid_count,
                ),
            )
        )
