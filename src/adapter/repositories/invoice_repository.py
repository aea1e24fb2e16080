"""SQLAlchemy Invoice Repository Implementation

Implements invoice persistence using SQLAlchemy async session.
Step writes are conditional UPDATEs so that concurrent or redelivered
workflow runs cannot overwrite each other's progress.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.base import utc_now
from src.domain.exceptions import InvalidStateTransitionError, InvoiceNotFoundError
from src.domain.invoice import Invoice, InvoiceStatus, InvoiceType, TERMINAL_STATUSES


class SqlAlchemyInvoiceRepository(InvoiceRepository):
    """
    SQLAlchemy implementation of InvoiceRepository

    Features:
    - Create resolves unique invoice_no conflicts by returning the existing row
    - set_bill_code / set_pending / set_terminal only touch rows in the expected state
    - Reads always bypass the identity map so callers see committed state
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_invoice_no(self, invoice_no: str) -> Optional[Invoice]:
        statement = (
            select(Invoice)
            .where(Invoice.invoice_no == invoice_no)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_by_invoice_no(self, invoice_no: str) -> Invoice:
        invoice = await self.find_by_invoice_no(invoice_no)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_no)
        return invoice

    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new invoice

        Args:
            invoice: Invoice entity to persist

        Returns:
            Created Invoice with generated ID, or the row that won a concurrent insert
        """
        invoice_no = invoice.invoice_no
        self.session.add(invoice)
        try:
            await self.session.flush()
        except IntegrityError:
            # Another consumer inserted the same invoice_no first
            await self.session.rollback()
            return await self.get_by_invoice_no(invoice_no)
        await self.session.refresh(invoice)
        return invoice

    async def set_bill_code(self, invoice_no: str, bill_code: str, bill_url: str) -> Invoice:
        statement = (
            update(Invoice)
            .where(Invoice.invoice_no == invoice_no)
            .where(Invoice.bill_code.is_(None))
            .values(bill_code=bill_code, bill_url=bill_url, updated_at=utc_now())
        )
        await self.session.execute(statement)
        return await self.get_by_invoice_no(invoice_no)

    async def set_pending(self, invoice_no: str) -> Invoice:
        statement = (
            update(Invoice)
            .where(Invoice.invoice_no == invoice_no)
            .where(Invoice.status == InvoiceStatus.DRAFT)
            .where(Invoice.bill_code.is_not(None))
            .values(status=InvoiceStatus.PENDING, updated_at=utc_now())
        )
        result = await self.session.execute(statement)
        invoice = await self.get_by_invoice_no(invoice_no)

        if result.rowcount == 0 and invoice.status == InvoiceStatus.DRAFT:
            raise InvalidStateTransitionError(invoice_no, "cannot activate a DRAFT without a bill code")
        return invoice

    async def set_terminal(
        self,
        invoice_no: str,
        status: InvoiceStatus,
        transaction_id: str,
        transaction_time: datetime,
        bill_code: str,
    ) -> Invoice:
        if status not in TERMINAL_STATUSES:
            raise InvalidStateTransitionError(invoice_no, f"{status.value} is not a terminal status")

        statement = (
            update(Invoice)
            .where(Invoice.invoice_no == invoice_no)
            .where(Invoice.status.not_in(list(TERMINAL_STATUSES)))
            .where(or_(Invoice.bill_code.is_(None), Invoice.bill_code == bill_code))
            .values(
                status=status,
                bill_code=func.coalesce(Invoice.bill_code, bill_code),
                transaction_id=transaction_id,
                transaction_time=transaction_time,
                updated_at=utc_now(),
            )
        )
        await self.session.execute(statement)
        return await self.get_by_invoice_no(invoice_no)

    def _filtered(
        self,
        statement,
        business_id: str,
        invoice_type: Optional[InvoiceType],
        status: Optional[InvoiceStatus],
        date_from: Optional[datetime],
        date_to: Optional[datetime],
    ):
        statement = statement.where(Invoice.business_id == business_id)

        if invoice_type:
            statement = statement.where(Invoice.invoice_type == invoice_type)
        if status:
            statement = statement.where(Invoice.status == status)
        if date_from:
            statement = statement.where(Invoice.issued_date >= date_from)
        if date_to:
            statement = statement.where(Invoice.issued_date <= date_to)

        return statement

    async def list_by_business(
        self,
        business_id: str,
        invoice_type: Optional[InvoiceType] = None,
        status: Optional[InvoiceStatus] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Invoice], int]:
        """
        Retrieve invoices for a business

        Args:
            business_id: Business identifier
            invoice_type: Optional filter by document type
            status: Optional filter by status
            date_from: Optional lower bound on issued_date (inclusive)
            date_to: Optional upper bound on issued_date (inclusive)
            limit: Maximum number of invoices to return
            offset: Offset for pagination

        Returns:
            Tuple of (invoices, total count)
        """
        filters = (business_id, invoice_type, status, date_from, date_to)

        count_statement = self._filtered(select(func.count()).select_from(Invoice), *filters)
        total = (await self.session.execute(count_statement)).scalar_one()

        statement = self._filtered(select(Invoice), *filters)
        statement = statement.order_by(Invoice.issued_date.desc(), Invoice.id.desc())
        statement = statement.limit(limit).offset(offset)

        result = await self.session.execute(statement)
        return list(result.scalars().all()), total

    async def summarize_by_status(
        self,
        business_id: str,
        invoice_type: Optional[InvoiceType] = None,
        status: Optional[InvoiceStatus] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Dict[InvoiceStatus, Tuple[int, Decimal]]:
        statement = self._filtered(
            select(Invoice.status, func.count(), func.sum(Invoice.total_payable_amount)),
            business_id,
            invoice_type,
            status,
            date_from,
            date_to,
        ).group_by(Invoice.status)

        result = await self.session.execute(statement)
        summary = {}
        for row_status, count, amount in result.all():
            total = Decimal(str(amount)) if amount is not None else Decimal("0")
            summary[InvoiceStatus(row_status)] = (count, total.quantize(Decimal("0.01")))
        return summary
