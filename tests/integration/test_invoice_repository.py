"""Integration tests for SqlAlchemyInvoiceRepository on SQLite"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from src.adapter.repositories.business_credential_repository import SqlAlchemyBusinessCredentialRepository
from src.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from src.adapter.services.credential_provider import RepositoryCredentialProvider
from src.domain.business_credential import BusinessPaymentCredential
from src.domain.exceptions import CredentialNotFoundError, InvalidStateTransitionError, InvoiceNotFoundError
from src.domain.invoice import InvoiceStatus, InvoiceType
from tests.factories import FIXED_NOW, make_calculated, make_invoice

PAID_AT = datetime(2025, 12, 19, 18, 45, 12, tzinfo=timezone.utc)


def new_invoice(seed=1, business_id="biz_1", **fields):
    return make_invoice(make_calculated(seed=seed), business_id=business_id, id=None, **fields)


@pytest.mark.asyncio
class TestInvoiceRepositoryWrites:
    async def test_create_and_find(self, db_session):
        # Arrange
        repo = SqlAlchemyInvoiceRepository(db_session)

        # Act
        created = await repo.create(new_invoice())
        await db_session.commit()
        found = await repo.find_by_invoice_no(created.invoice_no)

        # Assert
        assert created.id is not None
        assert found.status == InvoiceStatus.DRAFT
        assert found.total_payable_amount == Decimal("32.42")
        assert found.recipient["name"] == "Amirul Irfan"
        assert await repo.find_by_invoice_no("INV-MISSING") is None

    async def test_duplicate_invoice_no_returns_existing(self, db_session):
        """
        Given: Invoice already persisted
        When: Same invoice_no is created again (redelivered message)
        Then: Existing row is returned, no second row
        """
        # Arrange
        repo = SqlAlchemyInvoiceRepository(db_session)
        first = await repo.create(new_invoice())
        await db_session.commit()

        # Act
        second = await repo.create(new_invoice())

        # Assert
        assert second.id == first.id
        _, total = await repo.list_by_business("biz_1")
        assert total == 1

    async def test_bill_code_is_set_once(self, db_session):
        repo = SqlAlchemyInvoiceRepository(db_session)
        invoice = await repo.create(new_invoice())

        await repo.set_bill_code(invoice.invoice_no, "bill1", "https://pay.test/bill1")
        updated = await repo.set_bill_code(invoice.invoice_no, "bill2", "https://pay.test/bill2")

        assert updated.bill_code == "bill1"
        assert updated.bill_url == "https://pay.test/bill1"

    async def test_pending_requires_bill_code(self, db_session):
        repo = SqlAlchemyInvoiceRepository(db_session)
        invoice = await repo.create(new_invoice())

        with pytest.raises(InvalidStateTransitionError):
            await repo.set_pending(invoice.invoice_no)

    async def test_pending_is_idempotent(self, db_session):
        repo = SqlAlchemyInvoiceRepository(db_session)
        invoice = await repo.create(new_invoice())
        await repo.set_bill_code(invoice.invoice_no, "bill1", "https://pay.test/bill1")

        first = await repo.set_pending(invoice.invoice_no)
        again = await repo.set_pending(invoice.invoice_no)

        assert first.status == InvoiceStatus.PENDING
        assert again.status == InvoiceStatus.PENDING

    async def test_terminal_status_is_final(self, db_session):
        """
        Given: Invoice already PAID
        When: A later reconciliation tries CANCELLED
        Then: PAID and the original transaction are kept
        """
        # Arrange
        repo = SqlAlchemyInvoiceRepository(db_session)
        invoice = await repo.create(new_invoice(bill_code="bill1", status=InvoiceStatus.PENDING))

        # Act
        paid = await repo.set_terminal(invoice.invoice_no, InvoiceStatus.PAID, "TXN-1", PAID_AT, "bill1")
        after = await repo.set_terminal(invoice.invoice_no, InvoiceStatus.CANCELLED, "TXN-2", PAID_AT, "bill1")

        # Assert
        assert paid.status == InvoiceStatus.PAID
        assert after.status == InvoiceStatus.PAID
        assert after.transaction_id == "TXN-1"
        assert after.transaction_time is not None

    async def test_terminal_rejects_non_terminal_status(self, db_session):
        repo = SqlAlchemyInvoiceRepository(db_session)
        invoice = await repo.create(new_invoice())

        with pytest.raises(InvalidStateTransitionError):
            await repo.set_terminal(invoice.invoice_no, InvoiceStatus.PENDING, "TXN-1", PAID_AT, "bill1")

    async def test_terminal_stores_bill_code_missing_on_draft(self, db_session):
        """
        Given: DRAFT invoice whose bill code was never persisted
        When: Reconciliation settles it against the paid bill
        Then: The bill code is stored with the settlement, so no second bill is created later
        """
        # Arrange
        repo = SqlAlchemyInvoiceRepository(db_session)
        invoice = await repo.create(new_invoice())

        # Act
        paid = await repo.set_terminal(invoice.invoice_no, InvoiceStatus.PAID, "TXN-1", PAID_AT, "bill1")
        rebill = await repo.set_bill_code(invoice.invoice_no, "bill2", "https://pay.test/bill2")

        # Assert
        assert paid.status == InvoiceStatus.PAID
        assert paid.bill_code == "bill1"
        assert rebill.bill_code == "bill1"

    async def test_terminal_ignores_other_bill(self, db_session):
        repo = SqlAlchemyInvoiceRepository(db_session)
        invoice = await repo.create(new_invoice(bill_code="bill1", status=InvoiceStatus.PENDING))

        after = await repo.set_terminal(invoice.invoice_no, InvoiceStatus.PAID, "TXN-9", PAID_AT, "otherbill")

        assert after.status == InvoiceStatus.PENDING
        assert after.bill_code == "bill1"
        assert after.transaction_id is None

    async def test_timestamps_are_timezone_aware(self, db_session):
        repo = SqlAlchemyInvoiceRepository(db_session)
        invoice = await repo.create(new_invoice())

        updated = await repo.set_bill_code(invoice.invoice_no, "bill1", "https://pay.test/bill1")

        assert updated.created_at is not None
        assert updated.updated_at is not None
        assert updated.updated_at >= updated.created_at.replace(tzinfo=updated.updated_at.tzinfo)

    async def test_get_missing_raises(self, db_session):
        with pytest.raises(InvoiceNotFoundError):
            await SqlAlchemyInvoiceRepository(db_session).get_by_invoice_no("INV-MISSING")


@pytest.mark.asyncio
class TestInvoiceRepositoryQueries:
    async def seed(self, db_session):
        repo = SqlAlchemyInvoiceRepository(db_session)
        rows = [
            new_invoice(seed=1, status=InvoiceStatus.PENDING, bill_code="b1"),
            new_invoice(seed=2, status=InvoiceStatus.PENDING, bill_code="b2"),
            new_invoice(seed=3, status=InvoiceStatus.PAID, bill_code="b3", transaction_id="T3"),
            new_invoice(seed=4, status=InvoiceStatus.CANCELLED, bill_code="b4", transaction_id="T4"),
            new_invoice(seed=5, business_id="biz_other", status=InvoiceStatus.PENDING),
        ]
        for offset, invoice in enumerate(rows):
            invoice.issued_date = FIXED_NOW + timedelta(days=offset)
            await repo.create(invoice)
        await db_session.commit()
        return repo, rows

    async def test_list_newest_first_with_paging(self, db_session):
        # Arrange
        repo, rows = await self.seed(db_session)

        # Act
        first_page, total = await repo.list_by_business("biz_1", limit=3, offset=0)
        second_page, _ = await repo.list_by_business("biz_1", limit=3, offset=3)

        # Assert
        assert total == 4
        assert [i.invoice_no for i in first_page] == [rows[3].invoice_no, rows[2].invoice_no, rows[1].invoice_no]
        assert [i.invoice_no for i in second_page] == [rows[0].invoice_no]

    async def test_list_filters(self, db_session):
        repo, rows = await self.seed(db_session)

        pending, pending_total = await repo.list_by_business("biz_1", status=InvoiceStatus.PENDING)
        recent, recent_total = await repo.list_by_business("biz_1", date_from=FIXED_NOW + timedelta(days=2))
        notes, notes_total = await repo.list_by_business("biz_1", invoice_type=InvoiceType.CREDIT_NOTE)

        assert pending_total == 2
        assert recent_total == 2
        assert notes_total == 0

    async def test_summary_by_status(self, db_session):
        repo, _ = await self.seed(db_session)

        summary = await repo.summarize_by_status("biz_1")

        assert summary[InvoiceStatus.PENDING] == (2, Decimal("64.84"))
        assert summary[InvoiceStatus.PAID] == (1, Decimal("32.42"))
        assert summary[InvoiceStatus.CANCELLED] == (1, Decimal("32.42"))
        assert InvoiceStatus.DRAFT not in summary


@pytest.mark.asyncio
class TestCredentialProvider:
    async def test_credential_lookup(self, db_session):
        # Arrange
        repo = SqlAlchemyBusinessCredentialRepository(db_session)
        await repo.create(
            BusinessPaymentCredential(business_id="biz_1", secret_key="secret-abc", category_code="cat-123")
        )
        await db_session.commit()
        provider = RepositoryCredentialProvider(repo)

        # Act
        credential = await provider.get_payment_credential("biz_1")

        # Assert
        assert credential.secret_key == "secret-abc"
        assert credential.category_code == "cat-123"
        with pytest.raises(CredentialNotFoundError):
            await provider.get_payment_credential("biz_unknown")
