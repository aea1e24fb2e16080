"""IssueInvoice Use Case

Drives one calculated invoice through DRAFT -> bill created -> PENDING,
resuming from whatever step was last persisted.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.notification_service import NotificationService
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice import Invoice, InvoiceStatus
from .background import fire_and_forget
from .dtos import CalculatedInvoiceDTO, IssuedInvoiceDTO, PaymentCredentialDTO
from .errors import INVALID_INVOICE, error_from_exception

logger = logging.getLogger(__name__)


class IssueInvoice:
    """
    Use Case: Issue an invoice idempotently

    Business Rules:
    1. One invoice record per invoice_no, created as DRAFT
    2. The gateway bill is created at most once (skipped when bill_code is stored)
    3. Only a DRAFT invoice moves to PENDING
    4. Notification is fire-and-forget and never fails the workflow
    5. Every step re-reads persisted state before acting

    Flow:
    1. Find invoice by number; create DRAFT if absent, else resume
    2. If no bill_code: create gateway bill, persist bill_code/bill_url
    3. If still DRAFT: set PENDING
    4. Schedule invoice notification

    Any failure in steps 1-3 is returned as an error; the record keeps the
    partial state it reached, which is the resume point for the next attempt.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        payment_gateway: PaymentGateway,
        notification_service: NotificationService,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.payment_gateway = payment_gateway
        self.notification_service = notification_service

    async def execute(
        self,
        calculated_invoice: CalculatedInvoiceDTO,
        credential: PaymentCredentialDTO,
        business_id: str,
    ) -> Result[IssuedInvoiceDTO]:
        """
        Execute invoice issuance

        Args:
            calculated_invoice: Frozen calculator output (stable invoice_no)
            credential: Business payment gateway credential
            business_id: Owning business

        Returns:
            Result[IssuedInvoiceDTO]: Final persisted state or the step error
        """
        invoice_no = calculated_invoice.invoice_no
        created = bill_created = activated = False

        try:
            logger.info(f"Processing invoice issuance for {invoice_no}")

            # Step 1: Create DRAFT record only if absent
            invoice = await self.invoice_repo.find_by_invoice_no(invoice_no)
            if invoice is None:
                invoice = await self.invoice_repo.create(
                    self._to_draft(calculated_invoice, business_id)
                )
                await self.uow.commit()
                created = True
            else:
                logger.info(
                    f"Invoice {invoice_no} already exists ({invoice.status.value}), resuming"
                )

            if invoice.business_id != business_id:
                return Return.err(
                    Error(
                        code=INVALID_INVOICE,
                        message=f"Invoice {invoice_no} belongs to another business",
                        reason=f"owner={invoice.business_id}, requested={business_id}",
                    )
                )

            # Step 2: Create gateway bill only if no bill_code is stored
            invoice = await self.invoice_repo.get_by_invoice_no(invoice_no)
            if not invoice.bill_code:
                bill = await self.payment_gateway.create_bill(calculated_invoice, credential)
                invoice = await self.invoice_repo.set_bill_code(
                    invoice_no, bill.bill_code, bill.bill_url
                )
                await self.uow.commit()
                bill_created = True
                if invoice.bill_code != bill.bill_code:
                    logger.warning(
                        f"Invoice {invoice_no} already had bill {invoice.bill_code}; "
                        f"bill {bill.bill_code} was created concurrently and is unused"
                    )
            else:
                logger.info(f"Invoice {invoice_no} already has bill {invoice.bill_code}, skipping gateway")

            # Step 3: Activate only if still DRAFT
            invoice = await self.invoice_repo.get_by_invoice_no(invoice_no)
            if invoice.status == InvoiceStatus.DRAFT:
                invoice = await self.invoice_repo.set_pending(invoice_no)
                await self.uow.commit()
                activated = True
            else:
                logger.info(f"Invoice {invoice_no} already {invoice.status.value}, skipping activation")

        except Exception as e:
            await self.uow.rollback()
            error = error_from_exception(e, f"Failed to issue invoice {invoice_no}")
            logger.error(f"Invoice issuance failed for {invoice_no}: [{error.code}] {error.reason}")
            return Return.err(error)

        # Step 4: Notify (never part of the correctness contract)
        fire_and_forget(
            self.notification_service.send_invoice_notification(invoice.detached_copy()),
            f"Invoice notification for {invoice_no}",
        )

        logger.info(f"Invoice issuance completed: {invoice_no} ({invoice.status.value})")

        return Return.ok(
            IssuedInvoiceDTO(
                invoice_no=invoice.invoice_no,
                business_id=invoice.business_id,
                status=invoice.status,
                bill_code=invoice.bill_code,
                bill_url=invoice.bill_url,
                created=created,
                bill_created=bill_created,
                activated=activated,
            )
        )

    def _to_draft(self, calculated_invoice: CalculatedInvoiceDTO, business_id: str) -> Invoice:
        snapshot = calculated_invoice.model_dump(mode="json")
        return Invoice(
            business_id=business_id,
            invoice_no=calculated_invoice.invoice_no,
            invoice_type=calculated_invoice.invoice_type,
            original_invoice_ref=calculated_invoice.original_invoice_ref,
            currency=calculated_invoice.currency,
            status=InvoiceStatus.DRAFT,
            issued_date=calculated_invoice.issued_date,
            due_date=calculated_invoice.due_date,
            recipient=snapshot["recipient"],
            supplier=snapshot["supplier"],
            items=snapshot["items"],
            total_net_amount=calculated_invoice.total_net_amount,
            total_tax_amount=calculated_invoice.total_tax_amount,
            total_discount_amount=calculated_invoice.total_discount_amount,
            total_payable_amount=calculated_invoice.total_payable_amount,
            invoice_version=calculated_invoice.invoice_version,
        )
