"""ReconcilePayment Use Case

Turns a payment webhook (a hint) into a terminal invoice status derived
from the gateway's authoritative transaction list.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.notification_service import NotificationService
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice import InvoiceStatus
from .background import fire_and_forget
from .dtos import (
    GatewayTransactionDTO,
    PaymentCallbackDTO,
    ReconciliationOutcome,
    ReconciliationResultDTO,
)
from .errors import INVALID_CALLBACK, RECONCILIATION_FAILED

logger = logging.getLogger(__name__)

PAYMENT_SUCCESS = "1"


def normalize_transaction_time(value: Optional[str], fallback: Optional[datetime] = None) -> datetime:
    """
    Parse a gateway timestamp ("YYYY-MM-DD HH:MM:SS" or ISO-8601) into an aware UTC datetime

    Naive timestamps are taken as UTC. Missing or unparseable values yield the fallback
    (default: now).
    """
    if value:
        try:
            parsed = datetime.fromisoformat(value.strip().replace(" ", "T", 1))
        except ValueError:
            logger.warning(f"Unparseable transaction time {value!r}, using fallback")
        else:
            if parsed.tzinfo is None:
                return parsed.replace(tzinfo=timezone.utc)
            return parsed.astimezone(timezone.utc)
    return fallback or datetime.now(timezone.utc)


def find_matching_transaction(
    transactions: List[GatewayTransactionDTO], invoice_no: str
) -> Optional[GatewayTransactionDTO]:
    """Transaction whose external reference is the invoice number; a successful one wins"""
    matches = [t for t in transactions if t.external_reference_no == invoice_no]
    for transaction in matches:
        if transaction.payment_status == PAYMENT_SUCCESS:
            return transaction
    return matches[0] if matches else None


class ReconcilePayment:
    """
    Use Case: Reconcile a payment callback against the gateway

    Business Rules:
    1. The webhook payload is never trusted for the outcome
    2. Unknown invoice: normal outcome (stray or duplicate webhook), nothing to do
    3. Already PAID/CANCELLED: nothing to do (terminal)
    4. No gateway transaction referencing the invoice: log and stop, never guess
    5. Matched transaction status "1" -> PAID, anything else -> CANCELLED
    6. Receipt is sent fire-and-forget after PAID is durable

    Flow:
    1. Validate callback has invoice number (order_id) and bill code
    2. Look up invoice
    3. Ignore callbacks for a bill other than the stored one; fetch its transactions
    4. Match by external reference = invoice number
    5. Persist terminal status, transaction id and normalized time
    6. Schedule receipt notification if PAID
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

    async def execute(self, callback: PaymentCallbackDTO) -> Result[ReconciliationResultDTO]:
        """
        Execute reconciliation

        Args:
            callback: Webhook payload (hint only)

        Returns:
            Result[ReconciliationResultDTO]: outcome, or an error for malformed
            callbacks and gateway/database failures
        """
        invoice_no = (callback.order_id or "").strip()
        bill_code = (callback.billcode or "").strip()

        if not invoice_no or not bill_code:
            logger.error(f"Payment callback rejected: missing order_id or billcode ({callback.model_dump()})")
            return Return.err(
                Error(
                    code=INVALID_CALLBACK,
                    message="Payment callback is missing order_id or billcode",
                    reason="Malformed callback",
                )
            )

        try:
            logger.info(f"[Callback] order_id={invoice_no} billcode={bill_code}")

            # Step 1: Confirm the invoice exists here
            invoice = await self.invoice_repo.find_by_invoice_no(invoice_no)
            if invoice is None:
                logger.warning(f"[Callback] Invoice {invoice_no} not found, nothing to reconcile")
                return Return.ok(
                    ReconciliationResultDTO(
                        invoice_no=invoice_no, outcome=ReconciliationOutcome.INVOICE_NOT_FOUND
                    )
                )

            if invoice.status.is_terminal:
                logger.info(f"[Callback] Invoice {invoice_no} already {invoice.status.value}, skipping")
                return Return.ok(
                    ReconciliationResultDTO(
                        invoice_no=invoice_no,
                        outcome=ReconciliationOutcome.ALREADY_SETTLED,
                        status=invoice.status,
                        transaction_id=invoice.transaction_id,
                    )
                )

            # The stored bill is the only one this invoice can be settled against
            if invoice.bill_code and invoice.bill_code != bill_code:
                logger.warning(
                    f"[Callback] billcode {bill_code} does not match stored bill {invoice.bill_code} "
                    f"for invoice {invoice_no}, ignoring callback"
                )
                return Return.ok(
                    ReconciliationResultDTO(
                        invoice_no=invoice_no, outcome=ReconciliationOutcome.BILL_CODE_MISMATCH
                    )
                )
            if not invoice.bill_code:
                logger.warning(
                    f"[Callback] Invoice {invoice_no} has no stored bill yet, "
                    f"reconciling against callback bill {bill_code}"
                )

            # Step 2: Ask the gateway for ground truth
            transactions = await self.payment_gateway.list_transactions(bill_code)
            logger.info(f"[Callback] Gateway returned {len(transactions)} transaction(s) for bill {bill_code}")

            # Step 3: Match by external reference
            match = find_matching_transaction(transactions, invoice_no)
            if match is None:
                logger.warning(f"[Callback] No matching transaction for invoice {invoice_no} in bill {bill_code}")
                return Return.ok(
                    ReconciliationResultDTO(
                        invoice_no=invoice_no, outcome=ReconciliationOutcome.NO_MATCHING_TRANSACTION
                    )
                )

            # Step 4: Outcome strictly from the gateway record
            status = InvoiceStatus.PAID if match.payment_status == PAYMENT_SUCCESS else InvoiceStatus.CANCELLED
            logger.info(f"[Callback] Matched transaction status {match.payment_status!r} -> {status.value}")

            transaction_id = callback.transaction_id or callback.refno or match.payment_invoice_no
            if not transaction_id:
                return Return.err(
                    Error(
                        code=INVALID_CALLBACK,
                        message=f"No transaction id available for invoice {invoice_no}",
                        reason="Callback and gateway record carry no transaction reference",
                    )
                )
            transaction_time = normalize_transaction_time(
                callback.transaction_time,
                fallback=normalize_transaction_time(match.payment_date) if match.payment_date else None,
            )

            # Step 5: Persist terminal status
            invoice = await self.invoice_repo.set_terminal(
                invoice_no, status, transaction_id, transaction_time, bill_code
            )
            await self.uow.commit()
            if not invoice.status.is_terminal:
                logger.warning(f"[Callback] Invoice {invoice_no} was bound to another bill concurrently, not settled")
                return Return.ok(
                    ReconciliationResultDTO(
                        invoice_no=invoice_no, outcome=ReconciliationOutcome.BILL_CODE_MISMATCH
                    )
                )
            logger.info(f"[Callback] Invoice {invoice_no} status updated to {invoice.status.value}")

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Payment callback processing failed for {invoice_no}: {e}")
            return Return.err(
                Error(
                    code=RECONCILIATION_FAILED,
                    message=f"Failed to reconcile payment for invoice {invoice_no}",
                    reason=str(e),
                )
            )

        # Step 6: Receipt (status is already durable)
        if invoice.status == InvoiceStatus.PAID:
            fire_and_forget(
                self.notification_service.send_receipt_notification(invoice.detached_copy()),
                f"Receipt notification for {invoice_no}",
            )

        return Return.ok(
            ReconciliationResultDTO(
                invoice_no=invoice_no,
                outcome=ReconciliationOutcome.RECONCILED,
                status=invoice.status,
                transaction_id=invoice.transaction_id,
            )
        )
