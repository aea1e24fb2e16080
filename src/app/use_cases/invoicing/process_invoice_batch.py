"""ProcessInvoiceBatch Use Case

Consumes one submitted batch: calculates and issues each invoice in order,
rate-limited, routing failures to the retry or dead-letter channel.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional

from libs.result import Result, Return, Error
from src.app.services.credential_provider import CredentialProvider
from src.app.services.message_queue import (
    INVOICE_DEAD_LETTER,
    INVOICE_RETRY,
    MessagePublisher,
)
from .calculate_invoice import calculate_invoice
from .dtos import (
    BatchResultDTO,
    CalculatedInvoiceDTO,
    CreateInvoiceCommandDTO,
    DeadLetterMessageDTO,
    PaymentCredentialDTO,
    RetryMessageDTO,
)
from .errors import error_from_exception, is_retryable
from .issue_invoice import IssueInvoice

logger = logging.getLogger(__name__)

DEFAULT_ITEM_DELAY_SECONDS = 1.5


class ProcessInvoiceBatch:
    """
    Use Case: Process a batch of raw invoice requests

    Business Rules:
    1. Payment credential is fetched once per batch
    2. Each invoice is calculated once; its invoice_no is carried into retries
    3. Each item is attempted exactly once synchronously
    4. One item's failure never aborts the batch
    5. Transient failures go to the retry channel with attempt_no=1;
       permanent failures go straight to dead-letter
    6. A fixed delay separates items (skipped after the last item)
    """

    def __init__(
        self,
        issue_invoice: IssueInvoice,
        credential_provider: CredentialProvider,
        publisher: MessagePublisher,
        item_delay_seconds: float = DEFAULT_ITEM_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        calculator: Callable[[CreateInvoiceCommandDTO], CalculatedInvoiceDTO] = calculate_invoice,
    ):
        self.issue_invoice = issue_invoice
        self.credential_provider = credential_provider
        self.publisher = publisher
        self.item_delay_seconds = item_delay_seconds
        self.sleep = sleep
        self.calculator = calculator

    async def execute(
        self, business_id: str, invoices: List[CreateInvoiceCommandDTO]
    ) -> Result[BatchResultDTO]:
        """
        Execute batch processing

        Args:
            business_id: Owning business
            invoices: Raw invoice requests, processed in order

        Returns:
            Result[BatchResultDTO]: Per-batch counters (never an error for item failures)
        """
        logger.info(f"Processing batch of {len(invoices)} invoice(s) for business {business_id}")

        credential: Optional[PaymentCredentialDTO] = None
        credential_error: Optional[Error] = None
        try:
            credential = await self.credential_provider.get_payment_credential(business_id)
        except Exception as e:
            credential_error = error_from_exception(
                e, f"Failed to load payment credential for business {business_id}"
            )
            logger.error(f"{credential_error.message}: {credential_error.reason}")

        result = BatchResultDTO(
            business_id=business_id,
            total=len(invoices),
            succeeded=0,
            queued_for_retry=0,
            dead_lettered=0,
        )

        for index, command in enumerate(invoices):
            try:
                calculated = self.calculator(command)
            except Exception as e:
                logger.error(f"Invoice #{index + 1} of batch for business {business_id} rejected: {e}")
                result.rejected += 1
                await self._pause_between_items(index, len(invoices))
                continue
            result.invoice_nos.append(calculated.invoice_no)

            if credential_error is not None:
                error = credential_error
            else:
                error = await self._issue(calculated, credential, business_id)

            if error is None:
                result.succeeded += 1
            elif is_retryable(error):
                logger.error(
                    f"Invoice {calculated.invoice_no} failed, emitting to retry queue: "
                    f"[{error.code}] {error.reason}"
                )
                if await self._send_to_retry(business_id, calculated):
                    result.queued_for_retry += 1
                else:
                    self._record_unrouted(result, business_id, calculated)
            else:
                logger.error(
                    f"Invoice {calculated.invoice_no} failed permanently: [{error.code}] {error.reason}"
                )
                if await self._send_to_dead_letter(business_id, calculated, error):
                    result.dead_lettered += 1
                else:
                    self._record_unrouted(result, business_id, calculated)

            await self._pause_between_items(index, len(invoices))

        logger.info(
            f"Batch processing completed for business {business_id}: "
            f"{result.succeeded}/{result.total} issued, {result.queued_for_retry} queued for retry, "
            f"{result.dead_lettered} dead-lettered, {len(result.unrouted_invoice_nos)} unrouted"
        )
        return Return.ok(result)

    async def _issue(
        self, calculated: CalculatedInvoiceDTO, credential: PaymentCredentialDTO, business_id: str
    ) -> Optional[Error]:
        try:
            issued = await self.issue_invoice.execute(calculated, credential, business_id)
        except Exception as e:
            return error_from_exception(e, f"Failed to issue invoice {calculated.invoice_no}")
        return issued.error

    async def _pause_between_items(self, index: int, total: int) -> None:
        if index < total - 1:
            await self.sleep(self.item_delay_seconds)

    def _record_unrouted(self, result: BatchResultDTO, business_id: str, calculated: CalculatedInvoiceDTO) -> None:
        """Failed item whose retry/dead-letter message could not be published; logged in full for manual recovery"""
        result.unrouted_invoice_nos.append(calculated.invoice_no)
        logger.critical(
            f"Invoice {calculated.invoice_no} for business {business_id} is on no queue and needs manual "
            f"recovery: {calculated.model_dump_json()}"
        )

    async def _send_to_retry(self, business_id: str, calculated: CalculatedInvoiceDTO) -> bool:
        message = RetryMessageDTO(
            business_id=business_id,
            calculated_invoice=calculated,
            attempt_no=1,
        )
        try:
            await self.publisher.publish(INVOICE_RETRY, message.model_dump(mode="json"))
        except Exception as e:
            logger.error(f"Failed to emit invoice {calculated.invoice_no} to {INVOICE_RETRY}: {e}")
            return False
        logger.info(f"Invoice {calculated.invoice_no} emitted to {INVOICE_RETRY} (attempt 1)")
        return True

    async def _send_to_dead_letter(
        self, business_id: str, calculated: CalculatedInvoiceDTO, error: Error
    ) -> bool:
        message = DeadLetterMessageDTO(
            business_id=business_id,
            calculated_invoice=calculated,
            attempt_no=0,
            error=error.reason or error.message,
            error_code=error.code,
            failed_at=datetime.now(timezone.utc),
        )
        try:
            await self.publisher.publish(INVOICE_DEAD_LETTER, message.model_dump(mode="json"))
        except Exception as e:
            logger.error(f"Failed to emit invoice {calculated.invoice_no} to {INVOICE_DEAD_LETTER}: {e}")
            return False
        return True
