"""RetryInvoiceIssuance Use Case

Consumes one retry message: waits a fixed backoff, re-runs the issuance
workflow with the same calculated invoice, and escalates to dead-letter
once the attempt budget is spent.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from libs.result import Result, Return, Error
from src.app.services.credential_provider import CredentialProvider
from src.app.services.message_queue import (
    INVOICE_DEAD_LETTER,
    INVOICE_RETRY,
    MessagePublisher,
)
from .dtos import (
    DeadLetterMessageDTO,
    RetryMessageDTO,
    RetryOutcome,
    RetryResultDTO,
)
from .errors import QUEUE_PUBLISH_FAILED, error_from_exception, is_retryable
from .issue_invoice import IssueInvoice

logger = logging.getLogger(__name__)

DEFAULT_BACKOFF_SECONDS = 60
DEFAULT_MAX_ATTEMPTS = 5


class RetryInvoiceIssuance:
    """
    Use Case: Retry a failed invoice issuance

    Business Rules:
    1. Fixed backoff before every attempt (a throttle, not exponential)
    2. Credential is re-fetched on every attempt
    3. The original calculated invoice (and invoice_no) is reused
    4. attempt_no < max_attempts: re-emit with attempt_no + 1
    5. attempt_no >= max_attempts, or a permanent error: dead-letter, stop
    6. The orphaned DRAFT record is left as-is for manual resolution
    """

    def __init__(
        self,
        issue_invoice: IssueInvoice,
        credential_provider: CredentialProvider,
        publisher: MessagePublisher,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.issue_invoice = issue_invoice
        self.credential_provider = credential_provider
        self.publisher = publisher
        self.backoff_seconds = backoff_seconds
        self.max_attempts = max_attempts
        self.sleep = sleep

    async def execute(self, message: RetryMessageDTO) -> Result[RetryResultDTO]:
        """
        Execute one retry attempt

        Args:
            message: RetryMessageDTO with business_id, calculated_invoice, attempt_no

        Returns:
            Result[RetryResultDTO]: outcome of the attempt; an error only when the
            follow-up message could not be published
        """
        invoice_no = message.calculated_invoice.invoice_no
        attempt = f"{message.attempt_no}/{self.max_attempts}"

        logger.info(
            f"Retry attempt {attempt} for invoice {invoice_no}, waiting {self.backoff_seconds}s"
        )
        await self.sleep(self.backoff_seconds)

        error = await self._attempt(message)

        if error is None:
            logger.info(f"Retry {attempt} succeeded for invoice {invoice_no}")
            return Return.ok(
                RetryResultDTO(
                    invoice_no=invoice_no,
                    attempt_no=message.attempt_no,
                    outcome=RetryOutcome.SUCCEEDED,
                )
            )

        logger.error(f"Retry {attempt} failed for invoice {invoice_no}: [{error.code}] {error.reason}")

        if is_retryable(error) and message.attempt_no < self.max_attempts:
            next_message = RetryMessageDTO(
                business_id=message.business_id,
                calculated_invoice=message.calculated_invoice,
                attempt_no=message.attempt_no + 1,
            )
            publish_error = await self._publish(INVOICE_RETRY, next_message.model_dump(mode="json"), invoice_no)
            if publish_error:
                return Return.err(publish_error)
            logger.info(
                f"Invoice {invoice_no} emitted to {INVOICE_RETRY} "
                f"(attempt {next_message.attempt_no}/{self.max_attempts})"
            )
            outcome = RetryOutcome.REQUEUED
        else:
            dead_letter = DeadLetterMessageDTO(
                business_id=message.business_id,
                calculated_invoice=message.calculated_invoice,
                attempt_no=message.attempt_no,
                error=error.reason or error.message,
                error_code=error.code,
                failed_at=datetime.now(timezone.utc),
            )
            publish_error = await self._publish(
                INVOICE_DEAD_LETTER, dead_letter.model_dump(mode="json"), invoice_no
            )
            if publish_error:
                return Return.err(publish_error)
            logger.error(
                f"Invoice {invoice_no} permanently failed after attempt {attempt}, "
                f"moved to {INVOICE_DEAD_LETTER}"
            )
            outcome = RetryOutcome.DEAD_LETTERED

        return Return.ok(
            RetryResultDTO(
                invoice_no=invoice_no,
                attempt_no=message.attempt_no,
                outcome=outcome,
                error_code=error.code,
            )
        )

    async def _attempt(self, message: RetryMessageDTO) -> Optional[Error]:
        try:
            credential = await self.credential_provider.get_payment_credential(message.business_id)
            issued = await self.issue_invoice.execute(
                message.calculated_invoice, credential, message.business_id
            )
        except Exception as e:
            return error_from_exception(
                e, f"Failed to issue invoice {message.calculated_invoice.invoice_no}"
            )
        return issued.error

    async def _publish(self, channel: str, payload: dict, invoice_no: str) -> Optional[Error]:
        try:
            await self.publisher.publish(channel, payload)
        except Exception as e:
            logger.error(f"Failed to emit invoice {invoice_no} to {channel}: {e}")
            return Error(
                code=QUEUE_PUBLISH_FAILED,
                message=f"Failed to publish invoice {invoice_no} to {channel}",
                reason=str(e),
            )
        return None
