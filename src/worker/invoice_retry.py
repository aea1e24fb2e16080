"""Invoice Retry Worker

Consumes invoice-retry and runs RetryInvoiceIssuance. The backoff sleep
happens inside the use case, so one worker handles one retry at a time.
"""

import asyncio
import logging
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.app.services.message_queue import INVOICE_RETRY
from src.app.use_cases.invoicing import RetryInvoiceIssuance, RetryMessageDTO
from src.worker.queue_consumer import QueueConsumerWorker, run_worker

logger = logging.getLogger(__name__)


class InvoiceRetryWorker(QueueConsumerWorker):
    channel = INVOICE_RETRY
    message_model = RetryMessageDTO

    def __init__(self, *args, backoff_seconds=None, max_attempts=None, sleep=asyncio.sleep, **kwargs):
        super().__init__(*args, **kwargs)
        self.backoff_seconds = (
            ApplicationConfig.RETRY_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
        )
        self.max_attempts = max_attempts or ApplicationConfig.RETRY_MAX_ATTEMPTS
        self.sleep = sleep

    async def process(self, message: RetryMessageDTO, session: AsyncSession) -> None:
        use_case = RetryInvoiceIssuance(
            issue_invoice=self.build_issue_invoice(session),
            credential_provider=self.build_credential_provider(session),
            publisher=self.queue,
            backoff_seconds=self.backoff_seconds,
            max_attempts=self.max_attempts,
            sleep=self.sleep,
        )
        result = await use_case.execute(message)

        # The follow-up message was not published; keep this one for redelivery
        if result.is_err():
            raise RuntimeError(result.error.message)

        logger.info(
            f"Retry of {result.value.invoice_no} (attempt {result.value.attempt_no}): "
            f"{result.value.outcome.value}"
        )


if __name__ == "__main__":
    asyncio.run(run_worker(InvoiceRetryWorker, "Invoice Retry Worker"))
