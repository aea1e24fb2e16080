"""Invoice Batch Worker

Consumes invoice-batch-submit and runs ProcessInvoiceBatch.
"""

import asyncio
import logging
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.app.services.message_queue import INVOICE_BATCH_SUBMIT
from src.app.use_cases.invoicing import InvoiceBatchMessageDTO, ProcessInvoiceBatch
from src.worker.queue_consumer import QueueConsumerWorker, run_worker

logger = logging.getLogger(__name__)


class InvoiceBatchWorker(QueueConsumerWorker):
    channel = INVOICE_BATCH_SUBMIT
    message_model = InvoiceBatchMessageDTO

    def __init__(self, *args, item_delay_seconds=None, sleep=asyncio.sleep, **kwargs):
        super().__init__(*args, **kwargs)
        self.item_delay_seconds = (
            ApplicationConfig.BATCH_ITEM_DELAY_SECONDS if item_delay_seconds is None else item_delay_seconds
        )
        self.sleep = sleep

    async def process(self, message: InvoiceBatchMessageDTO, session: AsyncSession) -> None:
        use_case = ProcessInvoiceBatch(
            issue_invoice=self.build_issue_invoice(session),
            credential_provider=self.build_credential_provider(session),
            publisher=self.queue,
            item_delay_seconds=self.item_delay_seconds,
            sleep=self.sleep,
        )
        result = await use_case.execute(message.business_id, message.invoices)

        if result.is_err():
            raise RuntimeError(f"Batch for business {message.business_id} failed: {result.error.message}")

        summary = result.value
        logger.info(
            f"Batch for business {summary.business_id}: {summary.succeeded} issued, "
            f"{summary.queued_for_retry} retrying, {summary.dead_lettered} dead-lettered, "
            f"{summary.rejected} rejected"
        )


if __name__ == "__main__":
    asyncio.run(run_worker(InvoiceBatchWorker, "Invoice Batch Worker"))
