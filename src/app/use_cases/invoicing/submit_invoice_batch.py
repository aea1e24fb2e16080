"""SubmitInvoiceBatch Use Case

Accepts a batch request and hands it to the batch queue. The caller gets a
"queued" acknowledgement only; per-invoice outcomes are never reported back.
"""

import logging
from datetime import datetime, timezone
from typing import List

from libs.result import Result, Return, Error
from src.app.services.message_queue import INVOICE_BATCH_SUBMIT, MessagePublisher
from .dtos import CreateInvoiceCommandDTO, InvoiceBatchMessageDTO, QueuedResponseDTO
from .errors import INVALID_INVOICE, QUEUE_PUBLISH_FAILED

logger = logging.getLogger(__name__)


class SubmitInvoiceBatch:
    """Publish an invoice batch for asynchronous processing"""

    def __init__(self, publisher: MessagePublisher):
        self.publisher = publisher

    async def execute(
        self, business_id: str, invoices: List[CreateInvoiceCommandDTO]
    ) -> Result[QueuedResponseDTO]:
        """
        Queue a batch

        Args:
            business_id: Owning business
            invoices: Raw invoice requests

        Returns:
            Result[QueuedResponseDTO]: acknowledgement, or an error when the batch
            is empty or could not be published
        """
        if not invoices:
            return Return.err(
                Error(code=INVALID_INVOICE, message="Batch contains no invoices")
            )

        message = InvoiceBatchMessageDTO(business_id=business_id, invoices=invoices)
        try:
            await self.publisher.publish(INVOICE_BATCH_SUBMIT, message.model_dump(mode="json"))
        except Exception as e:
            logger.error(f"Failed to queue batch for business {business_id}: {e}")
            return Return.err(
                Error(
                    code=QUEUE_PUBLISH_FAILED,
                    message="Failed to queue invoice batch",
                    reason=str(e),
                )
            )

        logger.info(f"Queued batch of {len(invoices)} invoice(s) for business {business_id}")
        return Return.ok(
            QueuedResponseDTO(
                message="Invoice batch is queued for processing",
                timestamp=datetime.now(timezone.utc),
            )
        )
