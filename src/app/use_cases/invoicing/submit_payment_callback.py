"""SubmitPaymentCallback Use Case

Queues a raw webhook payload so reconciliation runs out of the request path.
"""

import logging

from libs.result import Result, Return, Error
from src.app.services.message_queue import PAYMENT_CALLBACK_SUBMIT, MessagePublisher
from .dtos import PaymentCallbackDTO
from .errors import QUEUE_PUBLISH_FAILED

logger = logging.getLogger(__name__)


class SubmitPaymentCallback:
    def __init__(self, publisher: MessagePublisher):
        self.publisher = publisher

    async def execute(self, callback: PaymentCallbackDTO) -> Result[PaymentCallbackDTO]:
        try:
            await self.publisher.publish(PAYMENT_CALLBACK_SUBMIT, callback.model_dump(mode="json"))
        except Exception as e:
            logger.error(f"Failed to queue payment callback for order {callback.order_id}: {e}")
            return Return.err(
                Error(
                    code=QUEUE_PUBLISH_FAILED,
                    message="Failed to queue payment callback",
                    reason=str(e),
                )
            )

        logger.info(f"Queued payment callback for order {callback.order_id} (billcode={callback.billcode})")
        return Return.ok(callback)
