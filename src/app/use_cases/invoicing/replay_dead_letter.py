"""ReplayDeadLetter Use Case

Manual re-drive of a dead-lettered invoice: the same calculated invoice goes
back on the retry channel with a fresh attempt budget. The issuance workflow
resumes from whatever step the orphaned record reached.
"""

import logging

from libs.result import Result, Return, Error
from src.app.services.message_queue import INVOICE_RETRY, MessagePublisher
from .dtos import DeadLetterMessageDTO, RetryMessageDTO
from .errors import QUEUE_PUBLISH_FAILED

logger = logging.getLogger(__name__)


class ReplayDeadLetter:
    def __init__(self, publisher: MessagePublisher):
        self.publisher = publisher

    async def execute(self, dead_letter: DeadLetterMessageDTO) -> Result[RetryMessageDTO]:
        invoice_no = dead_letter.calculated_invoice.invoice_no
        message = RetryMessageDTO(
            business_id=dead_letter.business_id,
            calculated_invoice=dead_letter.calculated_invoice,
            attempt_no=1,
        )

        try:
            await self.publisher.publish(INVOICE_RETRY, message.model_dump(mode="json"))
        except Exception as e:
            logger.error(f"Failed to replay dead-lettered invoice {invoice_no}: {e}")
            return Return.err(
                Error(
                    code=QUEUE_PUBLISH_FAILED,
                    message=f"Failed to replay invoice {invoice_no}",
                    reason=str(e),
                )
            )

        logger.info(
            f"Replayed invoice {invoice_no} to {INVOICE_RETRY} "
            f"(previously failed with {dead_letter.error_code} after attempt {dead_letter.attempt_no})"
        )
        return Return.ok(message)
