"""Dead-Letter Replay Worker

Manual tool: moves dead-lettered invoices back onto the retry channel.
Each replayed message resumes the issuance workflow for the same invoice_no.

Usage:
    # Replay one dead-lettered invoice
    python -m src.worker.dead_letter --once

    # Replay everything currently dead-lettered
    python -m src.worker.dead_letter
"""

import asyncio
import logging
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.services.message_queue import INVOICE_DEAD_LETTER
from src.app.use_cases.invoicing import DeadLetterMessageDTO, ReplayDeadLetter
from src.worker.queue_consumer import QueueConsumerWorker, run_worker

logger = logging.getLogger(__name__)


class DeadLetterReplayWorker(QueueConsumerWorker):
    channel = INVOICE_DEAD_LETTER
    message_model = DeadLetterMessageDTO

    async def process(self, message: DeadLetterMessageDTO, session: AsyncSession) -> None:
        result = await ReplayDeadLetter(self.queue).execute(message)
        if result.is_err():
            raise RuntimeError(result.error.message)

    async def run_forever(self):
        """Drain the dead-letter channel once, then stop"""
        await self.queue.recover(self.channel)
        replayed = 0
        while await self.run_once(timeout=1):
            replayed += 1
        logger.info(f"Replayed {replayed} dead-lettered invoice(s)")


if __name__ == "__main__":
    asyncio.run(run_worker(DeadLetterReplayWorker, "Dead-Letter Replay Tool"))
