"""Fire-and-forget side effects

Tasks scheduled here are never awaited by the caller's success path;
their failures are logged and dropped.
"""

import asyncio
import logging
from typing import Awaitable, Set

logger = logging.getLogger(__name__)

_pending: Set[asyncio.Task] = set()


def fire_and_forget(awaitable: Awaitable, description: str) -> asyncio.Task:
    """Schedule a side effect on the running loop and log its failure"""

    async def _run():
        try:
            result = await awaitable
            if result is False:
                logger.warning(f"{description} was not delivered")
            return result
        except Exception as e:
            logger.warning(f"{description} failed: {e}")
            return False

    task = asyncio.create_task(_run())
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task


async def wait_for_background_tasks() -> None:
    """Let scheduled side effects finish (worker shutdown, tests)"""
    while _pending:
        await asyncio.gather(*list(_pending), return_exceptions=True)
