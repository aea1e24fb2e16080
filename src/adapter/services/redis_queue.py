"""Redis Message Queue Implementation

At-least-once delivery over Redis lists:
- publish: LPUSH onto the channel list
- consume: BLMOVE channel -> <channel>:processing, run handler, LREM to ack
- recover: items stranded in <channel>:processing by a crashed consumer
  are moved back onto the channel
"""

import json
import logging
from typing import Any, Dict, Optional
import redis.asyncio as aioredis
from src.app.services.message_queue import MessageConsumer, MessageHandler, MessagePublisher

logger = logging.getLogger(__name__)

PROCESSING_SUFFIX = ":processing"


def create_redis_client(redis_url: str) -> aioredis.Redis:
    return aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)


class RedisMessageQueue(MessagePublisher, MessageConsumer):
    """
    Redis list-backed publisher and consumer

    Messages are JSON strings. The oldest message sits at the right end of
    the list and is consumed first.
    """

    def __init__(self, redis_client: aioredis.Redis, prefix: str = "", poll_timeout: float = 5.0):
        """
        Args:
            redis_client: redis.asyncio client created with decode_responses=True
            prefix: Optional key prefix shared by every channel
            poll_timeout: Default blocking wait for consume_one, in seconds
        """
        self.redis = redis_client
        self.prefix = prefix
        self.poll_timeout = poll_timeout

    def key(self, channel: str) -> str:
        return f"{self.prefix}{channel}"

    def processing_key(self, channel: str) -> str:
        return f"{self.key(channel)}{PROCESSING_SUFFIX}"

    async def publish(self, channel: str, payload: Dict[str, Any]) -> None:
        await self.redis.lpush(self.key(channel), json.dumps(payload))
        logger.debug(f"Published message to {self.key(channel)}")

    async def consume_one(
        self, channel: str, handler: MessageHandler, timeout: Optional[float] = None
    ) -> bool:
        """
        Wait for one message and hand it to the handler

        A handler exception puts the message back on the channel (behind the
        messages already waiting) and is re-raised.

        Returns:
            True if a message was taken off the channel, False on timeout
        """
        source = self.key(channel)
        processing = self.processing_key(channel)
        wait = self.poll_timeout if timeout is None else timeout

        raw = await self.redis.blmove(source, processing, wait, "RIGHT", "LEFT")
        if raw is None:
            return False

        try:
            payload = json.loads(raw)
        except ValueError:
            logger.error(f"Dropping malformed message on {source}: {raw[:200]!r}")
            await self.redis.lrem(processing, 1, raw)
            return True

        try:
            await handler(payload)
        except Exception:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.lrem(processing, 1, raw)
                pipe.lpush(source, raw)
                await pipe.execute()
            logger.warning(f"Handler failed, message returned to {source}")
            raise

        await self.redis.lrem(processing, 1, raw)
        return True

    async def recover(self, channel: str) -> int:
        """
        Move unacknowledged messages back onto the channel

        Call once before a consumer starts. Returns the number of messages moved.
        """
        moved = 0
        while await self.redis.lmove(
            self.processing_key(channel), self.key(channel), "LEFT", "RIGHT"
        ) is not None:
            moved += 1
        if moved:
            logger.warning(f"Recovered {moved} unacknowledged message(s) on {self.key(channel)}")
        return moved

    async def close(self) -> None:
        await self.redis.aclose()
