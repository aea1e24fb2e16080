"""Message Queue Interfaces

At-least-once broker with named channels. Consumers must be idempotent.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional

INVOICE_BATCH_SUBMIT = "invoice-batch-submit"
INVOICE_RETRY = "invoice-retry"
INVOICE_DEAD_LETTER = "invoice-dead-letter"
PAYMENT_CALLBACK_SUBMIT = "payment-callback-submit"

MessageHandler = Callable[[Dict[str, Any]], Awaitable[None]]


class MessagePublisher(ABC):
    """Publishes JSON-serializable payloads to a named channel"""

    @abstractmethod
    async def publish(self, channel: str, payload: Dict[str, Any]) -> None:
        pass


class MessageConsumer(ABC):
    """Delivers messages from a named channel to a handler, one at a time"""

    @abstractmethod
    async def consume_one(
        self, channel: str, handler: MessageHandler, timeout: Optional[float] = None
    ) -> bool:
        """
        Wait for one message and hand it to the handler

        The message is acknowledged only after the handler returns.

        Returns:
            True if a message was handled, False if the wait timed out
        """
        pass
