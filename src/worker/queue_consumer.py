"""Queue Consumer Worker Base

Shared loop for the channel workers: one message at a time, one database
session per message, at-least-once delivery through RedisMessageQueue.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Type
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.business_credential_repository import SqlAlchemyBusinessCredentialRepository
from src.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from src.adapter.services.credential_provider import RepositoryCredentialProvider
from src.adapter.services.notification_service import create_notification_service
from src.adapter.services.pdf_service import ReportLabPdfService
from src.adapter.services.redis_queue import RedisMessageQueue, create_redis_client
from src.adapter.services.toyyibpay_gateway import ToyyibPayGateway
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.notification_service import NotificationService
from src.app.services.payment_gateway import PaymentGateway
from src.app.use_cases.invoicing import IssueInvoice, wait_for_background_tasks

logger = logging.getLogger(__name__)


class QueueConsumerWorker:
    """
    Base class for channel workers

    Subclasses set `channel` and `message_model` and implement `process`.
    A payload that does not validate against `message_model` is logged and
    acknowledged; an exception raised by `process` returns the message to
    the channel for redelivery.

    Usage:
        worker = InvoiceBatchWorker()
        await worker.run_once()      # handle at most one message
        await worker.run_forever()   # until shutdown
    """

    channel: str = ""
    message_model: Type[BaseModel] = BaseModel

    def __init__(
        self,
        db_uri: Optional[str] = None,
        queue: Optional[RedisMessageQueue] = None,
        payment_gateway: Optional[PaymentGateway] = None,
        notification_service: Optional[NotificationService] = None,
        session_factory=None,
        error_backoff_seconds: float = 1.0,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            queue: Message queue (defaults to Redis at ApplicationConfig.REDIS_URL)
            payment_gateway: Gateway client (defaults to ToyyibPay from config)
            notification_service: Notification sender (defaults from config)
            session_factory: Session factory override (tests)
            error_backoff_seconds: Pause after a failed message before polling again
        """
        self.engine = None
        if session_factory is None:
            self.engine = create_async_engine(db_uri or ApplicationConfig.DB_URI, echo=False, future=True)
            session_factory = sessionmaker(
                self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
            )
        self.async_session_factory = session_factory

        self.queue = queue or RedisMessageQueue(
            create_redis_client(ApplicationConfig.REDIS_URL),
            prefix=ApplicationConfig.QUEUE_PREFIX,
            poll_timeout=ApplicationConfig.QUEUE_POLL_TIMEOUT_SECONDS,
        )
        self.payment_gateway = payment_gateway or ToyyibPayGateway(
            base_url=ApplicationConfig.PAYMENT_API_BASE_URL,
            return_url=ApplicationConfig.PAYMENT_RETURN_URL,
            callback_url=ApplicationConfig.PAYMENT_CALLBACK_URL,
            timeout=ApplicationConfig.PAYMENT_API_TIMEOUT_SECONDS,
        )
        self.notification_service = notification_service or create_notification_service(
            webhook_url=ApplicationConfig.NOTIFICATION_WEBHOOK,
            mail_api_url=ApplicationConfig.MAIL_API_URL,
            mail_api_key=ApplicationConfig.MAIL_API_KEY,
            mail_from=ApplicationConfig.MAIL_FROM,
            pdf_service=ReportLabPdfService(),
        )
        self.error_backoff_seconds = error_backoff_seconds
        self._running = False

        logger.info(f"{type(self).__name__} initialized on channel {self.channel}")

    async def process(self, message: BaseModel, session: AsyncSession) -> None:
        raise NotImplementedError

    def build_issue_invoice(self, session: AsyncSession) -> IssueInvoice:
        return IssueInvoice(
            uow=SqlAlchemyUnitOfWork(session),
            invoice_repo=SqlAlchemyInvoiceRepository(session),
            payment_gateway=self.payment_gateway,
            notification_service=self.notification_service,
        )

    def build_credential_provider(self, session: AsyncSession) -> RepositoryCredentialProvider:
        return RepositoryCredentialProvider(SqlAlchemyBusinessCredentialRepository(session))

    async def handle(self, payload: Dict[str, Any]) -> None:
        try:
            message = self.message_model.model_validate(payload)
        except ValidationError as e:
            logger.error(f"Discarding malformed message on {self.channel}: {e}")
            return

        async with self.async_session_factory() as session:
            await self.process(message, session)

    async def run_once(self, timeout: Optional[float] = None) -> bool:
        """
        Handle at most one message

        Returns:
            True if a message was taken off the channel, False on timeout
        """
        return await self.queue.consume_one(self.channel, self.handle, timeout=timeout)

    async def run_forever(self):
        """Consume until shutdown() is called"""
        await self.queue.recover(self.channel)
        self._running = True
        logger.info(f"Consuming {self.channel}")

        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Message on {self.channel} failed and was requeued: {e}")
                await asyncio.sleep(self.error_backoff_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        self._running = False
        await wait_for_background_tasks()
        await self.queue.close()
        if self.engine is not None:
            await self.engine.dispose()
        logger.info(f"{type(self).__name__} shutdown complete")


async def run_worker(worker_cls: Type[QueueConsumerWorker], description: str):
    """
    Entry point shared by the worker modules

    Usage:
        # Handle a single message and exit
        python -m src.worker.invoice_batch --once

        # Consume continuously
        python -m src.worker.invoice_batch
    """
    import argparse

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--once", action="store_true", help="Handle one message and exit")
    args = parser.parse_args()

    worker = worker_cls()

    try:
        if args.once:
            handled = await worker.run_once()
            logger.info("Handled one message" if handled else "No message available")
        else:
            await worker.run_forever()
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()
