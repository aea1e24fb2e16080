"""Payment Callback Worker

Consumes payment-callback-submit and runs ReconcilePayment.
"""

import asyncio
import logging
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.message_queue import PAYMENT_CALLBACK_SUBMIT
from src.app.use_cases.invoicing import PaymentCallbackDTO, ReconcilePayment
from src.app.use_cases.invoicing.errors import is_retryable
from src.worker.queue_consumer import QueueConsumerWorker, run_worker

logger = logging.getLogger(__name__)


class PaymentCallbackWorker(QueueConsumerWorker):
    channel = PAYMENT_CALLBACK_SUBMIT
    message_model = PaymentCallbackDTO

    async def process(self, message: PaymentCallbackDTO, session: AsyncSession) -> None:
        use_case = ReconcilePayment(
            uow=SqlAlchemyUnitOfWork(session),
            invoice_repo=SqlAlchemyInvoiceRepository(session),
            payment_gateway=self.payment_gateway,
            notification_service=self.notification_service,
        )
        result = await use_case.execute(message)

        if result.is_err():
            if is_retryable(result.error):
                raise RuntimeError(f"Reconciliation of {message.order_id} failed: {result.error.reason}")
            logger.error(f"Discarding payment callback {message.order_id}: {result.error.message}")
            return

        logger.info(f"Payment callback {message.order_id}: {result.value.outcome.value}")


if __name__ == "__main__":
    asyncio.run(run_worker(PaymentCallbackWorker, "Payment Callback Worker"))
