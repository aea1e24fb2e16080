"""In-memory test doubles for queue, gateway and notifications"""

import asyncio
import json
from collections import defaultdict, deque
from typing import Any, Dict, List, Optional

from src.app.services.message_queue import MessageConsumer, MessageHandler, MessagePublisher
from src.app.services.notification_service import NotificationService
from src.app.services.payment_gateway import PaymentGateway
from src.app.use_cases.invoicing.dtos import BillDTO, GatewayTransactionDTO
from src.domain.exceptions import PaymentGatewayError


class InMemoryMessageQueue(MessagePublisher, MessageConsumer):
    """FIFO per channel; payloads go through JSON like on the real broker"""

    def __init__(self):
        self.channels: Dict[str, deque] = defaultdict(deque)

    async def publish(self, channel: str, payload: Dict[str, Any]) -> None:
        self.channels[channel].append(json.dumps(payload))

    async def consume_one(self, channel: str, handler: MessageHandler, timeout: Optional[float] = None) -> bool:
        if not self.channels[channel]:
            return False
        raw = self.channels[channel].popleft()
        try:
            await handler(json.loads(raw))
        except Exception:
            self.channels[channel].append(raw)
            raise
        return True

    async def recover(self, channel: str) -> int:
        return 0

    async def close(self) -> None:
        pass

    def messages(self, channel: str) -> List[Dict[str, Any]]:
        return [json.loads(raw) for raw in self.channels[channel]]


class FakePaymentGateway(PaymentGateway):
    """Issues sequential bill codes; transactions are registered per bill"""

    def __init__(self, failures: int = 0, failing_recipients: Optional[List[str]] = None):
        self.failures = failures
        self.failing_recipients = failing_recipients or []
        self.create_bill_calls: List[str] = []
        self.transactions: Dict[str, List[GatewayTransactionDTO]] = defaultdict(list)

    async def create_bill(self, calculated_invoice, credential) -> BillDTO:
        self.create_bill_calls.append(calculated_invoice.invoice_no)
        if calculated_invoice.recipient.name in self.failing_recipients:
            raise PaymentGatewayError("gateway unavailable", status_code=503)
        if self.failures > 0:
            self.failures -= 1
            raise PaymentGatewayError("gateway unavailable", status_code=503)
        bill_code = f"bill{len(self.create_bill_calls)}"
        return BillDTO(bill_code=bill_code, bill_url=f"https://pay.test/{bill_code}")

    async def list_transactions(self, bill_code: str) -> List[GatewayTransactionDTO]:
        return list(self.transactions[bill_code])

    def record_payment(self, bill_code: str, invoice_no: str, status: str, invoice_ref: str = "TP123"):
        self.transactions[bill_code].append(
            GatewayTransactionDTO(
                external_reference_no=invoice_no,
                payment_status=status,
                payment_amount="32.42",
                payment_invoice_no=invoice_ref,
                payment_date="2025-12-19 18:45:00",
                bill_status="1",
            )
        )


class RecordingNotificationService(NotificationService):
    """Records notified invoice numbers; with `hold`, waits for the event before reading the invoice"""

    def __init__(self, hold: Optional[asyncio.Event] = None):
        self.hold = hold
        self.invoices: List[str] = []
        self.receipts: List[str] = []

    async def send_invoice_notification(self, invoice) -> bool:
        if self.hold is not None:
            await self.hold.wait()
        self.invoices.append(invoice.invoice_no)
        return True

    async def send_receipt_notification(self, invoice) -> bool:
        if self.hold is not None:
            await self.hold.wait()
        self.receipts.append(invoice.invoice_no)
        return True
