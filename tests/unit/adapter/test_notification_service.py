"""Unit tests for notification service implementations"""

import base64
import json
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx

from src.adapter.services.notification_service import (
    CompositeNotificationService,
    EmailApiNotificationService,
    LoggingNotificationService,
    WebhookNotificationService,
    create_notification_service,
)
from src.domain.invoice import InvoiceStatus
from tests.factories import make_invoice


@pytest.fixture
def paid_invoice():
    return make_invoice(
        status=InvoiceStatus.PAID,
        bill_code="x7k2mq9a",
        bill_url="https://toyyibpay.com/x7k2mq9a",
        transaction_id="TXN-001",
        transaction_time=datetime(2025, 12, 19, 18, 45, 12, tzinfo=timezone.utc),
    )


@pytest.fixture
def pdf_service():
    service = MagicMock()
    service.generate_invoice = MagicMock(return_value=b"%PDF-invoice")
    service.generate_receipt = MagicMock(return_value=b"%PDF-receipt")
    return service


def recording_transport(captured, status_code=200):
    def handler(request):
        captured.append(request)
        return httpx.Response(status_code, json={"id": "msg_1"})

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
class TestWebhookNotification:
    async def test_paid_event_payload(self, paid_invoice):
        # Arrange
        captured = []
        service = WebhookNotificationService(
            "https://hooks.example.com/invoices", transport=recording_transport(captured)
        )

        # Act
        sent = await service.send_receipt_notification(paid_invoice)

        # Assert
        assert sent is True
        body = json.loads(captured[0].content)
        assert body["type"] == "invoice_paid"
        assert body["invoice_no"] == paid_invoice.invoice_no
        assert body["status"] == "PAID"
        assert body["total_payable_amount"] == "32.42"
        assert body["transaction_time"] == "2025-12-19T18:45:12+00:00"

    async def test_http_error_returns_false(self, paid_invoice):
        service = WebhookNotificationService(
            "https://hooks.example.com/invoices", transport=recording_transport([], status_code=500)
        )

        assert await service.send_invoice_notification(paid_invoice) is False


@pytest.mark.asyncio
class TestEmailApiNotification:
    async def test_receipt_email_with_attachment(self, paid_invoice, pdf_service):
        """
        Given: PAID invoice whose recipient has an email
        When: receipt notification is sent
        Then: Email API receives bearer auth and a base64 receipt PDF
        """
        # Arrange
        captured = []
        service = EmailApiNotificationService(
            api_url="https://mail.example.com/emails",
            api_key="key-123",
            sender="billing@example.com",
            pdf_service=pdf_service,
            transport=recording_transport(captured),
        )

        # Act
        sent = await service.send_receipt_notification(paid_invoice)

        # Assert
        assert sent is True
        request = captured[0]
        assert request.headers["Authorization"] == "Bearer key-123"
        body = json.loads(request.content)
        assert body["to"] == ["amirul@example.com"]
        assert body["from"] == "billing@example.com"
        assert paid_invoice.invoice_no in body["subject"]
        attachment = body["attachments"][0]
        assert attachment["filename"] == f"RECEIPT-{paid_invoice.invoice_no}.pdf"
        assert base64.b64decode(attachment["content"]) == b"%PDF-receipt"

    async def test_recipient_without_email_is_skipped(self, pdf_service):
        # Arrange
        captured = []
        invoice = make_invoice(recipient={"name": "Walk-in"})
        service = EmailApiNotificationService(
            "https://mail.example.com/emails", "key-123", "billing@example.com", pdf_service,
            transport=recording_transport(captured),
        )

        # Act
        sent = await service.send_invoice_notification(invoice)

        # Assert
        assert sent is False
        assert captured == []


@pytest.mark.asyncio
class TestCompositeNotification:
    async def test_one_failing_service_does_not_stop_others(self, paid_invoice):
        failing = MagicMock()
        failing.send_invoice_notification = AsyncMock(side_effect=RuntimeError("boom"))
        working = MagicMock()
        working.send_invoice_notification = AsyncMock(return_value=True)

        sent = await CompositeNotificationService([failing, working]).send_invoice_notification(paid_invoice)

        assert sent is True
        working.send_invoice_notification.assert_called_once_with(paid_invoice)

    async def test_all_failing(self, paid_invoice):
        failing = MagicMock()
        failing.send_receipt_notification = AsyncMock(return_value=False)

        assert await CompositeNotificationService([failing]).send_receipt_notification(paid_invoice) is False


class TestNotificationFactory:
    def test_logging_only_by_default(self):
        assert isinstance(create_notification_service(), LoggingNotificationService)

    def test_all_channels(self, pdf_service):
        service = create_notification_service(
            webhook_url="https://hooks.example.com/invoices",
            mail_api_url="https://mail.example.com/emails",
            mail_api_key="key-123",
            mail_from="billing@example.com",
            pdf_service=pdf_service,
        )

        assert isinstance(service, CompositeNotificationService)
        assert [type(s) for s in service.services] == [
            LoggingNotificationService,
            WebhookNotificationService,
            EmailApiNotificationService,
        ]
