"""Unit tests for the queue-submitting use cases"""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock

from src.app.services.message_queue import INVOICE_BATCH_SUBMIT, INVOICE_RETRY, PAYMENT_CALLBACK_SUBMIT
from src.app.use_cases.invoicing.dtos import DeadLetterMessageDTO, PaymentCallbackDTO
from src.app.use_cases.invoicing.errors import INVALID_INVOICE, QUEUE_PUBLISH_FAILED
from src.app.use_cases.invoicing.replay_dead_letter import ReplayDeadLetter
from src.app.use_cases.invoicing.submit_invoice_batch import SubmitInvoiceBatch
from src.app.use_cases.invoicing.submit_payment_callback import SubmitPaymentCallback
from tests.factories import make_command


@pytest.mark.asyncio
class TestSubmitInvoiceBatch:
    async def test_batch_is_queued(self, mock_publisher):
        # Arrange
        commands = [make_command("Amirul Irfan"), make_command("Siti Aminah")]

        # Act
        result = await SubmitInvoiceBatch(mock_publisher).execute("biz_1", commands)

        # Assert
        assert result.is_ok()
        assert result.value.message == "Invoice batch is queued for processing"
        channel, payload = mock_publisher.publish.call_args.args
        assert channel == INVOICE_BATCH_SUBMIT
        assert payload["business_id"] == "biz_1"
        assert [i["recipient"]["name"] for i in payload["invoices"]] == ["Amirul Irfan", "Siti Aminah"]

    async def test_empty_batch_rejected(self, mock_publisher):
        result = await SubmitInvoiceBatch(mock_publisher).execute("biz_1", [])

        assert result.error.code == INVALID_INVOICE
        mock_publisher.publish.assert_not_called()

    async def test_broker_unavailable(self, mock_publisher):
        mock_publisher.publish = AsyncMock(side_effect=ConnectionError("redis down"))

        result = await SubmitInvoiceBatch(mock_publisher).execute("biz_1", [make_command()])

        assert result.error.code == QUEUE_PUBLISH_FAILED


@pytest.mark.asyncio
class TestSubmitPaymentCallback:
    async def test_callback_is_queued(self, mock_publisher):
        callback = PaymentCallbackDTO(order_id="INV-1", billcode="x7k2mq9a", status="1")

        result = await SubmitPaymentCallback(mock_publisher).execute(callback)

        assert result.is_ok()
        channel, payload = mock_publisher.publish.call_args.args
        assert channel == PAYMENT_CALLBACK_SUBMIT
        assert payload["order_id"] == "INV-1"

    async def test_publish_failure(self, mock_publisher):
        mock_publisher.publish = AsyncMock(side_effect=ConnectionError("redis down"))

        result = await SubmitPaymentCallback(mock_publisher).execute(PaymentCallbackDTO())

        assert result.error.code == QUEUE_PUBLISH_FAILED


@pytest.mark.asyncio
class TestReplayDeadLetter:
    async def test_replay_starts_fresh_attempt_budget(self, mock_publisher, calculated_invoice):
        """
        Given: Invoice dead-lettered after 5 attempts
        When: replayed
        Then: Same invoice_no goes back to the retry channel as attempt 1
        """
        # Arrange
        dead_letter = DeadLetterMessageDTO(
            business_id="biz_1",
            calculated_invoice=calculated_invoice,
            attempt_no=5,
            error="HTTP 503",
            error_code="PAYMENT_GATEWAY_ERROR",
            failed_at=datetime(2025, 12, 19, 19, 0, tzinfo=timezone.utc),
        )

        # Act
        result = await ReplayDeadLetter(mock_publisher).execute(dead_letter)

        # Assert
        assert result.value.attempt_no == 1
        channel, payload = mock_publisher.publish.call_args.args
        assert channel == INVOICE_RETRY
        assert payload["attempt_no"] == 1
        assert payload["calculated_invoice"]["invoice_no"] == calculated_invoice.invoice_no
