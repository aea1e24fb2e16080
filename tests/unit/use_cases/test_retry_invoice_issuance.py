"""Unit tests for RetryInvoiceIssuance use case

Tests cover:
- Fixed backoff before every attempt
- Success discards the message
- attempt_no < max -> re-emitted with attempt_no + 1, same invoice_no
- attempt_no == max -> dead-lettered, never re-enqueued
- Permanent errors dead-letter immediately
- Publish failure is surfaced so the message is redelivered
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from libs.result import Error, Return
from src.app.services.message_queue import INVOICE_DEAD_LETTER, INVOICE_RETRY
from src.app.use_cases.invoicing.dtos import IssuedInvoiceDTO, RetryMessageDTO, RetryOutcome
from src.app.use_cases.invoicing.errors import (
    CREDENTIAL_NOT_FOUND,
    PAYMENT_GATEWAY_ERROR,
    QUEUE_PUBLISH_FAILED,
)
from src.app.use_cases.invoicing.retry_invoice_issuance import RetryInvoiceIssuance
from src.domain.exceptions import CredentialNotFoundError
from src.domain.invoice import InvoiceStatus

GATEWAY_DOWN = Return.err(Error(code=PAYMENT_GATEWAY_ERROR, message="Failed", reason="HTTP 503"))


@pytest.fixture
def mock_issue_invoice():
    return MagicMock()


@pytest.fixture
def retry_use_case(mock_issue_invoice, mock_credential_provider, mock_publisher, no_sleep):
    return RetryInvoiceIssuance(
        issue_invoice=mock_issue_invoice,
        credential_provider=mock_credential_provider,
        publisher=mock_publisher,
        backoff_seconds=60,
        max_attempts=5,
        sleep=no_sleep,
    )


def retry_message(calculated_invoice, attempt_no):
    return RetryMessageDTO(business_id="biz_1", calculated_invoice=calculated_invoice, attempt_no=attempt_no)


@pytest.mark.asyncio
class TestRetrySuccess:
    async def test_success_after_backoff(
        self, retry_use_case, mock_issue_invoice, mock_credential_provider, mock_publisher, no_sleep,
        calculated_invoice, credential
    ):
        """
        Given: Retry message attempt 2
        When: issuance now succeeds
        Then: 60s backoff observed, credential re-fetched, nothing published
        """
        # Arrange
        mock_issue_invoice.execute = AsyncMock(
            return_value=Return.ok(
                IssuedInvoiceDTO(
                    invoice_no=calculated_invoice.invoice_no, business_id="biz_1", status=InvoiceStatus.PENDING
                )
            )
        )

        # Act
        result = await retry_use_case.execute(retry_message(calculated_invoice, 2))

        # Assert
        assert result.is_ok()
        assert result.value.outcome == RetryOutcome.SUCCEEDED
        no_sleep.assert_called_once_with(60)
        mock_credential_provider.get_payment_credential.assert_called_once_with("biz_1")
        mock_issue_invoice.execute.assert_called_once_with(calculated_invoice, credential, "biz_1")
        mock_publisher.publish.assert_not_called()


@pytest.mark.asyncio
class TestRetryLadder:
    @pytest.mark.parametrize("attempt_no", [1, 2, 3, 4])
    async def test_requeued_with_next_attempt(
        self, retry_use_case, mock_issue_invoice, mock_publisher, calculated_invoice, attempt_no
    ):
        # Arrange
        mock_issue_invoice.execute = AsyncMock(return_value=GATEWAY_DOWN)

        # Act
        result = await retry_use_case.execute(retry_message(calculated_invoice, attempt_no))

        # Assert
        assert result.value.outcome == RetryOutcome.REQUEUED
        channel, payload = mock_publisher.publish.call_args.args
        assert channel == INVOICE_RETRY
        assert payload["attempt_no"] == attempt_no + 1
        assert payload["calculated_invoice"]["invoice_no"] == calculated_invoice.invoice_no

    async def test_last_attempt_goes_to_dead_letter(
        self, retry_use_case, mock_issue_invoice, mock_publisher, calculated_invoice
    ):
        """
        Given: Retry message with attempt_no=5
        When: issuance fails again
        Then: Dead-lettered with error and timestamp, never re-enqueued to retry
        """
        # Arrange
        mock_issue_invoice.execute = AsyncMock(return_value=GATEWAY_DOWN)

        # Act
        result = await retry_use_case.execute(retry_message(calculated_invoice, 5))

        # Assert
        assert result.value.outcome == RetryOutcome.DEAD_LETTERED
        mock_publisher.publish.assert_called_once()
        channel, payload = mock_publisher.publish.call_args.args
        assert channel == INVOICE_DEAD_LETTER
        assert payload["attempt_no"] == 5
        assert payload["error_code"] == PAYMENT_GATEWAY_ERROR
        assert payload["error"] == "HTTP 503"
        assert payload["failed_at"]
        assert payload["calculated_invoice"]["invoice_no"] == calculated_invoice.invoice_no

    async def test_permanent_error_dead_letters_early(
        self, retry_use_case, mock_issue_invoice, mock_credential_provider, mock_publisher, calculated_invoice
    ):
        # Arrange
        mock_credential_provider.get_payment_credential = AsyncMock(
            side_effect=CredentialNotFoundError("biz_1")
        )
        mock_issue_invoice.execute = AsyncMock()

        # Act
        result = await retry_use_case.execute(retry_message(calculated_invoice, 1))

        # Assert
        assert result.value.outcome == RetryOutcome.DEAD_LETTERED
        assert result.value.error_code == CREDENTIAL_NOT_FOUND
        mock_issue_invoice.execute.assert_not_called()
        assert mock_publisher.publish.call_args.args[0] == INVOICE_DEAD_LETTER

    async def test_unexpected_exception_is_retried(
        self, retry_use_case, mock_issue_invoice, mock_publisher, calculated_invoice
    ):
        mock_issue_invoice.execute = AsyncMock(side_effect=RuntimeError("boom"))

        result = await retry_use_case.execute(retry_message(calculated_invoice, 3))

        assert result.value.outcome == RetryOutcome.REQUEUED
        assert mock_publisher.publish.call_args.args[1]["attempt_no"] == 4

    async def test_publish_failure_returns_error(
        self, retry_use_case, mock_issue_invoice, mock_publisher, calculated_invoice
    ):
        # Arrange
        mock_issue_invoice.execute = AsyncMock(return_value=GATEWAY_DOWN)
        mock_publisher.publish = AsyncMock(side_effect=ConnectionError("redis down"))

        # Act
        result = await retry_use_case.execute(retry_message(calculated_invoice, 2))

        # Assert
        assert result.is_err()
        assert result.error.code == QUEUE_PUBLISH_FAILED
