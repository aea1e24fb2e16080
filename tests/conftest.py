from unittest.mock import AsyncMock, MagicMock

import pytest

from src.app.use_cases.invoicing.dtos import PaymentCredentialDTO
from tests.factories import make_calculated, make_command


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def sample_command():
    return make_command()


@pytest.fixture
def calculated_invoice():
    """Calculated invoice for 3 x 10.005 at 8% tax"""
    return make_calculated()


@pytest.fixture
def credential():
    return PaymentCredentialDTO(secret_key="secret-abc", category_code="cat-123")


@pytest.fixture
def mock_invoice_repo():
    """Mock invoice repository"""
    return MagicMock()


@pytest.fixture
def mock_gateway():
    """Mock payment gateway"""
    gateway = MagicMock()
    gateway.create_bill = AsyncMock()
    gateway.list_transactions = AsyncMock(return_value=[])
    return gateway


@pytest.fixture
def mock_notifications():
    """Mock notification service"""
    service = MagicMock()
    service.send_invoice_notification = AsyncMock(return_value=True)
    service.send_receipt_notification = AsyncMock(return_value=True)
    return service


@pytest.fixture
def mock_publisher():
    """Mock message publisher"""
    publisher = MagicMock()
    publisher.publish = AsyncMock()
    return publisher


@pytest.fixture
def mock_credential_provider(credential):
    provider = MagicMock()
    provider.get_payment_credential = AsyncMock(return_value=credential)
    return provider


@pytest.fixture
def no_sleep():
    """Replaces asyncio.sleep for backoff and rate-limit delays"""
    return AsyncMock()
