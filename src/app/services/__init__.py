from .unit_of_work import UnitOfWork
from .notification_service import NotificationService
from .payment_gateway import PaymentGateway
from .message_queue import MessagePublisher, MessageConsumer
from .credential_provider import CredentialProvider
from .pdf_service import PdfService

__all__ = [
    "UnitOfWork",
    "NotificationService",
    "PaymentGateway",
    "MessagePublisher",
    "MessageConsumer",
    "CredentialProvider",
    "PdfService",
]
