from .unit_of_work import SqlAlchemyUnitOfWork
from .notification_service import (
    LoggingNotificationService,
    WebhookNotificationService,
    EmailApiNotificationService,
    CompositeNotificationService,
    create_notification_service,
)
from .pdf_service import ReportLabPdfService
from .toyyibpay_gateway import ToyyibPayGateway
from .redis_queue import RedisMessageQueue, create_redis_client
from .credential_provider import RepositoryCredentialProvider

__all__ = [
    "SqlAlchemyUnitOfWork",
    "LoggingNotificationService",
    "WebhookNotificationService",
    "EmailApiNotificationService",
    "CompositeNotificationService",
    "create_notification_service",
    "ReportLabPdfService",
    "ToyyibPayGateway",
    "RedisMessageQueue",
    "create_redis_client",
    "RepositoryCredentialProvider",
]
