"""Notification Service Interface

Defines the contract for invoice and receipt notifications.
Callers treat notifications as fire-and-forget.
"""

from abc import ABC, abstractmethod
from src.domain.invoice import Invoice


class NotificationService(ABC):
    """
    Abstract notification sender

    Implementations can notify via:
    - Email API
    - Webhook (HTTP POST)
    - Log only
    """

    @abstractmethod
    async def send_invoice_notification(self, invoice: Invoice) -> bool:
        """
        Notify the recipient that an invoice was issued

        Returns:
            True if the notification was sent, False otherwise
        """
        pass

    @abstractmethod
    async def send_receipt_notification(self, invoice: Invoice) -> bool:
        """
        Send a payment receipt for a PAID invoice

        Returns:
            True if the notification was sent, False otherwise
        """
        pass
