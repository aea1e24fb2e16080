"""Notification Service Implementations

Provides concrete implementations for invoice and receipt notifications.
"""

import base64
import logging
from typing import Any, Dict, List, Optional
import httpx
from src.app.services.notification_service import NotificationService
from src.app.services.pdf_service import PdfService
from src.domain.invoice import Invoice

logger = logging.getLogger(__name__)


class LoggingNotificationService(NotificationService):
    """
    Notification service that logs notifications

    Useful for development and testing, or as a fallback.
    """

    async def send_invoice_notification(self, invoice: Invoice) -> bool:
        logger.info(
            f"[INVOICE] {invoice.invoice_no} for business {invoice.business_id}: "
            f"{invoice.currency} {invoice.total_payable_amount} due {invoice.due_date.date().isoformat()}, "
            f"pay at {invoice.bill_url}"
        )
        return True

    async def send_receipt_notification(self, invoice: Invoice) -> bool:
        logger.info(
            f"[RECEIPT] {invoice.invoice_no} paid: {invoice.currency} {invoice.total_payable_amount}, "
            f"transaction {invoice.transaction_id}"
        )
        return True


class WebhookNotificationService(NotificationService):
    """
    Notification service that posts invoice events to an HTTP webhook

    Sends JSON payload to configured webhook URL.
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize webhook notification service

        Args:
            webhook_url: URL to POST events to
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.transport = transport

    async def send_invoice_notification(self, invoice: Invoice) -> bool:
        return await self._post("invoice_issued", invoice)

    async def send_receipt_notification(self, invoice: Invoice) -> bool:
        return await self._post("invoice_paid", invoice)

    async def _post(self, event: str, invoice: Invoice) -> bool:
        payload = {
            "type": event,
            "invoice_no": invoice.invoice_no,
            "business_id": invoice.business_id,
            "status": invoice.status.value,
            "currency": invoice.currency,
            "total_payable_amount": str(invoice.total_payable_amount),
            "bill_url": invoice.bill_url,
            "transaction_id": invoice.transaction_id,
            "transaction_time": invoice.transaction_time.isoformat() if invoice.transaction_time else None,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.webhook_url, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to send {event} webhook for invoice {invoice.invoice_no}: {e}")
            return False

        logger.info(f"Webhook {event} sent for invoice {invoice.invoice_no} to {self.webhook_url}")
        return True


class EmailApiNotificationService(NotificationService):
    """
    Notification service that emails the recipient through an HTTP email API

    The invoice email carries the invoice PDF and payment link; the receipt
    email carries the receipt PDF. Recipients without an email address are
    skipped.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        sender: str,
        pdf_service: PdfService,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.sender = sender
        self.pdf_service = pdf_service
        self.timeout = timeout
        self.transport = transport

    async def send_invoice_notification(self, invoice: Invoice) -> bool:
        supplier_name = (invoice.supplier or {}).get("name", "")
        html = (
            f"<p>Dear {self._recipient_name(invoice)},</p>"
            f"<p>{supplier_name} has issued invoice <b>{invoice.invoice_no}</b> for "
            f"{invoice.currency} {invoice.total_payable_amount:,.2f}, due "
            f"{invoice.due_date.strftime('%Y-%m-%d')}.</p>"
        )
        if invoice.bill_url:
            html += f'<p><a href="{invoice.bill_url}">Pay online</a></p>'

        return await self._send(
            invoice,
            subject=f"Invoice {invoice.invoice_no} from {supplier_name}",
            html=html,
            filename=f"{invoice.invoice_no}.pdf",
            pdf=self.pdf_service.generate_invoice(invoice),
        )

    async def send_receipt_notification(self, invoice: Invoice) -> bool:
        html = (
            f"<p>Dear {self._recipient_name(invoice)},</p>"
            f"<p>We received your payment of {invoice.currency} {invoice.total_payable_amount:,.2f} "
            f"for invoice <b>{invoice.invoice_no}</b> (transaction {invoice.transaction_id}).</p>"
        )
        return await self._send(
            invoice,
            subject=f"Receipt for invoice {invoice.invoice_no}",
            html=html,
            filename=f"RECEIPT-{invoice.invoice_no}.pdf",
            pdf=self.pdf_service.generate_receipt(invoice),
        )

    def _recipient_name(self, invoice: Invoice) -> str:
        return (invoice.recipient or {}).get("name") or "Customer"

    async def _send(self, invoice: Invoice, subject: str, html: str, filename: str, pdf: bytes) -> bool:
        to_email = (invoice.recipient or {}).get("email")
        if not to_email:
            logger.info(f"Invoice {invoice.invoice_no} recipient has no email, skipping '{subject}'")
            return False

        payload: Dict[str, Any] = {
            "from": self.sender,
            "to": [to_email],
            "subject": subject,
            "html": html,
            "attachments": [
                {"filename": filename, "content": base64.b64encode(pdf).decode("ascii")}
            ],
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.api_url,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json=payload,
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to email '{subject}' to {to_email}: {e}")
            return False

        logger.info(f"Emailed '{subject}' to {to_email}")
        return True


class CompositeNotificationService(NotificationService):
    """
    Notification service that delegates to multiple services

    Useful for sending to multiple channels (e.g., log + email).
    """

    def __init__(self, services: List[NotificationService]):
        self.services = services

    async def send_invoice_notification(self, invoice: Invoice) -> bool:
        return await self._fan_out("send_invoice_notification", invoice)

    async def send_receipt_notification(self, invoice: Invoice) -> bool:
        return await self._fan_out("send_receipt_notification", invoice)

    async def _fan_out(self, method: str, invoice: Invoice) -> bool:
        """
        Returns:
            True if at least one service succeeded, False otherwise
        """
        success = False
        for service in self.services:
            try:
                if await getattr(service, method)(invoice):
                    success = True
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
        return success


def create_notification_service(
    webhook_url: Optional[str] = None,
    mail_api_url: Optional[str] = None,
    mail_api_key: Optional[str] = None,
    mail_from: Optional[str] = None,
    pdf_service: Optional[PdfService] = None,
) -> NotificationService:
    """
    Factory function to create appropriate notification service

    Args:
        webhook_url: Optional webhook URL for invoice events
        mail_api_url: Optional email API endpoint; email is enabled only
                      together with mail_api_key, mail_from and pdf_service

    Returns:
        Configured NotificationService (logging only when nothing else is configured)
    """
    services: List[NotificationService] = [LoggingNotificationService()]

    if webhook_url:
        services.append(WebhookNotificationService(webhook_url))

    if mail_api_url and mail_api_key and mail_from and pdf_service:
        services.append(EmailApiNotificationService(mail_api_url, mail_api_key, mail_from, pdf_service))

    if len(services) == 1:
        return services[0]

    return CompositeNotificationService(services)
