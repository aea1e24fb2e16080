"""Unit tests for ReportLabPdfService"""

import pytest
from datetime import datetime, timezone

from src.adapter.services.pdf_service import QR_SIZE, ReportLabPdfService, payment_qr_code
from src.domain.invoice import InvoiceStatus
from tests.factories import make_invoice


@pytest.fixture
def pdf_service():
    return ReportLabPdfService()


class TestReportLabPdfService:
    def test_invoice_pdf(self, pdf_service):
        invoice = make_invoice(
            status=InvoiceStatus.PENDING, bill_code="x7k2mq9a", bill_url="https://toyyibpay.com/x7k2mq9a"
        )

        pdf = pdf_service.generate_invoice(invoice)

        assert pdf.startswith(b"%PDF")

    def test_invoice_pdf_embeds_payment_qr_code(self, pdf_service):
        with_bill = make_invoice(
            status=InvoiceStatus.PENDING, bill_code="x7k2mq9a", bill_url="https://toyyibpay.com/x7k2mq9a"
        )
        draft = make_invoice()

        with_qr = pdf_service.generate_invoice(with_bill)
        without_qr = pdf_service.generate_invoice(draft)

        assert with_qr.startswith(b"%PDF")
        assert len(with_qr) > len(without_qr)

    def test_qr_code_drawing(self):
        drawing = payment_qr_code("https://toyyibpay.com/x7k2mq9a")

        assert drawing.width == QR_SIZE
        assert drawing.height == QR_SIZE
        assert drawing.contents[0].value == "https://toyyibpay.com/x7k2mq9a"

    def test_receipt_pdf(self, pdf_service):
        invoice = make_invoice(
            status=InvoiceStatus.PAID,
            bill_code="x7k2mq9a",
            transaction_id="TXN-001",
            transaction_time=datetime(2025, 12, 19, 18, 45, 12, tzinfo=timezone.utc),
        )

        pdf = pdf_service.generate_receipt(invoice)

        assert pdf.startswith(b"%PDF")

    def test_receipt_requires_paid(self, pdf_service):
        with pytest.raises(ValueError):
            pdf_service.generate_receipt(make_invoice(status=InvoiceStatus.PENDING))
