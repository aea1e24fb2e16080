"""ReportLab PDF Generation Service Implementation

Renders invoice and receipt documents from the persisted invoice snapshot.
"""

from datetime import datetime
from decimal import Decimal
from io import BytesIO
from typing import List, Optional

from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (
    SimpleDocTemplate,
    Table,
    TableStyle,
    Paragraph,
    Spacer,
)

from src.app.services.pdf_service import PdfService
from src.domain.invoice import Invoice, InvoiceStatus

PRIMARY = colors.HexColor("#2C3E50")
MUTED = colors.HexColor("#7F8C8D")
GRID = colors.HexColor("#BDC3C7")
ITEM_COLUMNS = [70 * mm, 18 * mm, 27 * mm, 20 * mm, 35 * mm]
QR_SIZE = 35 * mm


def _money(currency: str, amount) -> str:
    return f"{currency} {Decimal(str(amount)):,.2f}"


def payment_qr_code(url: str, size: float = QR_SIZE) -> Drawing:
    """Scannable QR code for the bill payment URL"""
    widget = QrCodeWidget(url)
    x1, y1, x2, y2 = widget.getBounds()
    drawing = Drawing(size, size, transform=[size / (x2 - x1), 0, 0, size / (y2 - y1), 0, 0])
    drawing.add(widget)
    return drawing


def _timestamp(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S UTC") if value else "-"


class ReportLabPdfService(PdfService):
    """
    ReportLab implementation of PdfService

    Both documents share the supplier header, recipient block, item table and
    totals; the invoice adds the payment link, the receipt adds settlement data.
    """

    def __init__(self):
        styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            "TitleStyle", parent=styles["Heading1"], fontSize=22, spaceAfter=6, textColor=PRIMARY
        )
        self.label_style = ParagraphStyle(
            "LabelStyle",
            parent=styles["Heading2"],
            fontSize=14,
            textColor=colors.HexColor("#E74C3C"),
            spaceAfter=12,
        )
        self.header_style = ParagraphStyle(
            "HeaderStyle", parent=styles["Normal"], fontSize=10, textColor=MUTED
        )
        self.normal_style = ParagraphStyle("NormalStyle", parent=styles["Normal"], fontSize=10)
        self.bold_style = ParagraphStyle(
            "BoldStyle", parent=styles["Normal"], fontSize=10, fontName="Helvetica-Bold"
        )
        self.footer_style = ParagraphStyle(
            "FooterNote", parent=styles["Normal"], fontSize=9, textColor=colors.HexColor("#95A5A6")
        )

    def generate_invoice(self, invoice: Invoice) -> bytes:
        """
        Generate an invoice PDF

        Args:
            invoice: Persisted invoice (PENDING or later carries the bill URL)

        Returns:
            PDF document as bytes
        """
        details = [
            ["Invoice Number:", invoice.invoice_no],
            ["Type:", invoice.invoice_type.value.replace("_", " ").title()],
            ["Status:", invoice.status.value],
            ["Issued:", _timestamp(invoice.issued_date)],
            ["Due:", invoice.due_date.strftime("%Y-%m-%d")],
        ]
        if invoice.original_invoice_ref:
            details.append(["Reference:", invoice.original_invoice_ref])

        elements = self._document_head(invoice, "INVOICE", details)

        if invoice.bill_url:
            elements.append(
                Paragraph(f'Pay online: <a href="{invoice.bill_url}">{invoice.bill_url}</a>', self.bold_style)
            )
            elements.append(Spacer(1, 3 * mm))
            elements.append(payment_qr_code(invoice.bill_url))
            elements.append(Spacer(1, 5 * mm))

        elements.append(
            Paragraph(
                "<i>Please settle the payable amount by the due date.</i>", self.footer_style
            )
        )
        return self._build(elements)

    def generate_receipt(self, invoice: Invoice) -> bytes:
        """
        Generate a payment receipt PDF

        Args:
            invoice: PAID invoice with transaction details

        Returns:
            PDF document as bytes

        Raises:
            ValueError: if the invoice is not PAID
        """
        if invoice.status != InvoiceStatus.PAID:
            raise ValueError(f"Invoice {invoice.invoice_no} is {invoice.status.value}, not PAID")

        details = [
            ["Receipt For:", invoice.invoice_no],
            ["Transaction ID:", invoice.transaction_id or "-"],
            ["Paid At:", _timestamp(invoice.transaction_time)],
            ["Amount Paid:", _money(invoice.currency, invoice.total_payable_amount)],
        ]
        elements = self._document_head(invoice, "PAYMENT RECEIPT", details)
        elements.append(Paragraph("<i>Thank you for your payment.</i>", self.footer_style))
        return self._build(elements)

    def _document_head(self, invoice: Invoice, label: str, details: List[list]) -> list:
        supplier = invoice.supplier or {}
        recipient = invoice.recipient or {}
        elements = []

        # Supplier header
        elements.append(Paragraph(supplier.get("name", ""), self.title_style))
        for line in (
            supplier.get("address_line1"),
            " ".join(filter(None, [supplier.get("postcode"), supplier.get("city"), supplier.get("state")])),
            f"TIN: {supplier['tin']}" if supplier.get("tin") else None,
        ):
            if line:
                elements.append(Paragraph(line, self.header_style))
        elements.append(Spacer(1, 8 * mm))
        elements.append(Paragraph(label, self.label_style))

        info_table = Table(details, colWidths=[40 * mm, 110 * mm])
        info_table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 10),
                    ("TEXTCOLOR", (0, 0), (0, -1), MUTED),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )
        elements.append(info_table)
        elements.append(Spacer(1, 8 * mm))

        # Recipient
        elements.append(Paragraph("Bill To:", self.bold_style))
        elements.append(Paragraph(recipient.get("name", ""), self.normal_style))
        for key in ("email", "phone", "address_line1"):
            if recipient.get(key):
                elements.append(Paragraph(recipient[key], self.normal_style))
        elements.append(Spacer(1, 8 * mm))

        elements.append(self._items_table(invoice))
        elements.append(Spacer(1, 4 * mm))
        elements.append(self._totals_table(invoice))
        elements.append(Spacer(1, 12 * mm))
        return elements

    def _items_table(self, invoice: Invoice) -> Table:
        currency = invoice.currency
        rows = [["Description", "Qty", "Unit Price", "Tax %", "Total"]]
        for item in invoice.items or []:
            rows.append(
                [
                    item.get("item_name", ""),
                    str(item.get("quantity", "")),
                    _money(currency, item.get("unit_price", 0)),
                    str(item.get("tax_rate", "0")),
                    _money(currency, item.get("line_total", 0)),
                ]
            )

        table = Table(rows, colWidths=ITEM_COLUMNS)
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), PRIMARY),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, 0), 10),
                    ("ALIGN", (0, 0), (-1, 0), "CENTER"),
                    ("FONTSIZE", (0, 1), (-1, -1), 9),
                    ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
                    ("GRID", (0, 0), (-1, -1), 0.5, GRID),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                    ("TOPPADDING", (0, 0), (-1, -1), 6),
                    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F8F9F9")]),
                ]
            )
        )
        return table

    def _totals_table(self, invoice: Invoice) -> Table:
        currency = invoice.currency
        rows = [
            ["", "", "Discount:", _money(currency, invoice.total_discount_amount)],
            ["", "", "Net:", _money(currency, invoice.total_net_amount)],
            ["", "", "Tax:", _money(currency, invoice.total_tax_amount)],
            ["", "", "Payable:", _money(currency, invoice.total_payable_amount)],
        ]
        table = Table(rows, colWidths=[70 * mm, 18 * mm, 47 * mm, 35 * mm])
        table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (2, 0), (-1, -1), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 10),
                    ("ALIGN", (2, 0), (-1, -1), "RIGHT"),
                    ("LINEABOVE", (2, -1), (-1, -1), 1.5, PRIMARY),
                    ("TOPPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )
        return table

    def _build(self, elements: list) -> bytes:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=20 * mm,
            leftMargin=20 * mm,
            topMargin=20 * mm,
            bottomMargin=20 * mm,
        )
        doc.build(elements)
        pdf_bytes = buffer.getvalue()
        buffer.close()
        return pdf_bytes
