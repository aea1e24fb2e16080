"""Invoice Calculator

Pure computation: raw invoice request -> calculated invoice with a generated
invoice number and rounded totals. Called once per logical invoice; the
result is threaded through every retry so invoice_no never changes.
"""

import logging
import random
import re
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from .dtos import CalculatedInvoiceDTO, CalculatedInvoiceItemDTO, CreateInvoiceCommandDTO

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
INVOICE_NO_PREFIX = "INV"
NAME_FRAGMENT_LENGTH = 8
SUFFIX_LENGTH = 4
SUFFIX_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def round_money(amount: Decimal) -> Decimal:
    """Round half-up to 2 decimal places"""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def sanitize_name_fragment(recipient_name: Optional[str]) -> str:
    """First word of the name, alphanumerics and hyphens only, max 8 chars, upper-cased"""
    words = (recipient_name or "").strip().split()
    first = words[0] if words else ""
    fragment = re.sub(r"[^A-Za-z0-9-]", "", first)[:NAME_FRAGMENT_LENGTH]
    return (fragment or "GUEST").upper()


def generate_invoice_number(
    recipient_name: Optional[str],
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Generate a human-legible invoice number

    Format: INV-{yyMMddHHmm}-{NAME}-{4 base36 chars}, e.g. INV-2512191830-AMIRUL-8D2F.
    Collisions are not detected; the random suffix makes them negligible.
    """
    now = now or datetime.now(timezone.utc)
    chooser = rng or random
    timestamp = now.strftime("%y%m%d%H%M")
    suffix = "".join(chooser.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    name = sanitize_name_fragment(recipient_name)
    return f"{INVOICE_NO_PREFIX}-{timestamp}-{name}-{suffix}".upper()


def calculate_line(item) -> CalculatedInvoiceItemDTO:
    subtotal = round_money(item.quantity * item.unit_price)
    discount_amount = round_money(subtotal * item.discount_rate / HUNDRED)
    net_amount = subtotal - discount_amount
    tax_amount = round_money(net_amount * item.tax_rate / HUNDRED)
    return CalculatedInvoiceItemDTO(
        **item.model_dump(),
        subtotal=subtotal,
        discount_amount=discount_amount,
        net_amount=net_amount,
        tax_amount=tax_amount,
        line_total=net_amount + tax_amount,
    )


def calculate_invoice(
    command: CreateInvoiceCommandDTO,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> CalculatedInvoiceDTO:
    """
    Calculate an invoice from a raw request

    Per-line amounts are rounded first; aggregates are sums of the rounded
    line values, rounded again.

    Args:
        command: Raw invoice request
        now: Clock override (defaults to current UTC time)
        rng: Random source override for the invoice number suffix

    Returns:
        CalculatedInvoiceDTO
    """
    now = now or datetime.now(timezone.utc)
    lines = [calculate_line(item) for item in command.items]

    total_discount = round_money(sum((line.discount_amount for line in lines), Decimal("0")))
    total_net = round_money(sum((line.net_amount for line in lines), Decimal("0")))
    total_tax = round_money(sum((line.tax_amount for line in lines), Decimal("0")))

    invoice_no = generate_invoice_number(command.recipient.name, now=now, rng=rng)

    calculated = CalculatedInvoiceDTO(
        **command.model_dump(exclude={"items"}),
        items=lines,
        invoice_no=invoice_no,
        issued_date=now,
        total_net_amount=total_net,
        total_tax_amount=total_tax,
        total_discount_amount=total_discount,
        total_payable_amount=round_money(total_net + total_tax),
    )

    logger.info(
        f"Invoice calculated: {invoice_no} "
        f"({len(lines)} item(s), payable={calculated.total_payable_amount} {calculated.currency})"
    )
    return calculated
