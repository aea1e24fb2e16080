"""ToyyibPay Payment Gateway Implementation

Creates bills and reads bill transactions over the ToyyibPay form API.
"""

import logging
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional
import httpx
from src.app.services.payment_gateway import PaymentGateway
from src.app.use_cases.invoicing.dtos import (
    BillDTO,
    CalculatedInvoiceDTO,
    GatewayTransactionDTO,
    PaymentCredentialDTO,
)
from src.domain.exceptions import CredentialNotFoundError, PaymentGatewayError

logger = logging.getLogger(__name__)

CREATE_BILL_PATH = "/index.php/api/createBill"
BILL_TRANSACTIONS_PATH = "/index.php/api/getBillTransactions"

BILL_NAME_MAX = 30
BILL_DESCRIPTION_MAX = 100
PAYER_NAME_MAX = 50


def sanitize_bill_text(text: str, max_length: int) -> str:
    """Keep letters, digits, whitespace and underscores; truncate"""
    return re.sub(r"[^A-Za-z0-9\s_]", "", text)[:max_length].strip()


def sanitize_payer_name(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9\s]", "", name or "")[:PAYER_NAME_MAX].strip()


def normalize_phone(phone: str) -> str:
    """
    Digits only, Malaysian country code

    "+60 12-345 6789" -> "60123456789", "012-3456789" -> "60123456789"
    """
    formatted = re.sub(r"[^\d+]", "", phone or "")
    if formatted.startswith("+"):
        formatted = formatted[1:]
    if formatted.startswith("0"):
        formatted = "60" + formatted[1:]
    return formatted


def to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class ToyyibPayGateway(PaymentGateway):
    """
    ToyyibPay implementation of PaymentGateway

    Features:
    - Fixed-price bill in cents of the payable total
    - Invoice number as the bill's external reference
    - Payment URL is <base_url>/<BillCode>
    """

    def __init__(
        self,
        base_url: str = "https://toyyibpay.com",
        return_url: str = "",
        callback_url: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Gateway base URL
            return_url: Where the payer is redirected after payment
            callback_url: Webhook URL the gateway calls after payment
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.return_url = return_url
        self.callback_url = callback_url
        self.timeout = timeout
        self.transport = transport

    async def create_bill(
        self, calculated_invoice: CalculatedInvoiceDTO, credential: PaymentCredentialDTO
    ) -> BillDTO:
        if not credential.secret_key or not credential.category_code:
            raise CredentialNotFoundError(detail="secret key and category code are required")

        invoice_no = calculated_invoice.invoice_no
        form = self._bill_request(calculated_invoice, credential)

        data = await self._post_form(CREATE_BILL_PATH, form, f"createBill for {invoice_no}")

        # Success is a single-element list: [{"BillCode": "..."}]
        bill_code = None
        if isinstance(data, list) and data and isinstance(data[0], dict):
            bill_code = data[0].get("BillCode")
        elif isinstance(data, dict):
            if data.get("error"):
                raise PaymentGatewayError(f"ToyyibPay error for {invoice_no}: {data['error']}")
            bill_code = data.get("BillCode")

        if not bill_code:
            raise PaymentGatewayError(f"ToyyibPay returned no BillCode for {invoice_no}: {data!r}")

        logger.info(f"ToyyibPay bill created for {invoice_no}: {bill_code}")
        return BillDTO(bill_code=bill_code, bill_url=f"{self.base_url}/{bill_code}")

    async def list_transactions(self, bill_code: str) -> List[GatewayTransactionDTO]:
        data = await self._post_form(
            BILL_TRANSACTIONS_PATH, {"billCode": bill_code}, f"getBillTransactions for {bill_code}"
        )

        if not isinstance(data, list):
            raise PaymentGatewayError(f"Unexpected transaction list for bill {bill_code}: {data!r}")

        return [
            GatewayTransactionDTO(
                external_reference_no=record.get("billExternalReferenceNo"),
                payment_status=_as_str(record.get("billpaymentStatus")),
                payment_amount=_as_str(record.get("billpaymentAmount")),
                payment_invoice_no=record.get("billpaymentInvoiceNo"),
                payment_date=record.get("billPaymentDate"),
                bill_status=_as_str(record.get("billStatus")),
            )
            for record in data
            if isinstance(record, dict)
        ]

    def _bill_request(
        self, calculated_invoice: CalculatedInvoiceDTO, credential: PaymentCredentialDTO
    ) -> Dict[str, Any]:
        invoice_no = calculated_invoice.invoice_no
        recipient = calculated_invoice.recipient
        item_names = ", ".join(item.item_name for item in calculated_invoice.items)

        return {
            "userSecretKey": credential.secret_key,
            "categoryCode": credential.category_code,
            "billName": sanitize_bill_text(f"INV {invoice_no[-20:]}", BILL_NAME_MAX),
            "billDescription": sanitize_bill_text(
                f"Payment for {item_names} - Invoice {invoice_no}", BILL_DESCRIPTION_MAX
            ),
            "billPriceSetting": 1,
            "billPayorInfo": 1,
            "billAmount": to_cents(calculated_invoice.total_payable_amount),
            "billReturnUrl": self.return_url,
            "billCallbackUrl": self.callback_url,
            "billExternalReferenceNo": invoice_no,
            "billTo": sanitize_payer_name(recipient.name),
            "billEmail": recipient.email or "",
            "billPhone": normalize_phone(recipient.phone),
            "billSplitPayment": 0,
            "billPaymentChannel": 2,
            "billDisplayMerchant": 1,
        }

    async def _post_form(self, path: str, form: Dict[str, Any], description: str) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, data={k: str(v) for k, v in form.items()})
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"ToyyibPay {description} failed with HTTP {e.response.status_code}")
            raise PaymentGatewayError(
                f"ToyyibPay {description} failed: HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"ToyyibPay {description} failed: {e}")
            raise PaymentGatewayError(f"ToyyibPay {description} failed: {e}") from e
        except ValueError as e:
            raise PaymentGatewayError(f"ToyyibPay {description} returned a non-JSON body") from e


def _as_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)
