"""Invoice API Routes

FastAPI routes for invoice batch submission, payment callbacks and lookups.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.error import ClientError
from src.api.schemas.invoice_request import InvoiceBatchRequestSchema
from src.app.use_cases.invoicing.dtos import (
    InvoiceDTO,
    ListInvoicesQueryDTO,
    PaginatedInvoiceListDTO,
    PaymentCallbackDTO,
    QueuedResponseDTO,
)
from src.app.use_cases.invoicing.errors import INVOICE_NOT_FOUND, QUEUE_PUBLISH_FAILED
from src.app.use_cases.invoicing.get_invoice import GetInvoice
from src.app.use_cases.invoicing.list_invoices import ListInvoices
from src.app.use_cases.invoicing.submit_invoice_batch import SubmitInvoiceBatch
from src.app.use_cases.invoicing.submit_payment_callback import SubmitPaymentCallback
from src.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from src.depends import get_message_queue, get_session
from src.domain.invoice import InvoiceStatus, InvoiceType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.post(
    "/{business_id}/batch",
    response_model=QueuedResponseDTO,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        503: {
            "description": "Queue unavailable",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "QUEUE_PUBLISH_FAILED",
                            "message": "Failed to queue invoice batch"
                        }
                    }
                }
            }
        }
    }
)
async def submit_invoice_batch(
    business_id: str,
    request: InvoiceBatchRequestSchema,
    queue=Depends(get_message_queue),
):
    """
    Queue a batch of invoices for issuance.

    The response only confirms that the batch was queued. Each invoice is
    calculated, persisted and billed asynchronously; failures go to the retry
    ladder and, after the last attempt, to the dead-letter channel.

    **Returns:**
    - 202: Batch queued
    - 422: Invalid invoice payload
    - 503: Batch could not be queued
    """
    result = await SubmitInvoiceBatch(queue).execute(business_id, request.invoices)

    if result.is_err():
        if result.error.code == QUEUE_PUBLISH_FAILED:
            raise ClientError(result.error, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
        raise ClientError(result.error)

    return result.value


@router.post("/payment-callback", response_class=PlainTextResponse)
async def payment_callback(request: Request, queue=Depends(get_message_queue)):
    """
    Receive a payment gateway webhook.

    Accepts form-encoded or JSON bodies. The payload is queued for
    reconciliation and the gateway always receives 200 "OK"; the webhook is a
    hint, the gateway transaction list decides the outcome.
    """
    try:
        if request.headers.get("content-type", "").startswith("application/json"):
            body = await request.json()
        else:
            body = dict(await request.form())

        callback = PaymentCallbackDTO(
            **{k: None if v is None else str(v) for k, v in (body or {}).items()
               if k in PaymentCallbackDTO.model_fields}
        )
    except (ValueError, AttributeError, StarletteHTTPException) as e:
        logger.error(f"Unreadable payment callback body: {e}")
        return "OK"

    result = await SubmitPaymentCallback(queue).execute(callback)
    if result.is_err():
        logger.error(f"Payment callback for order {callback.order_id} not queued: {result.error.reason}")

    return "OK"


@router.get(
    "/number/{invoice_no}",
    response_model=InvoiceDTO,
    status_code=status.HTTP_200_OK,
    responses={
        404: {
            "description": "Invoice not found",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "INVOICE_NOT_FOUND",
                            "message": "Invoice INV-2512191830-AMIRUL-8D2F not found"
                        }
                    }
                }
            }
        }
    }
)
async def get_invoice(invoice_no: str, session: AsyncSession = Depends(get_session)):
    """
    Get invoice detail by invoice number.

    **Returns:**
    - 200: Invoice found
    - 404: Invoice not found
    """
    result = await GetInvoice(SqlAlchemyInvoiceRepository(session)).execute(invoice_no)

    if result.is_err():
        if result.error.code == INVOICE_NOT_FOUND:
            raise ClientError(result.error, status_code=status.HTTP_404_NOT_FOUND)
        raise ClientError(result.error)

    return result.value


@router.get(
    "/{business_id}",
    response_model=PaginatedInvoiceListDTO,
    status_code=status.HTTP_200_OK,
)
async def list_invoices(
    business_id: str,
    page_index: int = Query(1, ge=1, description="1-based page index"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    invoice_type: Optional[InvoiceType] = Query(None),
    invoice_status: Optional[InvoiceStatus] = Query(None, alias="status"),
    date_from: Optional[datetime] = Query(None, description="Issued on or after"),
    date_to: Optional[datetime] = Query(None, description="Issued on or before"),
    session: AsyncSession = Depends(get_session),
):
    """
    List a business's invoices, newest first.

    The summary (pending/paid count and amount) covers every invoice matching
    the filters, not just the returned page.
    """
    query = ListInvoicesQueryDTO(
        business_id=business_id,
        page_index=page_index,
        page_size=page_size,
        invoice_type=invoice_type,
        status=invoice_status,
        date_from=date_from,
        date_to=date_to,
    )
    result = await ListInvoices(SqlAlchemyInvoiceRepository(session)).execute(query)

    if result.is_err():
        raise ClientError(result.error)

    return result.value
