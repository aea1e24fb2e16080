"""Request schemas for Invoice API

Pydantic models for validating incoming HTTP requests.
"""

from typing import List
from pydantic import BaseModel, Field

from src.app.use_cases.invoicing.dtos import CreateInvoiceCommandDTO


class InvoiceBatchRequestSchema(BaseModel):
    """
    Request schema for submitting an invoice batch

    Used for POST /invoices/{business_id}/batch endpoint.
    """

    invoices: List[CreateInvoiceCommandDTO] = Field(
        ...,
        min_length=1,
        description="Raw invoice requests, processed in order"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "invoices": [
                    {
                        "invoice_type": "INVOICE",
                        "currency": "MYR",
                        "supplier": {"name": "Kedai Runcit Sdn Bhd", "tin": "C1234567890"},
                        "recipient": {
                            "name": "Amirul Irfan",
                            "email": "amirul@example.com",
                            "phone": "0123456789",
                        },
                        "due_date": "2025-01-31T00:00:00Z",
                        "items": [
                            {"item_name": "4 day class fee", "quantity": "3", "unit_price": "10.005", "tax_rate": "8"}
                        ],
                    }
                ]
            }
        }
