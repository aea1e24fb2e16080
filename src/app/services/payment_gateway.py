"""Payment Gateway Interface

Defines the contract for creating bills and reading authoritative transactions.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from src.app.use_cases.invoicing.dtos import (
        BillDTO,
        CalculatedInvoiceDTO,
        GatewayTransactionDTO,
        PaymentCredentialDTO,
    )


class PaymentGateway(ABC):
    """
    External payment gateway

    Implementations raise PaymentGatewayError for network errors and non-2xx
    responses, and CredentialNotFoundError when the credential is unusable.
    """

    @abstractmethod
    async def create_bill(
        self, calculated_invoice: "CalculatedInvoiceDTO", credential: "PaymentCredentialDTO"
    ) -> "BillDTO":
        """
        Create a payment bill for a calculated invoice

        The invoice number is sent as the bill's external reference.

        Returns:
            BillDTO with bill_code and bill_url
        """
        pass

    @abstractmethod
    async def list_transactions(self, bill_code: str) -> List["GatewayTransactionDTO"]:
        """
        Fetch the authoritative transaction list for a bill

        Returns:
            Transactions recorded by the gateway for this bill (may be empty)
        """
        pass
