"""Credential Provider Interface"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.app.use_cases.invoicing.dtos import PaymentCredentialDTO


class CredentialProvider(ABC):
    """Supplies the payment gateway credential of a business"""

    @abstractmethod
    async def get_payment_credential(self, business_id: str) -> "PaymentCredentialDTO":
        """
        Raises:
            CredentialNotFoundError: if the business has no usable credential
        """
        pass
