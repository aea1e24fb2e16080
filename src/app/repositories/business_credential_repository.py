"""Business Payment Credential Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.business_credential import BusinessPaymentCredential


class BusinessCredentialRepository(ABC):
    """Read access to per-business gateway credentials"""

    @abstractmethod
    async def get_by_business_id(self, business_id: str) -> Optional[BusinessPaymentCredential]:
        """
        Retrieve credential for a business

        Returns:
            BusinessPaymentCredential if configured, None otherwise
        """
        pass
