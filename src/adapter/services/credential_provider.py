"""Repository-backed Credential Provider"""

import logging
from src.app.repositories.business_credential_repository import BusinessCredentialRepository
from src.app.services.credential_provider import CredentialProvider
from src.app.use_cases.invoicing.dtos import PaymentCredentialDTO
from src.domain.exceptions import CredentialNotFoundError

logger = logging.getLogger(__name__)


class RepositoryCredentialProvider(CredentialProvider):
    """Reads the business's stored gateway credential on every call"""

    def __init__(self, credential_repo: BusinessCredentialRepository):
        self.credential_repo = credential_repo

    async def get_payment_credential(self, business_id: str) -> PaymentCredentialDTO:
        credential = await self.credential_repo.get_by_business_id(business_id)

        if credential is None:
            raise CredentialNotFoundError(business_id)
        if not credential.secret_key or not credential.category_code:
            raise CredentialNotFoundError(business_id, "secret key and category code are required")

        return PaymentCredentialDTO(
            secret_key=credential.secret_key,
            category_code=credential.category_code,
        )
