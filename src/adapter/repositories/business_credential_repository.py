"""SQLAlchemy implementation of BusinessCredentialRepository"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.business_credential_repository import BusinessCredentialRepository
from src.domain.business_credential import BusinessPaymentCredential


class SqlAlchemyBusinessCredentialRepository(BusinessCredentialRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_business_id(self, business_id: str) -> Optional[BusinessPaymentCredential]:
        stmt = select(BusinessPaymentCredential).where(
            BusinessPaymentCredential.business_id == business_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, credential: BusinessPaymentCredential) -> BusinessPaymentCredential:
        """
        Create a credential row

        Args:
            credential: BusinessPaymentCredential entity to persist

        Returns:
            Created credential with generated ID
        """
        self.session.add(credential)
        await self.session.flush()
        await self.session.refresh(credential)
        return credential
