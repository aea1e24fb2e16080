"""Business Payment Credential Domain Entity

Payment gateway credentials configured for a business.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import BigInteger, DateTime, Integer, String
from src.domain.base import BaseModel, utc_now


class BusinessPaymentCredential(BaseModel, table=True):
    """
    BusinessPaymentCredential - Gateway secret and category for one business

    Domain Rules:
    - One credential row per business
    - Both secret_key and category_code are required to create bills
    """

    __tablename__ = "business_payment_credentials"
    __table_args__ = (
        Index('ix_business_payment_credentials_business_id', 'business_id', unique=True),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True),
        description="Unique credential identifier (auto-increment)"
    )

    business_id: str = Field(
        sa_column=Column(String(64), nullable=False, unique=True),
        description="Owning business ID"
    )

    secret_key: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Gateway user secret key"
    )

    category_code: str = Field(
        sa_column=Column(String(64), nullable=False),
        description="Gateway bill category code"
    )

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="Creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="Last update timestamp"
    )
