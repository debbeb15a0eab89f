from uuid import uuid4

from sqlalchemy import Column, DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID

from loyalty_api.db.base import Base


class User(Base):
    """Storefront customer; `customer_number` doubles as the loyalty membership number."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    email = Column(String, nullable=False, unique=True, index=True)
    customer_number = Column(String(32), nullable=True, unique=True, index=True)
    first_name = Column(String(128), nullable=True)
    last_name = Column(String(128), nullable=True)
    phone_mobile = Column(String(32), nullable=True)
    phone_home = Column(String(32), nullable=True)
    loyalty_member_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def membership_number(self) -> str | None:
        return self.customer_number

    @property
    def is_loyalty_member(self) -> bool:
        return bool(self.loyalty_member_id)
