from decimal import Decimal
from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, DateTime, Enum as SqlEnum, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from loyalty_api.db.base import Base
from .payment import VOUCHER_PAYMENT_METHOD


class BasketStatusEnum(str, Enum):
    OPEN = "open"
    ORDERED = "ordered"


class Basket(Base):
    __tablename__ = "baskets"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(
        SqlEnum(
            BasketStatusEnum,
            name="basket_status_enum",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=BasketStatusEnum.OPEN,
        server_default=BasketStatusEnum.OPEN.value,
    )
    currency = Column(String(3), nullable=False, server_default="USD")
    total_gross_price = Column(Numeric(12, 2), nullable=False, default=Decimal("0"), server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    items = relationship("BasketItem", back_populates="basket", cascade="all, delete-orphan", lazy="selectin")
    payment_instruments = relationship(
        "PaymentInstrument",
        back_populates="basket",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def is_voucher_applied(self) -> bool:
        return any(instrument.payment_method == VOUCHER_PAYMENT_METHOD for instrument in self.payment_instruments)


class BasketItem(Base):
    __tablename__ = "basket_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    basket_id = Column(UUID(as_uuid=True), ForeignKey("baskets.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(String(64), nullable=False)
    product_title = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False, default=1, server_default="1")
    unit_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    basket = relationship("Basket", back_populates="items")
