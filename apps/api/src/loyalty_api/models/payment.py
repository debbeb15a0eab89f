from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, DateTime, Enum as SqlEnum, ForeignKey, JSON, Numeric, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.ext.mutable import MutableDict
from sqlalchemy.orm import relationship

from loyalty_api.db.base import Base


class PaymentMethodEnum(str, Enum):
    LOYALTY_MANAGEMENT_VOUCHER = "LOYALTY_MANAGEMENT_VOUCHER"
    CREDIT_CARD = "CREDIT_CARD"


VOUCHER_PAYMENT_METHOD = PaymentMethodEnum.LOYALTY_MANAGEMENT_VOUCHER.value


class PaymentTransactionTypeEnum(str, Enum):
    AUTH = "auth"
    CAPTURE = "capture"
    CREDIT = "credit"


class PaymentInstrument(Base):
    """One method/amount of payment attached to a basket, later moved onto its order."""

    __tablename__ = "payment_instruments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    basket_id = Column(UUID(as_uuid=True), ForeignKey("baskets.id", ondelete="CASCADE"), nullable=True, index=True)
    order_id = Column(UUID(as_uuid=True), ForeignKey("orders.id", ondelete="CASCADE"), nullable=True, index=True)
    payment_method = Column(String(64), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    custom = Column(MutableDict.as_mutable(JSON), nullable=False, default=dict)
    transaction_id = Column(String(64), nullable=True)
    transaction_type = Column(
        SqlEnum(
            PaymentTransactionTypeEnum,
            name="payment_transaction_type_enum",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=True,
    )
    payment_processor = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    basket = relationship("Basket", back_populates="payment_instruments")
    order = relationship("Order", back_populates="payment_instruments")

    @property
    def is_voucher(self) -> bool:
        return self.payment_method == VOUCHER_PAYMENT_METHOD
