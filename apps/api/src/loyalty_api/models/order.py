from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, DateTime, Enum as SqlEnum, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from loyalty_api.db.base import Base
from .payment import VOUCHER_PAYMENT_METHOD


class OrderStatusEnum(str, Enum):
    CREATED = "created"
    PLACED = "placed"
    FAILED = "failed"


class Order(Base):
    __tablename__ = "orders"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    order_number = Column(String, nullable=False, unique=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    basket_id = Column(UUID(as_uuid=True), ForeignKey("baskets.id", ondelete="SET NULL"), nullable=True)
    status = Column(
        SqlEnum(
            OrderStatusEnum,
            name="order_status_enum",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=OrderStatusEnum.CREATED,
        server_default=OrderStatusEnum.CREATED.value,
    )
    total = Column(Numeric(12, 2), nullable=False, server_default="0")
    currency = Column(String(3), nullable=False, server_default="USD")
    failure_reason = Column(Text, nullable=True)
    placed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", lazy="selectin")
    payment_instruments = relationship(
        "PaymentInstrument",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def is_voucher_applied(self) -> bool:
        return any(instrument.payment_method == VOUCHER_PAYMENT_METHOD for instrument in self.payment_instruments)


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    order_id = Column(UUID(as_uuid=True), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(String(64), nullable=False)
    product_title = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False, server_default="1")
    unit_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    order = relationship("Order", back_populates="items")
