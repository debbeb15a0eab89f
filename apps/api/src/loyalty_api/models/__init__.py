"""SQLAlchemy models package."""

from .basket import Basket, BasketItem, BasketStatusEnum  # noqa: F401
from .loyalty_cloud import LOYALTY_CLOUD_STATE_KEY, LoyaltyCloudState  # noqa: F401
from .order import Order, OrderItem, OrderStatusEnum  # noqa: F401
from .payment import (  # noqa: F401
    VOUCHER_PAYMENT_METHOD,
    PaymentInstrument,
    PaymentMethodEnum,
    PaymentTransactionTypeEnum,
)
from .user import User  # noqa: F401
