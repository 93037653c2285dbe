from brewhaven.models.user import User, UserRoleName
from brewhaven.models.catalog import Item, ItemOption
from brewhaven.models.cart import Cart, CartItem, CartItemOption
from brewhaven.models.order import (
    Order,
    OrderItem,
    OrderItemOption,
    OrderStatus,
    TERMINAL_ORDER_STATUSES,
)
from brewhaven.models.payment import (
    Payment,
    PaymentStatus,
    PaymentMethod,
    VALID_PAYMENT_TRANSITIONS,
    is_valid_payment_transition,
)

__all__ = [
    "User",
    "UserRoleName",
    "Item",
    "ItemOption",
    "Cart",
    "CartItem",
    "CartItemOption",
    "Order",
    "OrderItem",
    "OrderItemOption",
    "OrderStatus",
    "TERMINAL_ORDER_STATUSES",
    "Payment",
    "PaymentStatus",
    "PaymentMethod",
    "VALID_PAYMENT_TRANSITIONS",
    "is_valid_payment_transition",
]
