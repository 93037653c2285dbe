from brewhaven.schemas.cart import CartItemCreate, CartItemUpdate, CartItemResponse, CartResponse
from brewhaven.schemas.payment import (
    PaymentCreate,
    PaymentUpdate,
    PaymentSummary,
    PaymentResponse,
    PaymentList,
)
from brewhaven.schemas.order import (
    OrderCreate,
    OrderLineCreate,
    CheckoutRequest,
    OrderUpdate,
    OrderItemResponse,
    OrderItemOptionResponse,
    OrderResponse,
    OrderList,
)
