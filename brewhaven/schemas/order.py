"""
Order schemas
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from brewhaven.models import OrderStatus
from brewhaven.schemas.payment import PaymentSummary


class OptionRef(BaseModel):
    id: int


class OrderLineCreate(BaseModel):
    id: int
    quantity: int
    options: List[OptionRef] = Field(default_factory=list)
    notes: Optional[str] = None


class OrderCreate(BaseModel):
    items: List[OrderLineCreate]
    notes: Optional[str] = None


class CheckoutRequest(BaseModel):
    notes: Optional[str] = None


class OrderUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    notes: Optional[str] = None
    discount: Optional[float] = Field(default=None, ge=0)
    tax: Optional[float] = Field(default=None, ge=0)


class OrderItemOptionResponse(BaseModel):
    id: int
    order_item_id: int
    option_id: Optional[int]
    option_name: str
    price_modifier: float

    class Config:
        from_attributes = True


class OrderItemResponse(BaseModel):
    id: int
    order_id: int
    item_id: Optional[int]
    item_name: str
    unit_price: float
    quantity: int
    notes: Optional[str]
    options: List[OrderItemOptionResponse]

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    order_number: str
    user_id: Optional[int]
    status: OrderStatus
    subtotal: float
    discount: float
    tax: float
    total_amount: float
    notes: Optional[str]
    items: List[OrderItemResponse]
    payment: Optional[PaymentSummary] = None
    created_at: datetime
    updated_at: Optional[datetime]
    completed_at: Optional[datetime]

    class Config:
        from_attributes = True


class OrderList(BaseModel):
    orders: List[OrderResponse]
    total: int
