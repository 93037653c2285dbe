"""
Payment schemas
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from brewhaven.models import OrderStatus, PaymentMethod, PaymentStatus


class PaymentCreate(BaseModel):
    order_id: int
    amount: float = Field(gt=0)
    payment_method: PaymentMethod
    transaction_id: Optional[str] = None


class PaymentUpdate(BaseModel):
    status: Optional[PaymentStatus] = None
    transaction_id: Optional[str] = None
    payment_date: Optional[datetime] = None


class PaymentSummary(BaseModel):
    id: int
    amount: float
    payment_method: PaymentMethod
    status: PaymentStatus
    transaction_id: Optional[str]
    payment_date: Optional[datetime]

    class Config:
        from_attributes = True


class PaymentOrderInfo(BaseModel):
    id: int
    order_number: str
    status: OrderStatus
    total_amount: float

    class Config:
        from_attributes = True


class PaymentResponse(PaymentSummary):
    order_id: int
    order: Optional[PaymentOrderInfo] = None
    created_at: datetime
    updated_at: Optional[datetime]


class PaymentList(BaseModel):
    payments: List[PaymentResponse]
    total: int
