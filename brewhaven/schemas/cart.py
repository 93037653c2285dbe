"""
Cart schemas
"""
from typing import List, Optional
from pydantic import BaseModel, Field


class CartItemCreate(BaseModel):
    item_id: int
    quantity: int = 1
    option_ids: List[int] = Field(default_factory=list)
    notes: Optional[str] = None


class CartItemUpdate(BaseModel):
    quantity: Optional[int] = None
    notes: Optional[str] = None
    option_ids: Optional[List[int]] = None


class CartOptionResponse(BaseModel):
    option_id: int
    name: str
    price_modifier: float

    class Config:
        from_attributes = True


class CartItemResponse(BaseModel):
    id: int
    item_id: int
    item_name: str
    quantity: int
    notes: Optional[str]
    unit_price: float
    is_available: bool
    line_total: float
    options: List[CartOptionResponse]

    class Config:
        from_attributes = True


class CartResponse(BaseModel):
    id: Optional[int]
    user_id: int
    items: List[CartItemResponse]
    subtotal: float
    item_count: int

    class Config:
        from_attributes = True
