"""
Order item and order item option routes
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from brewhaven.api.deps import get_current_principal
from brewhaven.core.database import get_db
from brewhaven.core.permissions import Principal
from brewhaven.schemas.order import OrderItemOptionResponse, OrderItemResponse
from brewhaven.services.order_service import OrderService

items_router = APIRouter()
options_router = APIRouter()


@items_router.get("/{order_item_id}", response_model=OrderItemResponse)
async def get_order_item(
    order_item_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    return await OrderService(db).get_order_item(principal, order_item_id)


@items_router.delete("/{order_item_id}")
async def delete_order_item(
    order_item_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Remove a line; owners only while the order is pending"""
    await OrderService(db).delete_order_item(principal, order_item_id)
    await db.commit()
    return {"message": "Order item deleted successfully"}


@options_router.get("/{option_row_id}", response_model=OrderItemOptionResponse)
async def get_order_item_option(
    option_row_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    return await OrderService(db).get_order_item_option(principal, option_row_id)


@options_router.delete("/{option_row_id}")
async def delete_order_item_option(
    option_row_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    await OrderService(db).delete_order_item_option(principal, option_row_id)
    await db.commit()
    return {"message": "Order item option deleted successfully"}
