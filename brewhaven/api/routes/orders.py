"""
Order routes

Each mutating route commits once after the service returns; if the service
raises, nothing is committed and get_db rolls the session back.
"""
import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from brewhaven.api.deps import get_current_principal
from brewhaven.core.config import settings
from brewhaven.core.database import get_db
from brewhaven.core.permissions import Principal
from brewhaven.core.rate_limit import limiter
from brewhaven.schemas.order import (
    CheckoutRequest,
    OrderCreate,
    OrderList,
    OrderResponse,
    OrderUpdate,
)
from brewhaven.services.order_service import OrderService
from brewhaven.services.pricing import OrderLine

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=OrderList)
async def list_orders(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Caller's orders, or every order for admins"""
    service = OrderService(db)
    orders = await service.list_orders(principal, offset=(page - 1) * per_page, limit=per_page)
    total = await service.count_orders(principal)
    return OrderList(orders=orders, total=total)


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_CHECKOUT)
async def create_order(
    request: Request,
    order_data: OrderCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Create order from an explicit item list"""
    lines = [
        OrderLine(
            item_id=line.id,
            quantity=line.quantity,
            option_ids=[opt.id for opt in line.options],
            notes=line.notes,
        )
        for line in order_data.items
    ]

    order = await OrderService(db).create_order(principal, lines, order_data.notes)
    await db.commit()
    return order


@router.post("/checkout", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_CHECKOUT)
async def checkout_cart(
    request: Request,
    checkout_data: CheckoutRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Create order from the caller's cart and clear the cart"""
    order = await OrderService(db).create_order_from_cart(principal, checkout_data.notes)
    await db.commit()
    return order


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Get single order"""
    return await OrderService(db).get_order(principal, order_id)


@router.put("/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: int,
    order_data: OrderUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    order = await OrderService(db).update_order(
        principal,
        order_id,
        status=order_data.status,
        notes=order_data.notes,
        discount=Decimal(str(order_data.discount)) if order_data.discount is not None else None,
        tax=Decimal(str(order_data.tax)) if order_data.tax is not None else None,
    )
    await db.commit()
    return order


@router.delete("/{order_id}")
async def delete_order(
    order_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    await OrderService(db).delete_order(principal, order_id)
    await db.commit()
    return {"message": "Order deleted successfully"}
