"""
Cart routes
"""
from typing import List, Union

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from brewhaven.api.deps import get_current_principal
from brewhaven.core.database import get_db
from brewhaven.core.permissions import Principal
from brewhaven.schemas.cart import CartItemCreate, CartItemUpdate, CartResponse
from brewhaven.services.cart_service import CartService

router = APIRouter()


@router.get("", response_model=Union[List[CartResponse], CartResponse])
async def get_cart(
    all_carts: bool = Query(False, alias="all", description="Admin only: list every cart"),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Caller's cart priced at current catalog prices"""
    service = CartService(db)
    if all_carts:
        return await service.list_carts(principal)
    return await service.get_cart(principal)


@router.post("/items", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    item_data: CartItemCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    cart = await CartService(db).add_item(
        principal,
        item_id=item_data.item_id,
        quantity=item_data.quantity,
        option_ids=item_data.option_ids,
        notes=item_data.notes,
    )
    await db.commit()
    return cart


@router.put("/items/{cart_item_id}", response_model=CartResponse)
async def update_cart_item(
    cart_item_id: int,
    item_data: CartItemUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    cart = await CartService(db).update_item(
        principal,
        cart_item_id,
        quantity=item_data.quantity,
        notes=item_data.notes,
        option_ids=item_data.option_ids,
    )
    await db.commit()
    return cart


@router.delete("/items/{cart_item_id}", response_model=CartResponse)
async def remove_from_cart(
    cart_item_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    cart = await CartService(db).remove_item(principal, cart_item_id)
    await db.commit()
    return cart


@router.delete("/{cart_id}")
async def delete_cart(
    cart_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    await CartService(db).delete_cart(principal, cart_id)
    await db.commit()
    return {"message": "Cart deleted successfully"}
