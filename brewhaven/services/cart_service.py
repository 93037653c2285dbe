"""
Cart store

A cart is the user's mutable selection before checkout. Nothing is priced at
rest: every read re-prices the lines against the current catalog, and a line
whose item went unavailable is still shown, flagged, so the user can remove it.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from brewhaven.core.exceptions import CartItemNotFoundError, CartNotFoundError, ValidationError
from brewhaven.core.permissions import Principal, ensure_admin, ensure_can_access
from brewhaven.core.utils import to_money, utcnow
from brewhaven.models import Cart, CartItem, CartItemOption
from brewhaven.services.catalog import CatalogReader
from brewhaven.services.pricing import OrderLine, PriceCalculator, PricedOption

logger = logging.getLogger(__name__)


@dataclass
class PricedCartItem:
    id: int
    item_id: int
    item_name: str
    quantity: int
    notes: Optional[str]
    unit_price: Decimal
    is_available: bool
    line_total: Decimal
    options: List[PricedOption] = field(default_factory=list)


@dataclass
class PricedCart:
    id: Optional[int]
    user_id: int
    items: List[PricedCartItem] = field(default_factory=list)
    subtotal: Decimal = Decimal("0.00")
    item_count: int = 0


def _cart_load_options():
    return (
        selectinload(Cart.items).selectinload(CartItem.item),
        selectinload(Cart.items).selectinload(CartItem.options).selectinload(CartItemOption.option),
    )


def price_cart(cart: Cart) -> PricedCart:
    """Price a loaded cart at current catalog prices."""
    priced_items = []
    subtotal = Decimal("0")

    for cart_item in cart.items:
        unit_price = to_money(cart_item.item.price)
        options = [
            PricedOption(
                option_id=row.option.id,
                name=row.option.name,
                price_modifier=to_money(row.option.price_modifier),
            )
            for row in cart_item.options
            if row.option is not None
        ]
        per_unit = unit_price + sum((opt.price_modifier for opt in options), Decimal("0"))
        line_total = to_money(per_unit * cart_item.quantity)

        priced_items.append(
            PricedCartItem(
                id=cart_item.id,
                item_id=cart_item.item_id,
                item_name=cart_item.item.name,
                quantity=cart_item.quantity,
                notes=cart_item.notes,
                unit_price=unit_price,
                is_available=bool(cart_item.item.is_available),
                line_total=line_total,
                options=options,
            )
        )
        subtotal += line_total

    return PricedCart(
        id=cart.id,
        user_id=cart.user_id,
        items=priced_items,
        subtotal=to_money(subtotal),
        item_count=sum(item.quantity for item in priced_items),
    )


class CartService:

    def __init__(self, db: AsyncSession, calculator: Optional[PriceCalculator] = None):
        self.db = db
        self.calculator = calculator or PriceCalculator(CatalogReader(db))

    async def _load_cart(self, **filters) -> Optional[Cart]:
        query = select(Cart).options(*_cart_load_options()).execution_options(populate_existing=True)
        for column, value in filters.items():
            query = query.where(getattr(Cart, column) == value)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _load_cart_item(self, principal: Principal, cart_item_id: int) -> CartItem:
        result = await self.db.execute(
            select(CartItem)
            .where(CartItem.id == cart_item_id)
            .options(selectinload(CartItem.cart), selectinload(CartItem.options))
        )
        cart_item = result.scalar_one_or_none()
        if cart_item is None:
            raise CartItemNotFoundError()
        ensure_can_access(principal, cart_item.cart.user_id, CartItemNotFoundError())
        return cart_item

    async def _validated_option_ids(self, item_id: int, quantity: int, option_ids: Sequence[int]) -> List[int]:
        """Run the line through the calculator so cart and checkout agree on what is valid."""
        priced = await self.calculator.calculate([OrderLine(item_id=item_id, quantity=quantity, option_ids=option_ids)])
        return [opt.option_id for opt in priced.lines[0].options]

    @staticmethod
    def _check_quantity(quantity: Optional[int]) -> None:
        if quantity is not None and quantity < 1:
            raise ValidationError("Quantity must be at least 1", details={"quantity": quantity})

    async def get_cart(self, principal: Principal) -> PricedCart:
        cart = await self._load_cart(user_id=principal.id)
        if cart is None:
            return PricedCart(id=None, user_id=principal.id)
        return price_cart(cart)

    async def list_carts(self, principal: Principal) -> List[PricedCart]:
        ensure_admin(principal, "Only administrators can list all carts")
        result = await self.db.execute(select(Cart).options(*_cart_load_options()).order_by(Cart.id))
        return [price_cart(cart) for cart in result.scalars().all()]

    async def add_item(
        self,
        principal: Principal,
        item_id: int,
        quantity: int = 1,
        option_ids: Sequence[int] = (),
        notes: Optional[str] = None,
    ) -> PricedCart:
        """Add a line to the caller's cart, creating the cart on first use."""
        self._check_quantity(quantity)
        valid_option_ids = await self._validated_option_ids(item_id, quantity, option_ids)

        cart = await self._load_cart(user_id=principal.id)
        if cart is None:
            cart = Cart(user_id=principal.id)
            self.db.add(cart)
            await self.db.flush()

        cart_item = CartItem(
            cart_id=cart.id,
            item_id=item_id,
            quantity=quantity,
            notes=notes,
            options=[CartItemOption(option_id=option_id) for option_id in valid_option_ids],
        )
        self.db.add(cart_item)
        cart.updated_at = utcnow()
        await self.db.flush()

        logger.info(f"Item {item_id} x{quantity} added to cart {cart.id} of user {principal.id}")
        return price_cart(await self._load_cart(id=cart.id))

    async def update_item(
        self,
        principal: Principal,
        cart_item_id: int,
        quantity: Optional[int] = None,
        notes: Optional[str] = None,
        option_ids: Optional[Sequence[int]] = None,
    ) -> PricedCart:
        self._check_quantity(quantity)
        cart_item = await self._load_cart_item(principal, cart_item_id)

        if quantity is not None:
            cart_item.quantity = quantity
        if notes is not None:
            cart_item.notes = notes
        if option_ids is not None:
            valid_option_ids = await self._validated_option_ids(cart_item.item_id, cart_item.quantity, option_ids)
            cart_item.options = [CartItemOption(option_id=option_id) for option_id in valid_option_ids]

        cart_item.updated_at = utcnow()
        await self.db.flush()
        return price_cart(await self._load_cart(id=cart_item.cart_id))

    async def remove_item(self, principal: Principal, cart_item_id: int) -> PricedCart:
        cart_item = await self._load_cart_item(principal, cart_item_id)
        cart_id = cart_item.cart_id

        await self.db.delete(cart_item)
        await self.db.flush()
        return price_cart(await self._load_cart(id=cart_id))

    async def delete_cart(self, principal: Principal, cart_id: int) -> None:
        cart = await self._load_cart(id=cart_id)
        if cart is None:
            raise CartNotFoundError()
        ensure_can_access(principal, cart.user_id, CartNotFoundError())

        await self.db.delete(cart)
        await self.db.flush()
        logger.info(f"Cart {cart_id} deleted by user {principal.id}")
