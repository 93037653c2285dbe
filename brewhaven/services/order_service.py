"""
OrderService - order composition and order-side operations

Single source of truth for turning lines (explicit or from the stored cart)
into a priced, numbered order with snapshot line items.

Transaction contract: every method works inside the caller's session and only
flushes. The caller commits once; any exception means the caller rolls back,
so a failed composition leaves no order, item or option rows behind.

One exception: create_order rolls the session back itself when the insert
hits the order_number unique constraint, because the session is unusable
after a failed flush. Any earlier uncommitted work in that session is
discarded with it, so callers call create_order before their other writes.
"""
import logging
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from brewhaven.core.config import settings
from brewhaven.core.exceptions import (
    ForbiddenError,
    InternalError,
    InvalidOrderInputError,
    OrderItemNotFoundError,
    OrderItemOptionNotFoundError,
    OrderNotFoundError,
    OrderNumberExhaustedError,
    ValidationError,
)
from brewhaven.core.permissions import Principal, ensure_can_access
from brewhaven.core.utils import to_money, utcnow
from brewhaven.models import (
    Cart,
    CartItem,
    CartItemOption,
    Order,
    OrderItem,
    OrderItemOption,
    OrderStatus,
    TERMINAL_ORDER_STATUSES,
)
from brewhaven.services.catalog import CatalogReader
from brewhaven.services.order_number import OrderNumberGenerator
from brewhaven.services.pricing import OrderLine, PriceCalculator, PricedOrder

logger = logging.getLogger(__name__)


def _order_load_options():
    return (
        selectinload(Order.items).selectinload(OrderItem.options),
        selectinload(Order.payment),
    )


class OrderService:
    """Order composer plus scope-guarded order, item and option operations."""

    def __init__(
        self,
        db: AsyncSession,
        calculator: Optional[PriceCalculator] = None,
        number_generator: Optional[OrderNumberGenerator] = None,
    ):
        self.db = db
        self.calculator = calculator or PriceCalculator(CatalogReader(db))
        self.number_generator = number_generator or OrderNumberGenerator()

    # =========================================================================
    # COMPOSITION
    # =========================================================================

    @staticmethod
    def validate_lines(lines: Sequence[OrderLine]) -> None:
        """Reject empty orders and non-positive quantities before any catalog read."""
        if not lines:
            raise InvalidOrderInputError("Order must contain at least one item")

        for line in lines:
            if line.item_id is None:
                raise InvalidOrderInputError("Each item must have a valid id")
            if line.quantity is None or line.quantity < 1:
                raise InvalidOrderInputError(
                    f"Invalid quantity for item {line.item_id}",
                    details={"item_id": line.item_id, "quantity": line.quantity},
                )

    @staticmethod
    def compute_tax(subtotal: Decimal) -> Decimal:
        rate = Decimal(str(settings.ORDER_TAX_RATE))
        return to_money(subtotal * rate / Decimal("100"))

    @staticmethod
    def build_order(
        user_id: int,
        priced: PricedOrder,
        order_number: str,
        notes: Optional[str],
        tax: Decimal,
        discount: Decimal = Decimal("0.00"),
    ) -> Order:
        """Build the order graph from priced lines; nothing is persisted here."""
        order = Order(
            user_id=user_id,
            order_number=order_number,
            status=OrderStatus.PENDING,
            subtotal=priced.subtotal,
            discount=to_money(discount),
            tax=to_money(tax),
            total_amount=to_money(priced.subtotal + tax - discount),
            notes=notes,
        )

        for line in priced.lines:
            order.items.append(
                OrderItem(
                    item_id=line.item_id,
                    item_name=line.item_name,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    notes=line.notes,
                    options=[
                        OrderItemOption(
                            option_id=option.option_id,
                            option_name=option.name,
                            price_modifier=option.price_modifier,
                        )
                        for option in line.options
                    ],
                )
            )

        return order

    async def create_order(
        self,
        principal: Principal,
        lines: Sequence[OrderLine],
        notes: Optional[str] = None,
    ) -> Order:
        """
        Price, number and insert an order owned by the principal.

        If a concurrent request claims the same order number between our check
        and our insert, the unique constraint rejects the insert; we roll back
        and start over (re-pricing included) within the attempt budget.

        Raises:
            InvalidOrderInputError: empty lines or bad quantity
            ItemNotFoundError / ItemUnavailableError: catalog rejected a line
            OrderNumberExhaustedError: no free order number within the budget
            InternalError: insert failed for another reason
        """
        self.validate_lines(lines)

        max_attempts = self.number_generator.max_attempts
        attempt = 0

        while True:
            attempt += 1
            priced = await self.calculator.calculate(lines)
            order_number = await self.number_generator.generate(self.db)
            tax = self.compute_tax(priced.subtotal)

            order = self.build_order(principal.id, priced, order_number, notes, tax)
            self.db.add(order)

            try:
                await self.db.flush()
            except IntegrityError as exc:
                await self.db.rollback()
                if not await self.number_generator.exists(self.db, order_number):
                    logger.error(f"Order insert failed for user {principal.id}: {exc}")
                    raise InternalError("Could not save order") from exc
                if attempt >= max_attempts:
                    raise OrderNumberExhaustedError(max_attempts) from exc
                logger.warning(
                    f"Order number {order_number} taken at insert time "
                    f"(attempt {attempt}/{max_attempts}), retrying"
                )
                continue

            break

        logger.info(
            f"Order {order.order_number} created for user {principal.id}: "
            f"{len(priced.lines)} lines, total {order.total_amount}"
        )
        return await self._load_order(order.id)

    async def create_order_from_cart(self, principal: Principal, notes: Optional[str] = None) -> Order:
        """
        Check out the principal's stored cart.

        The cart and its lines are deleted in the same transaction as the order
        insert, so either both happen or neither does.
        """
        result = await self.db.execute(
            select(Cart)
            .where(Cart.user_id == principal.id)
            .options(selectinload(Cart.items).selectinload(CartItem.options))
        )
        cart = result.scalar_one_or_none()

        if not cart or not cart.items:
            raise InvalidOrderInputError("Cart is empty. Please add items before creating an order.")

        cart_id = cart.id
        lines = [
            OrderLine(
                item_id=cart_item.item_id,
                quantity=cart_item.quantity,
                option_ids=[opt.option_id for opt in cart_item.options],
                notes=cart_item.notes,
            )
            for cart_item in cart.items
        ]

        order = await self.create_order(principal, lines, notes)

        cart_item_ids = select(CartItem.id).where(CartItem.cart_id == cart_id)
        await self.db.execute(delete(CartItemOption).where(CartItemOption.cart_item_id.in_(cart_item_ids)))
        await self.db.execute(delete(CartItem).where(CartItem.cart_id == cart_id))
        await self.db.execute(delete(Cart).where(Cart.id == cart_id))
        await self.db.flush()

        logger.info(f"Cart {cart_id} checked out into order {order.order_number}")
        return order

    # =========================================================================
    # READS
    # =========================================================================

    async def _load_order(self, order_id: int) -> Optional[Order]:
        result = await self.db.execute(
            select(Order)
            .where(Order.id == order_id)
            .options(*_order_load_options())
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_orders(self, principal: Principal, offset: int = 0, limit: Optional[int] = None) -> List[Order]:
        """Admins see every order; everyone else sees their own."""
        query = select(Order).options(*_order_load_options())
        if not principal.is_admin:
            query = query.where(Order.user_id == principal.id)
        query = query.order_by(Order.created_at.desc(), Order.id.desc()).offset(offset)
        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_orders(self, principal: Principal) -> int:
        query = select(func.count()).select_from(Order)
        if not principal.is_admin:
            query = query.where(Order.user_id == principal.id)
        result = await self.db.execute(query)
        return result.scalar_one()

    async def get_order(self, principal: Principal, order_id: int) -> Order:
        order = await self._load_order(order_id)
        if order is None:
            raise OrderNotFoundError()
        ensure_can_access(principal, order.user_id, OrderNotFoundError())
        return order

    async def get_order_item(self, principal: Principal, order_item_id: int) -> OrderItem:
        result = await self.db.execute(
            select(OrderItem)
            .where(OrderItem.id == order_item_id)
            .options(selectinload(OrderItem.order), selectinload(OrderItem.options))
        )
        order_item = result.scalar_one_or_none()
        if order_item is None:
            raise OrderItemNotFoundError()
        ensure_can_access(principal, order_item.order.user_id, OrderItemNotFoundError())
        return order_item

    async def get_order_item_option(self, principal: Principal, option_row_id: int) -> OrderItemOption:
        result = await self.db.execute(
            select(OrderItemOption)
            .where(OrderItemOption.id == option_row_id)
            .options(selectinload(OrderItemOption.order_item).selectinload(OrderItem.order))
        )
        option_row = result.scalar_one_or_none()
        if option_row is None:
            raise OrderItemOptionNotFoundError()
        ensure_can_access(principal, option_row.order_item.order.user_id, OrderItemOptionNotFoundError())
        return option_row

    # =========================================================================
    # WRITES
    # =========================================================================

    async def update_order(
        self,
        principal: Principal,
        order_id: int,
        status: Optional[OrderStatus] = None,
        notes: Optional[str] = None,
        discount: Optional[Decimal] = None,
        tax: Optional[Decimal] = None,
    ) -> Order:
        """
        Persist an order update.

        Admins write anything: status is an opaque write with no transition
        check, and discount/tax re-derive total_amount from the snapshot lines.
        A discount larger than subtotal plus tax is rejected. Staff may write
        status on any order (fulfillment) but cannot cancel one that is already
        completed or cancelled. Owners may edit notes or cancel while the order
        is PENDING.
        """
        order = await self._load_order(order_id)
        if order is None:
            raise OrderNotFoundError()

        staff_status_write = (
            principal.is_staff and status is not None and notes is None
            and discount is None and tax is None
        )
        if not staff_status_write:
            ensure_can_access(principal, order.user_id, OrderNotFoundError())

        if not principal.is_admin:
            if discount is not None or tax is not None:
                raise ForbiddenError("Only administrators can change order pricing")
            if not principal.is_staff:
                if status is not None and status not in (order.status, OrderStatus.CANCELLED):
                    raise ForbiddenError("You can only cancel your own order")
                if order.status != OrderStatus.PENDING:
                    raise ForbiddenError("Orders can only be changed while pending")
            elif status == OrderStatus.CANCELLED and order.status in TERMINAL_ORDER_STATUSES:
                raise ForbiddenError(f"Cannot cancel an order that is already {order.status.value}")

        if status is not None and status != order.status:
            logger.info(
                f"Order {order.order_number} status {order.status.value} -> {status.value} "
                f"by user {principal.id}"
            )
            order.status = status
            if status == OrderStatus.COMPLETED:
                order.completed_at = utcnow()

        if notes is not None:
            order.notes = notes

        if discount is not None or tax is not None:
            new_discount = to_money(discount if discount is not None else order.discount)
            new_tax = to_money(tax if tax is not None else order.tax)
            ceiling = self._snapshot_subtotal(order) + new_tax
            if new_discount > ceiling:
                raise ValidationError(
                    "Discount cannot exceed the order subtotal plus tax",
                    details={"discount": str(new_discount), "max_discount": str(ceiling)},
                )
            order.discount = new_discount
            order.tax = new_tax
            self._recalculate_totals(order)

        order.updated_at = utcnow()
        await self.db.flush()
        return await self._load_order(order.id)

    async def delete_order(self, principal: Principal, order_id: int) -> None:
        order = await self.get_order(principal, order_id)

        if not principal.is_admin and order.status != OrderStatus.PENDING:
            raise ForbiddenError("Cannot delete orders that are already processed")

        await self.db.delete(order)
        await self.db.flush()
        logger.info(f"Order {order.order_number} deleted by user {principal.id}")

    async def delete_order_item(self, principal: Principal, order_item_id: int) -> None:
        """
        Remove one line from an order.

        Owners may only do this while the order is PENDING; admins always can.
        The order's totals are re-derived from the remaining snapshot lines.
        """
        order_item = await self.get_order_item(principal, order_item_id)
        order = await self._load_order(order_item.order_id)

        if not principal.is_admin and order.status != OrderStatus.PENDING:
            raise ForbiddenError("Cannot delete items from orders that are already processed")

        order.items.remove(order_item)
        self._recalculate_totals(order)
        order.updated_at = utcnow()
        await self.db.flush()
        logger.info(f"Order item {order_item_id} removed from order {order.order_number} by user {principal.id}")

    async def delete_order_item_option(self, principal: Principal, option_row_id: int) -> None:
        option_row = await self.get_order_item_option(principal, option_row_id)
        order = await self._load_order(option_row.order_item.order_id)

        if not principal.is_admin and order.status != OrderStatus.PENDING:
            raise ForbiddenError("Cannot change items of orders that are already processed")

        order_item = next(item for item in order.items if item.id == option_row.order_item_id)
        order_item.options.remove(option_row)
        self._recalculate_totals(order)
        order.updated_at = utcnow()
        await self.db.flush()

    @staticmethod
    def _snapshot_subtotal(order: Order) -> Decimal:
        """Subtotal from captured prices, never from the catalog."""
        subtotal = Decimal("0")
        for item in order.items:
            modifiers = sum((to_money(opt.price_modifier) for opt in item.options), Decimal("0"))
            subtotal += (to_money(item.unit_price) + modifiers) * item.quantity
        return to_money(subtotal)

    @classmethod
    def _recalculate_totals(cls, order: Order) -> None:
        order.subtotal = cls._snapshot_subtotal(order)
        # removing lines can leave an existing discount larger than what remains
        total = order.subtotal + to_money(order.tax) - to_money(order.discount)
        order.total_amount = to_money(max(total, Decimal("0")))
