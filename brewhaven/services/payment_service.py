"""
Payment lifecycle

One payment per order, status machine PENDING -> PAID | FAILED, PAID ->
REFUNDED. Marking a payment PAID while its order is still PENDING moves the
order to PREPARING; both writes are flushed in the caller's transaction, so
they commit or roll back together.

Rows are read FOR UPDATE (payment first, then its order) so two concurrent
updates on the same payment serialize instead of interleaving.

Services only flush, except create_payment: when the insert loses the race
on the payments.order_id unique constraint it rolls the session back before
raising PaymentAlreadyExistsError, so the caller gets a usable session.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from brewhaven.core.exceptions import (
    ForbiddenError,
    InvalidTransitionError,
    OrderNotFoundError,
    PaymentAlreadyExistsError,
    PaymentNotFoundError,
    ValidationError,
)
from brewhaven.core.permissions import Principal, can_access, ensure_admin, ensure_can_access
from brewhaven.core.utils import to_money, utcnow
from brewhaven.models import (
    Order,
    OrderStatus,
    Payment,
    PaymentMethod,
    PaymentStatus,
    is_valid_payment_transition,
)

logger = logging.getLogger(__name__)


class PaymentService:
    """Scope-guarded payment operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load_payment(self, payment_id: int, lock: bool = False) -> Optional[Payment]:
        query = select(Payment).where(Payment.id == payment_id)
        if lock:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _load_order(self, order_id: int, lock: bool = False) -> Optional[Order]:
        query = select(Order).where(Order.id == order_id)
        if lock:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _reload(self, payment_id: int) -> Payment:
        result = await self.db.execute(
            select(Payment)
            .where(Payment.id == payment_id)
            .options(selectinload(Payment.order))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    # =========================================================================
    # READS
    # =========================================================================

    async def list_payments(self, principal: Principal) -> List[Payment]:
        """Admins see every payment; everyone else sees payments on their orders."""
        query = select(Payment).options(selectinload(Payment.order))
        if not principal.is_admin:
            query = query.join(Order, Payment.order_id == Order.id).where(Order.user_id == principal.id)
        query = query.order_by(Payment.created_at.desc(), Payment.id.desc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_payment(self, principal: Principal, payment_id: int) -> Payment:
        result = await self.db.execute(
            select(Payment)
            .where(Payment.id == payment_id)
            .options(selectinload(Payment.order))
        )
        payment = result.scalar_one_or_none()
        if payment is None:
            raise PaymentNotFoundError()
        ensure_can_access(principal, payment.order.user_id, PaymentNotFoundError())
        return payment

    # =========================================================================
    # WRITES
    # =========================================================================

    async def create_payment(
        self,
        principal: Principal,
        order_id: int,
        amount: Decimal,
        payment_method: PaymentMethod,
        transaction_id: Optional[str] = None,
    ) -> Payment:
        """
        Bind a PENDING payment to an order.

        Raises:
            OrderNotFoundError: order does not exist
            ForbiddenError: caller is neither the owner nor an admin
            PaymentAlreadyExistsError: the order already has a payment, including
                when a concurrent request inserted it first
        """
        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError("Payment amount must be greater than zero")

        order = await self._load_order(order_id, lock=True)
        if order is None:
            raise OrderNotFoundError()

        if not can_access(principal, order.user_id):
            logger.warning(f"User {principal.id} refused payment creation on order {order_id}")
            raise ForbiddenError("You are not authorized to create a payment for this order")

        existing = await self.db.execute(select(Payment.id).where(Payment.order_id == order_id))
        if existing.first() is not None:
            raise PaymentAlreadyExistsError(order_id)

        if amount != to_money(order.total_amount):
            logger.warning(
                f"Payment amount {amount} differs from order {order.order_number} total {order.total_amount}"
            )

        payment = Payment(
            order_id=order_id,
            amount=amount,
            payment_method=payment_method,
            status=PaymentStatus.PENDING,
            transaction_id=transaction_id,
        )
        self.db.add(payment)

        try:
            await self.db.flush()
        except IntegrityError as exc:
            await self.db.rollback()
            raise PaymentAlreadyExistsError(order_id) from exc

        logger.info(f"Payment {payment.id} created for order {order.order_number} ({payment_method.value}, {amount})")
        return await self._reload(payment.id)

    async def update_payment(
        self,
        principal: Principal,
        payment_id: int,
        status: Optional[PaymentStatus] = None,
        transaction_id: Optional[str] = None,
        payment_date: Optional[datetime] = None,
    ) -> Payment:
        """
        Apply a status change and/or admin field edits.

        Owners may only move PENDING -> PAID; the payment date is stamped
        server-side. Admins may set any status plus transaction_id and
        payment_date. Transitions outside the state machine are applied for
        admins but logged as overrides.

        Whatever the caller, a resulting PAID status advances a PENDING order
        to PREPARING in the same flush.
        """
        payment = await self._load_payment(payment_id, lock=True)
        if payment is None:
            raise PaymentNotFoundError()

        order = await self._load_order(payment.order_id, lock=True)
        ensure_can_access(principal, order.user_id if order else None, PaymentNotFoundError())

        previous = payment.status

        if principal.is_admin:
            if status is not None and status != previous:
                if not is_valid_payment_transition(previous, status):
                    logger.warning(
                        f"Admin {principal.id} override on payment {payment.id}: "
                        f"{previous.value} -> {status.value}"
                    )
                payment.status = status
            if transaction_id is not None:
                payment.transaction_id = transaction_id
            if payment_date is not None:
                payment.payment_date = payment_date
            elif payment.status == PaymentStatus.PAID and payment.payment_date is None:
                payment.payment_date = utcnow()
        else:
            if transaction_id is not None or payment_date is not None:
                raise ForbiddenError("Only administrators can change payment details")
            if status is None:
                raise InvalidTransitionError("A status is required")
            if status != PaymentStatus.PAID or previous != PaymentStatus.PENDING:
                logger.warning(
                    f"User {principal.id} refused payment {payment.id} transition "
                    f"{previous.value} -> {status.value}"
                )
                raise ForbiddenError("You can only mark a pending payment as paid")
            payment.status = PaymentStatus.PAID
            payment.payment_date = utcnow()

        payment.updated_at = utcnow()

        if payment.status != previous:
            logger.info(f"Payment {payment.id} {previous.value} -> {payment.status.value} by user {principal.id}")

        if payment.status == PaymentStatus.PAID and order.status == OrderStatus.PENDING:
            order.status = OrderStatus.PREPARING
            order.updated_at = utcnow()
            logger.info(f"Order {order.order_number} advanced to PREPARING after payment {payment.id}")

        await self.db.flush()
        return await self._reload(payment.id)

    async def delete_payment(self, principal: Principal, payment_id: int) -> None:
        ensure_admin(principal, "Only administrators can delete payments")

        payment = await self._load_payment(payment_id, lock=True)
        if payment is None:
            raise PaymentNotFoundError()

        await self.db.delete(payment)
        await self.db.flush()
        logger.info(f"Payment {payment_id} deleted by admin {principal.id}")
