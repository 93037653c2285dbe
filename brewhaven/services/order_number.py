"""
Order number generator

Format: {prefix}-{YYYYMMDD}-{XXXXXX}, e.g. ORD-20261019-3FA9C1.

There is no reservation step: a candidate is checked against existing orders
and regenerated on collision. Two concurrent requests can still pick the same
free number; the unique constraint on orders.order_number makes the loser's
insert fail, and the order service retries within the same attempt budget.
"""
import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from brewhaven.core.config import settings
from brewhaven.core.exceptions import OrderNumberExhaustedError
from brewhaven.core.utils import utcnow
from brewhaven.models import Order

logger = logging.getLogger(__name__)


class OrderNumberGenerator:

    def __init__(self, prefix: Optional[str] = None, max_attempts: Optional[int] = None):
        self.prefix = prefix or settings.ORDER_NUMBER_PREFIX
        self.max_attempts = max_attempts or settings.ORDER_NUMBER_MAX_ATTEMPTS

    def candidate(self) -> str:
        """Build one candidate number (no uniqueness check)."""
        return f"{self.prefix}-{utcnow().strftime('%Y%m%d')}-{uuid.uuid4().hex[:6].upper()}"

    @staticmethod
    async def exists(db: AsyncSession, order_number: str) -> bool:
        result = await db.execute(
            select(Order.id).where(Order.order_number == order_number)
        )
        return result.first() is not None

    async def generate(self, db: AsyncSession) -> str:
        """
        Return a number not used by any order visible to this session.

        Raises:
            OrderNumberExhaustedError: every attempt collided
        """
        for attempt in range(1, self.max_attempts + 1):
            order_number = self.candidate()
            if not await self.exists(db, order_number):
                return order_number
            logger.warning(
                f"Order number collision on {order_number} (attempt {attempt}/{self.max_attempts})"
            )

        raise OrderNumberExhaustedError(self.max_attempts)
