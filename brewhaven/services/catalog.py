"""
Catalog reader

Read-only view of items and options for pricing. All reads go through the
session the caller is working in, so pricing and the order insert observe the
same transaction.
"""
from typing import Dict, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from brewhaven.models import Item, ItemOption


class CatalogReader:
    """Resolves item and option ids to their current catalog rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_item(self, item_id: int) -> Optional[Item]:
        result = await self.db.execute(select(Item).where(Item.id == item_id))
        return result.scalar_one_or_none()

    async def get_options(self, option_ids: Iterable[int]) -> Dict[int, ItemOption]:
        """Bulk lookup; unknown ids are simply absent from the result."""
        ids = list(dict.fromkeys(option_ids))
        if not ids:
            return {}
        result = await self.db.execute(select(ItemOption).where(ItemOption.id.in_(ids)))
        return {option.id: option for option in result.scalars().all()}
