"""
Price calculator

Prices a list of order lines at current catalog prices and returns the
snapshot values that become OrderItem / OrderItemOption rows:

    line_total = unit_price * qty + sum(option.price_modifier * qty)
    subtotal   = sum(line_total)

All-or-nothing: a missing or unavailable item aborts the whole batch. No
writes happen here.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence

from brewhaven.core.config import settings
from brewhaven.core.exceptions import (
    ItemNotFoundError,
    ItemUnavailableError,
    OptionMismatchError,
)
from brewhaven.core.utils import to_money
from brewhaven.services.catalog import CatalogReader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderLine:
    """One requested line: item, quantity, chosen options, notes."""
    item_id: int
    quantity: int
    option_ids: Sequence[int] = ()
    notes: Optional[str] = None


@dataclass(frozen=True)
class PricedOption:
    option_id: int
    name: str
    price_modifier: Decimal


@dataclass(frozen=True)
class PricedLine:
    item_id: int
    item_name: str
    quantity: int
    unit_price: Decimal
    notes: Optional[str]
    options: List[PricedOption] = field(default_factory=list)
    line_total: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class PricedOrder:
    lines: List[PricedLine]
    subtotal: Decimal


class PriceCalculator:
    """
    Prices order lines against the catalog.

    Unknown option ids are skipped unless strict validation is on, in which
    case unknown options and options belonging to another item raise
    OptionMismatchError.
    """

    def __init__(self, catalog: CatalogReader, strict_options: Optional[bool] = None):
        self.catalog = catalog
        self.strict_options = (
            settings.STRICT_OPTION_VALIDATION if strict_options is None else strict_options
        )

    async def calculate(self, lines: Sequence[OrderLine]) -> PricedOrder:
        subtotal = Decimal("0")
        priced_lines: List[PricedLine] = []

        for line in lines:
            priced = await self._price_line(line)
            subtotal += priced.line_total
            priced_lines.append(priced)

        return PricedOrder(lines=priced_lines, subtotal=to_money(subtotal))

    async def _price_line(self, line: OrderLine) -> PricedLine:
        item = await self.catalog.get_item(line.item_id)

        if item is None:
            raise ItemNotFoundError(line.item_id)

        if not item.is_available:
            raise ItemUnavailableError(item.id, item.name)

        unit_price = to_money(item.price)
        line_total = unit_price * line.quantity

        # Selecting the same option twice counts once
        requested_ids = list(dict.fromkeys(line.option_ids or ()))
        found = await self.catalog.get_options(requested_ids)

        priced_options: List[PricedOption] = []
        for option_id in requested_ids:
            option = found.get(option_id)

            if option is None:
                if self.strict_options:
                    raise OptionMismatchError(
                        f"Option {option_id} does not exist",
                        item_id=item.id,
                        option_id=option_id,
                    )
                logger.warning(f"Skipping unknown option {option_id} on item {item.id}")
                continue

            if option.item_id != item.id and self.strict_options:
                raise OptionMismatchError(
                    f"Option {option.name} does not belong to item {item.name}",
                    item_id=item.id,
                    option_id=option_id,
                )

            modifier = to_money(option.price_modifier)
            line_total += modifier * line.quantity
            priced_options.append(
                PricedOption(option_id=option.id, name=option.name, price_modifier=modifier)
            )

        return PricedLine(
            item_id=item.id,
            item_name=item.name,
            quantity=line.quantity,
            unit_price=unit_price,
            notes=line.notes,
            options=priced_options,
            line_total=to_money(line_total),
        )
