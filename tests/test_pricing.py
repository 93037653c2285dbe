"""
Tests for the price calculator and money helpers.
"""
from decimal import Decimal

import pytest

from brewhaven.core.exceptions import (
    ItemNotFoundError,
    ItemUnavailableError,
    OptionMismatchError,
    UpstreamUnavailableError,
    ValidationError,
)
from brewhaven.core.utils import to_money
from brewhaven.services.catalog import CatalogReader
from brewhaven.services.pricing import OrderLine, PriceCalculator


class TestToMoney:

    def test_rounds_half_up(self):
        assert to_money(Decimal("1.005")) == Decimal("1.01")
        assert to_money(Decimal("2.344")) == Decimal("2.34")

    def test_none_is_zero(self):
        assert to_money(None) == Decimal("0.00")

    def test_float_goes_through_str(self):
        assert to_money(0.1 + 0.2) == Decimal("0.30")


class TestPriceCalculator:
    """Pricing against the seeded menu."""

    async def test_latte_with_oat_milk_times_two(self, db, seed):
        """4.00 x 2 + 0.50 x 2 = 9.00"""
        calculator = PriceCalculator(CatalogReader(db))
        priced = await calculator.calculate([
            OrderLine(item_id=seed.latte_id, quantity=2, option_ids=[seed.oat_id]),
        ])

        assert priced.subtotal == Decimal("9.00")
        line = priced.lines[0]
        assert line.unit_price == Decimal("4.00")
        assert line.item_name == "Latte"
        assert [opt.price_modifier for opt in line.options] == [Decimal("0.50")]
        assert line.line_total == Decimal("9.00")

    async def test_subtotal_sums_lines(self, db, seed):
        calculator = PriceCalculator(CatalogReader(db))
        priced = await calculator.calculate([
            OrderLine(item_id=seed.latte_id, quantity=1, option_ids=[seed.oat_id, seed.shot_id]),
            OrderLine(item_id=seed.espresso_id, quantity=3, option_ids=[seed.small_id]),
        ])

        # (4.00 + 0.50 + 0.75) + 3 x (2.50 - 0.25) = 5.25 + 6.75
        assert priced.subtotal == Decimal("12.00")
        assert [line.line_total for line in priced.lines] == [Decimal("5.25"), Decimal("6.75")]

    async def test_duplicate_option_counts_once(self, db, seed):
        calculator = PriceCalculator(CatalogReader(db))
        priced = await calculator.calculate([
            OrderLine(item_id=seed.latte_id, quantity=1, option_ids=[seed.oat_id, seed.oat_id]),
        ])
        assert priced.subtotal == Decimal("4.50")
        assert len(priced.lines[0].options) == 1

    async def test_missing_item(self, db, seed):
        calculator = PriceCalculator(CatalogReader(db))
        with pytest.raises(ItemNotFoundError) as exc_info:
            await calculator.calculate([OrderLine(item_id=9999, quantity=1)])

        assert isinstance(exc_info.value, ValidationError)
        assert "9999" in exc_info.value.message

    async def test_unavailable_item_aborts_batch(self, db, seed):
        calculator = PriceCalculator(CatalogReader(db))
        with pytest.raises(ItemUnavailableError) as exc_info:
            await calculator.calculate([
                OrderLine(item_id=seed.latte_id, quantity=1),
                OrderLine(item_id=seed.pumpkin_id, quantity=1),
            ])

        assert isinstance(exc_info.value, UpstreamUnavailableError)
        assert exc_info.value.message == "Item Pumpkin Spice Latte is currently unavailable"

    async def test_unknown_option_skipped_by_default(self, db, seed):
        calculator = PriceCalculator(CatalogReader(db), strict_options=False)
        priced = await calculator.calculate([
            OrderLine(item_id=seed.latte_id, quantity=1, option_ids=[424242]),
        ])
        assert priced.subtotal == Decimal("4.00")
        assert priced.lines[0].options == []

    async def test_foreign_option_priced_by_default(self, db, seed):
        """Options are not checked against their item unless strict mode is on."""
        calculator = PriceCalculator(CatalogReader(db), strict_options=False)
        priced = await calculator.calculate([
            OrderLine(item_id=seed.espresso_id, quantity=1, option_ids=[seed.oat_id]),
        ])
        assert priced.subtotal == Decimal("3.00")

    async def test_strict_mode_rejects_unknown_option(self, db, seed):
        calculator = PriceCalculator(CatalogReader(db), strict_options=True)
        with pytest.raises(OptionMismatchError):
            await calculator.calculate([
                OrderLine(item_id=seed.latte_id, quantity=1, option_ids=[424242]),
            ])

    async def test_strict_mode_rejects_foreign_option(self, db, seed):
        calculator = PriceCalculator(CatalogReader(db), strict_options=True)
        with pytest.raises(OptionMismatchError) as exc_info:
            await calculator.calculate([
                OrderLine(item_id=seed.espresso_id, quantity=1, option_ids=[seed.oat_id]),
            ])
        assert exc_info.value.details["option_id"] == seed.oat_id

    async def test_deterministic(self, db, seed):
        calculator = PriceCalculator(CatalogReader(db))
        lines = [OrderLine(item_id=seed.latte_id, quantity=3, option_ids=[seed.shot_id])]
        first = await calculator.calculate(lines)
        second = await calculator.calculate(lines)
        assert first == second
