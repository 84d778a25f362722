"""Tests for quote formatting helpers."""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

from venue_office.schemas.pricing import LineItemCategory
from venue_office.services.line_item_service import PricingLineItem
from venue_office.services.pricing_display import (
    calculate_category_subtotals,
    calculate_savings,
    format_currency,
    generate_pricing_summary_text,
    group_line_items_by_category,
)

ROOMS = PricingLineItem(
    category=LineItemCategory.ACCOMMODATION,
    item="Double Bed",
    qty=4,
    unit="bed-night",
    unit_price=Decimal("120"),
    total=Decimal("480"),
)
LUNCH = PricingLineItem(
    category=LineItemCategory.CATERING,
    item="Lunch",
    qty=16,
    unit="serve",
    unit_price=Decimal("30"),
    total=Decimal("480"),
    description="2 meals, 16 total serves",
)


def test_format_currency() -> None:
    assert format_currency(Decimal("1234.5")) == "$1,234.50"
    assert format_currency(Decimal("-48")) == "-$48.00"
    assert format_currency(Decimal("1499.5"), show_cents=False) == "$1,500"
    assert format_currency(0) == "$0.00"


def test_grouping_keeps_every_category() -> None:
    grouped = group_line_items_by_category([ROOMS, LUNCH])

    assert grouped[LineItemCategory.ACCOMMODATION] == [ROOMS]
    assert grouped[LineItemCategory.CATERING] == [LUNCH]
    assert grouped[LineItemCategory.VENUE] == []


def test_category_subtotals_prefer_discounted_totals() -> None:
    discounted = replace(ROOMS, discounted_total=Decimal("432"))

    subtotals = calculate_category_subtotals([discounted, LUNCH])

    assert subtotals[LineItemCategory.ACCOMMODATION] == Decimal("432")
    assert subtotals[LineItemCategory.CATERING] == Decimal("480")
    assert subtotals[LineItemCategory.EXTRAS] == Decimal("0")


def test_summary_text_lists_items_and_totals() -> None:
    text = generate_pricing_summary_text(
        [ROOMS, LUNCH], Decimal("960"), Decimal("96"), Decimal("864")
    )

    assert "ACCOMMODATION" in text
    assert "Double Bed: 4 x $120.00 = $480.00" in text
    assert "  (2 meals, 16 total serves)" in text
    assert "Discount: -$96.00" in text
    assert text.rstrip().endswith("TOTAL: $864.00")
    assert "VENUE" not in text


def test_summary_text_shows_surcharge() -> None:
    text = generate_pricing_summary_text(
        [ROOMS], Decimal("480"), Decimal("-20"), Decimal("500")
    )

    assert "Surcharge: $20.00" in text
    assert "Discount" not in text


def test_savings() -> None:
    savings = calculate_savings(Decimal("480"), Decimal("48"))

    assert savings.percentage == Decimal("10.00")
    assert savings.formatted == "$48.00 (10% off)"
    assert calculate_savings(Decimal("0"), Decimal("0")).percentage == Decimal("0.00")
