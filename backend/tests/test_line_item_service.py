"""Tests for turning selections into line items."""

from __future__ import annotations

import logging
from decimal import Decimal

from venue_office.core.settings import PricingRates
from venue_office.schemas.pricing import LineItemCategory
from venue_office.schemas.selections import parse_selections
from venue_office.services.catalog_service import PriceCatalogSnapshot
from venue_office.services.line_item_service import (
    PERCOLATED_COFFEE_LABEL,
    WHOLE_CENTRE_LABEL,
    PricingLineItem,
    compute_line_items,
    whole_centre_days,
)

RATES = PricingRates()
CATALOG = PriceCatalogSnapshot(
    meal_prices={"Lunch": Decimal("30"), "Dinner": Decimal("45")},
    room_types={"Double Bed": Decimal("120"), "Twin Single": Decimal("90")},
    spaces={"Chapel": Decimal("200"), "Main Hall": Decimal("350")},
)


def _selections(**categories):
    return parse_selections(
        {"arrival_date": "2024-06-01", "departure_date": "2024-06-03", **categories}
    )


def test_rooms_are_priced_per_bed_night() -> None:
    selections = _selections(
        accommodation={"rooms": [{"room_type_name": "Double Bed", "quantity": 2}]}
    )

    items = compute_line_items(selections, CATALOG, rates=RATES)

    assert len(items) == 1
    item = items[0]
    assert item.category is LineItemCategory.ACCOMMODATION
    assert item.item == "Double Bed"
    assert item.qty == 4
    assert item.unit == "bed-night"
    assert item.unit_price == Decimal("120")
    assert item.total == Decimal("480")
    assert item.description is None


def test_byo_linen_reduces_bed_price_and_labels_item() -> None:
    selections = _selections(
        accommodation={
            "rooms": [
                {"room_type_name": "Double Bed", "quantity": 1, "byo_linen": True}
            ]
        }
    )

    (item,) = compute_line_items(selections, CATALOG, rates=RATES)

    assert item.item == "Double Bed (BYO Linen)"
    assert item.unit_price == Decimal("95")
    assert item.total == Decimal("190")
    assert item.description == "Base: $120 - $25 BYO discount"


def test_meals_are_grouped_by_type_across_dates() -> None:
    selections = _selections(
        catering={
            "meals": [
                {"meal_type": "Lunch", "date": "2024-06-01", "headcount": 10},
                {"meal_type": "Dinner", "date": "2024-06-01", "headcount": 12},
                {"meal_type": "Lunch", "date": "2024-06-02", "headcount": 6},
            ]
        }
    )

    items = compute_line_items(selections, CATALOG, rates=RATES)

    assert [item.item for item in items] == ["Lunch", "Dinner"]
    lunch, dinner = items
    assert lunch.qty == 16
    assert lunch.total == Decimal("480")
    assert lunch.description == "2 meals, 16 total serves"
    assert dinner.description == "1 meal, 12 total serves"
    assert dinner.total == Decimal("540")


def test_percolated_coffee_only_when_requested() -> None:
    with_coffee = _selections(catering={"percolated_coffee": {"quantity": 20}})
    without_coffee = _selections(catering={"percolated_coffee": {"quantity": 0}})

    (coffee,) = compute_line_items(with_coffee, CATALOG, rates=RATES)
    assert coffee.item == PERCOLATED_COFFEE_LABEL
    assert coffee.unit_price == Decimal("3")
    assert coffee.total == Decimal("60")
    assert compute_line_items(without_coffee, CATALOG, rates=RATES) == []


def test_whole_centre_charges_every_calendar_day() -> None:
    selections = _selections(venue={"whole_centre": True})

    (item,) = compute_line_items(selections, CATALOG, rates=RATES)

    assert item.item == WHOLE_CENTRE_LABEL
    assert item.qty == 3
    assert item.unit_price == Decimal("1500")
    assert item.total == Decimal("4500")
    assert whole_centre_days(0) == 1
    assert whole_centre_days(2) == 3


def test_individual_spaces_priced_per_day() -> None:
    selections = _selections(
        venue={
            "spaces": [
                {"space_name": "Chapel", "days": 2},
                {"space_name": "Main Hall", "days": 1},
            ]
        }
    )

    items = compute_line_items(selections, CATALOG, rates=RATES)

    assert [(item.item, item.total) for item in items] == [
        ("Chapel", Decimal("400")),
        ("Main Hall", Decimal("350")),
    ]


def test_extras_use_caller_price() -> None:
    selections = _selections(
        extras=[{"item": "Projector hire", "quantity": 2, "unit_price": "40.00"}]
    )

    (item,) = compute_line_items(selections, CATALOG, rates=RATES)

    assert item.category is LineItemCategory.EXTRAS
    assert item.total == Decimal("80.00")


def test_unknown_catalog_entry_prices_at_zero(caplog) -> None:
    selections = _selections(
        accommodation={"rooms": [{"room_type_name": "Bunk Room", "quantity": 1}]}
    )

    with caplog.at_level(logging.WARNING):
        (item,) = compute_line_items(selections, CATALOG, rates=RATES)

    assert item.total == Decimal("0")
    assert "Bunk Room" in caplog.text


def test_configured_rates_are_respected() -> None:
    rates = PricingRates(whole_centre_daily_rate=Decimal("1800"))
    selections = parse_selections(
        {
            "arrival_date": "2024-06-01",
            "departure_date": "2024-06-01",
            "venue": {"whole_centre": True},
        }
    )

    (item,) = compute_line_items(selections, CATALOG, rates=rates)

    assert item.qty == 1
    assert item.total == Decimal("1800")


def test_line_item_round_trips_through_storage_format() -> None:
    item = PricingLineItem(
        category=LineItemCategory.VENUE,
        item="Chapel",
        qty=2,
        unit="day",
        unit_price=Decimal("200"),
        total=Decimal("400"),
        discounted_total=Decimal("360"),
    )

    data = item.to_dict()

    assert data["discounted_total"] == "360"
    assert "discounted_unit_price" not in data
    assert PricingLineItem.from_dict(data) == item
