"""Tests for discount policies applied to line items."""

from __future__ import annotations

from decimal import Decimal

import pytest

from venue_office.core.errors import DiscountPolicyError
from venue_office.schemas.pricing import (
    LineItemCategory,
    PercentageDiscount,
    PerItemOverrideDiscount,
    parse_discount_policy,
)
from venue_office.services.discount_service import apply_discount
from venue_office.services.line_item_service import PricingLineItem


def _item(category: LineItemCategory, label: str, qty: int, unit_price: str) -> PricingLineItem:
    price = Decimal(unit_price)
    return PricingLineItem(
        category=category,
        item=label,
        qty=qty,
        unit="unit",
        unit_price=price,
        total=qty * price,
    )


ITEMS = (
    _item(LineItemCategory.ACCOMMODATION, "Double Bed", 4, "120"),
    _item(LineItemCategory.ACCOMMODATION, "Double Bed (BYO Linen)", 2, "95"),
    _item(LineItemCategory.VENUE, "Chapel", 1, "200"),
)


def test_no_policy_leaves_items_untouched() -> None:
    outcome = apply_discount(ITEMS, None)

    assert outcome.line_items == ITEMS
    assert outcome.discount_amount == Decimal("0")


def test_percentage_discount_applies_to_every_item() -> None:
    outcome = apply_discount(ITEMS[:1], PercentageDiscount(percentage=Decimal("10")))

    (item,) = outcome.line_items
    assert item.total == Decimal("480")
    assert item.discounted_total == Decimal("432")
    assert outcome.discount_amount == Decimal("48")
    assert ITEMS[0].discounted_total is None


def test_zero_percent_still_records_discounted_totals() -> None:
    outcome = apply_discount(ITEMS, PercentageDiscount(percentage=Decimal("0")))

    assert outcome.discount_amount == Decimal("0")
    assert all(item.discounted_total == item.total for item in outcome.line_items)


def test_override_applies_to_every_matching_item() -> None:
    policy = PerItemOverrideDiscount(
        overrides=[
            {
                "category": "accommodation",
                "item": "Double Bed",
                "new_unit_price": "90",
            }
        ]
    )

    outcome = apply_discount(ITEMS, policy)

    plain, byo, chapel = outcome.line_items
    assert plain.discounted_unit_price == Decimal("90")
    assert plain.discounted_total == Decimal("360")
    assert byo.discounted_unit_price == Decimal("90")
    assert byo.discounted_total == Decimal("180")
    assert chapel.discounted_total is None
    assert outcome.discount_amount == Decimal("130")


def test_override_ignores_other_categories() -> None:
    policy = PerItemOverrideDiscount(
        overrides=[{"category": "catering", "item": "Chapel", "new_unit_price": "0"}]
    )

    outcome = apply_discount(ITEMS, policy)

    assert outcome.discount_amount == Decimal("0")
    assert all(item.discounted_total is None for item in outcome.line_items)


def test_override_surcharge_requires_explicit_flag() -> None:
    overrides = [{"category": "venue", "item": "Chapel", "new_unit_price": "250"}]

    with pytest.raises(DiscountPolicyError):
        apply_discount(ITEMS, PerItemOverrideDiscount(overrides=overrides))

    outcome = apply_discount(
        ITEMS, PerItemOverrideDiscount(overrides=overrides, allow_surcharge=True)
    )
    assert outcome.discount_amount == Decimal("-50")


def test_parse_discount_policy_uses_type_tag() -> None:
    policy = parse_discount_policy({"type": "percentage", "percentage": "15"})

    assert isinstance(policy, PercentageDiscount)
    assert policy.percentage == Decimal("15")
    assert parse_discount_policy(None) is None


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "percentage", "percentage": "120"},
        {"type": "per_item_override", "overrides": []},
        {"type": "voucher", "code": "SPRING"},
    ],
)
def test_parse_discount_policy_rejects_invalid_payloads(payload) -> None:
    with pytest.raises(DiscountPolicyError):
        parse_discount_policy(payload)
