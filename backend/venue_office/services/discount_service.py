"""Applies a discount policy on top of computed line items."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from decimal import Decimal

from venue_office.core.errors import DiscountPolicyError
from venue_office.schemas.pricing import PercentageDiscount, PerItemOverrideDiscount
from venue_office.services.line_item_service import PricingLineItem

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


@dataclass(frozen=True, slots=True)
class DiscountOutcome:
    """Adjusted copies of the line items and the total amount taken off."""

    line_items: tuple[PricingLineItem, ...]
    discount_amount: Decimal


def apply_discount(
    line_items: Sequence[PricingLineItem],
    policy: PercentageDiscount | PerItemOverrideDiscount | None,
) -> DiscountOutcome:
    """Overlay ``policy`` onto ``line_items`` without touching the originals."""

    if policy is None:
        return DiscountOutcome(tuple(line_items), Decimal("0"))
    if isinstance(policy, PercentageDiscount):
        return _apply_percentage(line_items, policy.percentage)
    if isinstance(policy, PerItemOverrideDiscount):
        return _apply_overrides(line_items, policy)
    raise DiscountPolicyError(f"Unsupported discount policy: {policy!r}")


def _apply_percentage(
    line_items: Sequence[PricingLineItem], percentage: Decimal
) -> DiscountOutcome:
    multiplier = Decimal(1) - Decimal(percentage) / HUNDRED
    adjusted: list[PricingLineItem] = []
    discount = Decimal("0")
    for item in line_items:
        discounted_total = item.total * multiplier
        discount += item.total - discounted_total
        adjusted.append(replace(item, discounted_total=discounted_total))
    return DiscountOutcome(tuple(adjusted), discount)


def _apply_overrides(
    line_items: Sequence[PricingLineItem], policy: PerItemOverrideDiscount
) -> DiscountOutcome:
    adjusted = list(line_items)
    for override in policy.overrides:
        # Every matching item is overridden, not just the first.
        for index, item in enumerate(adjusted):
            if item.category != override.category or override.item not in item.item:
                continue
            discounted_total = item.qty * override.new_unit_price
            if discounted_total > item.total and not policy.allow_surcharge:
                raise DiscountPolicyError(
                    f"Override for {item.item!r} raises the price from "
                    f"{item.total} to {discounted_total}; "
                    "set allow_surcharge to apply a surcharge"
                )
            adjusted[index] = replace(
                item,
                discounted_unit_price=override.new_unit_price,
                discounted_total=discounted_total,
            )

    discount = Decimal("0")
    for item in adjusted:
        if item.discounted_total is not None:
            discount += item.total - item.discounted_total
    if discount < 0:
        logger.info("Per-item overrides add a net surcharge of %s", -discount)
    return DiscountOutcome(tuple(adjusted), discount)
