"""Pricing engine entry point for booking selections."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from venue_office.core.errors import DiscountExceedsSubtotal
from venue_office.core.settings import PricingRates
from venue_office.schemas.pricing import (
    PercentageDiscount,
    PerItemOverrideDiscount,
    parse_discount_policy,
)
from venue_office.schemas.selections import BookingSelections, parse_selections
from venue_office.services.catalog_service import PriceCatalogSnapshot, load_catalog
from venue_office.services.discount_service import apply_discount
from venue_office.services.line_item_service import PricingLineItem, compute_line_items

logger = logging.getLogger(__name__)

MONEY_PLACES = Decimal("0.01")


class NegativeTotalMode(str, enum.Enum):
    """What to do when a discount exceeds the subtotal."""

    REJECT = "reject"
    CLAMP = "clamp"


@dataclass(frozen=True, slots=True)
class PricingResult:
    """Aggregate pricing output for a set of selections."""

    line_items: tuple[PricingLineItem, ...]
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
    price_snapshot: PriceCatalogSnapshot
    discount_policy: PercentageDiscount | PerItemOverrideDiscount | None = None
    clamped: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialize the result to plain types for responses."""

        return {
            "line_items": [item.to_dict() for item in self.line_items],
            "subtotal": _to_str(self.subtotal),
            "discount_amount": _to_str(self.discount_amount),
            "total": _to_str(self.total),
            "price_snapshot": self.price_snapshot.to_dict(),
            "discount_policy": (
                self.discount_policy.model_dump(mode="json")
                if self.discount_policy is not None
                else None
            ),
            "clamped": self.clamped,
        }


def _to_str(value: Decimal) -> str:
    return f"{value.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP):.2f}"


async def calculate_pricing(
    session: AsyncSession,
    selections: BookingSelections | dict[str, Any],
    policy: PercentageDiscount | PerItemOverrideDiscount | dict[str, Any] | None = None,
    *,
    negative_total: NegativeTotalMode = NegativeTotalMode.REJECT,
    catalog: PriceCatalogSnapshot | None = None,
    rates: PricingRates | None = None,
) -> PricingResult:
    """Load the catalog and produce a complete pricing result."""

    parsed = parse_selections(selections)
    parsed_policy = parse_discount_policy(policy)
    if catalog is None:
        catalog = await load_catalog(session)
    return price_selections(
        parsed,
        catalog,
        parsed_policy,
        negative_total=negative_total,
        rates=rates,
    )


def price_selections(
    selections: BookingSelections,
    catalog: PriceCatalogSnapshot,
    policy: PercentageDiscount | PerItemOverrideDiscount | None = None,
    *,
    negative_total: NegativeTotalMode = NegativeTotalMode.REJECT,
    rates: PricingRates | None = None,
) -> PricingResult:
    """Price already-validated selections against a catalog snapshot."""

    items = compute_line_items(selections, catalog, rates=rates)
    subtotal = sum((item.total for item in items), Decimal("0"))

    outcome = apply_discount(items, policy)
    discount_amount = outcome.discount_amount
    total = subtotal - discount_amount
    clamped = False

    if total < 0:
        if negative_total is NegativeTotalMode.REJECT:
            raise DiscountExceedsSubtotal(
                f"Discount of {discount_amount} exceeds subtotal of {subtotal}"
            )
        logger.warning(
            "Clamping negative total %s to zero (subtotal %s, discount %s)",
            total,
            subtotal,
            discount_amount,
        )
        discount_amount = subtotal
        total = Decimal("0")
        clamped = True

    return PricingResult(
        line_items=outcome.line_items,
        subtotal=subtotal,
        discount_amount=discount_amount,
        total=total,
        price_snapshot=catalog,
        discount_policy=policy,
        clamped=clamped,
    )
