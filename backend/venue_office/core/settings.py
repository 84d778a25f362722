"""Specialized settings adapters for the pricing engine."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from venue_office.core.config import get_settings


class PricingRates(BaseModel):
    """Slim view of the fixed rates that sit outside the price catalog."""

    whole_centre_daily_rate: Decimal = Decimal("1500")
    byo_linen_discount: Decimal = Decimal("25")
    percolated_coffee_price: Decimal = Decimal("3")

    model_config = ConfigDict(frozen=True)


def get_pricing_rates() -> PricingRates:
    """Return pricing-specific configuration."""

    settings = get_settings()
    return PricingRates(
        whole_centre_daily_rate=settings.whole_centre_daily_rate,
        byo_linen_discount=settings.byo_linen_discount,
        percolated_coffee_price=settings.percolated_coffee_price,
    )
