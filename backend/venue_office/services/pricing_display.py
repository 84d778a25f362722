"""Formatting helpers for quotes, summaries and snapshot displays."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from venue_office.core.config import get_settings
from venue_office.schemas.pricing import LineItemCategory
from venue_office.services.line_item_service import PricingLineItem

_CENTS = Decimal("0.01")
_WHOLE = Decimal("1")


@dataclass(frozen=True, slots=True)
class Savings:
    amount: Decimal
    percentage: Decimal
    formatted: str


def format_currency(amount: Decimal | int, show_cents: bool = True) -> str:
    """Format an amount for display, e.g. ``$1,234.56`` or ``-$48.00``."""

    symbol = get_settings().currency_symbol
    places = _CENTS if show_cents else _WHOLE
    value = Decimal(amount).quantize(places, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    digits = f"{abs(value):,.2f}" if show_cents else f"{abs(value):,.0f}"
    return f"{sign}{symbol}{digits}"


def group_line_items_by_category(
    line_items: Iterable[PricingLineItem],
) -> dict[LineItemCategory, list[PricingLineItem]]:
    grouped: dict[LineItemCategory, list[PricingLineItem]] = {
        category: [] for category in LineItemCategory
    }
    for item in line_items:
        grouped[item.category].append(item)
    return grouped


def calculate_category_subtotals(
    line_items: Iterable[PricingLineItem],
) -> dict[LineItemCategory, Decimal]:
    """Per-category totals, using the discounted amount where one exists."""

    subtotals = {category: Decimal("0") for category in LineItemCategory}
    for item in line_items:
        subtotals[item.category] += item.effective_total
    return subtotals


def generate_pricing_summary_text(
    line_items: Iterable[PricingLineItem],
    subtotal: Decimal,
    discount_amount: Decimal,
    total: Decimal,
) -> str:
    """Plain-text quote used in confirmation documents."""

    lines: list[str] = []
    for category, items in group_line_items_by_category(line_items).items():
        if not items:
            continue
        lines.append("")
        lines.append(category.value.upper())
        lines.append("-" * 50)
        for item in items:
            lines.append(
                f"{item.item}: {item.qty} x {format_currency(item.unit_price)}"
                f" = {format_currency(item.effective_total)}"
            )
            if item.description:
                lines.append(f"  ({item.description})")

    lines.append("")
    lines.append("=" * 50)
    lines.append(f"Subtotal: {format_currency(subtotal)}")
    if discount_amount > 0:
        lines.append(f"Discount: -{format_currency(discount_amount)}")
    elif discount_amount < 0:
        lines.append(f"Surcharge: {format_currency(-discount_amount)}")
    lines.append(f"TOTAL: {format_currency(total)}")
    return "\n".join(lines) + "\n"


def calculate_savings(subtotal: Decimal, discount_amount: Decimal) -> Savings:
    percentage = (
        discount_amount / subtotal * Decimal("100") if subtotal > 0 else Decimal("0")
    )
    rounded = percentage.quantize(_CENTS, rounding=ROUND_HALF_UP)
    whole = percentage.quantize(_WHOLE, rounding=ROUND_HALF_UP)
    return Savings(
        amount=discount_amount,
        percentage=rounded,
        formatted=f"{format_currency(discount_amount)} ({whole}% off)",
    )
