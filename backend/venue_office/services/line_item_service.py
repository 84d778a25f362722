"""Turns booking selections into category-tagged pricing line items."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from venue_office.core.settings import PricingRates, get_pricing_rates
from venue_office.schemas.pricing import LineItemCategory
from venue_office.schemas.selections import (
    BookingSelections,
    MealSelection,
    RoomSelection,
    VenueSelection,
)
from venue_office.services.catalog_service import PriceCatalogSnapshot

WHOLE_CENTRE_LABEL = "Exclusive Use - Whole Centre"
PERCOLATED_COFFEE_LABEL = "Percolated Coffee"
BYO_LINEN_SUFFIX = " (BYO Linen)"


@dataclass(frozen=True, slots=True)
class PricingLineItem:
    """One priced row of a quote. ``total`` is always undiscounted."""

    category: LineItemCategory
    item: str
    qty: int
    unit: str
    unit_price: Decimal
    total: Decimal
    description: str | None = None
    discounted_unit_price: Decimal | None = None
    discounted_total: Decimal | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.category.value, self.item)

    @property
    def effective_total(self) -> Decimal:
        if self.discounted_total is None:
            return self.total
        return self.discounted_total

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "category": self.category.value,
            "item": self.item,
            "qty": self.qty,
            "unit": self.unit,
            "unit_price": str(self.unit_price),
            "total": str(self.total),
        }
        if self.description is not None:
            data["description"] = self.description
        if self.discounted_unit_price is not None:
            data["discounted_unit_price"] = str(self.discounted_unit_price)
        if self.discounted_total is not None:
            data["discounted_total"] = str(self.discounted_total)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PricingLineItem":
        def _optional(key: str) -> Decimal | None:
            value = data.get(key)
            return None if value is None else Decimal(str(value))

        return cls(
            category=LineItemCategory(data["category"]),
            item=data["item"],
            qty=int(data["qty"]),
            unit=data["unit"],
            unit_price=Decimal(str(data["unit_price"])),
            total=Decimal(str(data["total"])),
            description=data.get("description"),
            discounted_unit_price=_optional("discounted_unit_price"),
            discounted_total=_optional("discounted_total"),
        )


def compute_line_items(
    selections: BookingSelections,
    catalog: PriceCatalogSnapshot,
    *,
    rates: PricingRates | None = None,
) -> list[PricingLineItem]:
    """Price every selected category against a single catalog snapshot."""

    rates = rates or get_pricing_rates()
    items: list[PricingLineItem] = []

    if selections.accommodation is not None:
        items.extend(
            _accommodation_items(
                selections.accommodation.rooms, selections.nights, catalog, rates
            )
        )

    catering = selections.catering
    if catering is not None:
        items.extend(_catering_items(catering.meals, catalog))
        coffee = catering.percolated_coffee
        if coffee is not None and coffee.quantity > 0:
            items.append(
                PricingLineItem(
                    category=LineItemCategory.CATERING,
                    item=PERCOLATED_COFFEE_LABEL,
                    qty=coffee.quantity,
                    unit="serve",
                    unit_price=rates.percolated_coffee_price,
                    total=coffee.quantity * rates.percolated_coffee_price,
                )
            )

    if selections.venue is not None:
        items.extend(_venue_items(selections.venue, selections.nights, catalog, rates))

    for extra in selections.extras:
        items.append(
            PricingLineItem(
                category=LineItemCategory.EXTRAS,
                item=extra.item,
                qty=extra.quantity,
                unit="item",
                unit_price=extra.unit_price,
                total=extra.quantity * extra.unit_price,
            )
        )

    return items


def _accommodation_items(
    rooms: Iterable[RoomSelection],
    nights: int,
    catalog: PriceCatalogSnapshot,
    rates: PricingRates,
) -> list[PricingLineItem]:
    items: list[PricingLineItem] = []
    for room in rooms:
        base_price = catalog.room_price(room.room_type_name)
        price_per_bed = base_price
        label = room.room_type_name
        description = None
        if room.byo_linen:
            price_per_bed = base_price - rates.byo_linen_discount
            label += BYO_LINEN_SUFFIX
            description = (
                f"Base: ${base_price} - ${rates.byo_linen_discount} BYO discount"
            )
        qty = room.quantity * nights
        items.append(
            PricingLineItem(
                category=LineItemCategory.ACCOMMODATION,
                item=label,
                qty=qty,
                unit="bed-night",
                unit_price=price_per_bed,
                total=qty * price_per_bed,
                description=description,
            )
        )
    return items


def _catering_items(
    meals: Iterable[MealSelection], catalog: PriceCatalogSnapshot
) -> list[PricingLineItem]:
    # Grouped by meal type, not by date.
    summary: dict[str, list[int]] = {}
    for meal in meals:
        occasions = summary.setdefault(meal.meal_type, [0, 0])
        occasions[0] += 1
        occasions[1] += meal.headcount

    items: list[PricingLineItem] = []
    for meal_type, (count, headcount) in summary.items():
        unit_price = catalog.meal_price(meal_type)
        items.append(
            PricingLineItem(
                category=LineItemCategory.CATERING,
                item=meal_type,
                qty=headcount,
                unit="serve",
                unit_price=unit_price,
                total=headcount * unit_price,
                description=(
                    f"{count} meal{'s' if count > 1 else ''}, "
                    f"{headcount} total serves"
                ),
            )
        )
    return items


def whole_centre_days(nights: int) -> int:
    """Days charged for exclusive use: every calendar day of the stay."""

    return nights + 1 if nights > 0 else 1


def _venue_items(
    venue: VenueSelection,
    nights: int,
    catalog: PriceCatalogSnapshot,
    rates: PricingRates,
) -> list[PricingLineItem]:
    if venue.whole_centre:
        days = whole_centre_days(nights)
        return [
            PricingLineItem(
                category=LineItemCategory.VENUE,
                item=WHOLE_CENTRE_LABEL,
                qty=days,
                unit="day",
                unit_price=rates.whole_centre_daily_rate,
                total=days * rates.whole_centre_daily_rate,
                description="Private access to all facilities and grounds",
            )
        ]

    items: list[PricingLineItem] = []
    for space in venue.spaces:
        unit_price = catalog.space_price(space.space_name)
        items.append(
            PricingLineItem(
                category=LineItemCategory.VENUE,
                item=space.space_name,
                qty=space.days,
                unit="day",
                unit_price=unit_price,
                total=space.days * unit_price,
            )
        )
    return items
