"""Schema exports."""

from venue_office.schemas.pricing import (
    DiscountPolicy,
    ItemOverride,
    LineItemCategory,
    PercentageDiscount,
    PerItemOverrideDiscount,
    parse_discount_policy,
)
from venue_office.schemas.selections import (
    AccommodationSelection,
    BookingSelections,
    CateringSelection,
    ExtraSelection,
    MealSelection,
    PercolatedCoffeeSelection,
    RoomSelection,
    SpaceSelection,
    VenueSelection,
    parse_selections,
)

__all__ = [
    "AccommodationSelection",
    "BookingSelections",
    "CateringSelection",
    "DiscountPolicy",
    "ExtraSelection",
    "ItemOverride",
    "LineItemCategory",
    "MealSelection",
    "PercentageDiscount",
    "PerItemOverrideDiscount",
    "PercolatedCoffeeSelection",
    "RoomSelection",
    "SpaceSelection",
    "VenueSelection",
    "parse_discount_policy",
]
