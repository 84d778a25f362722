"""Pricing schema definitions."""

from __future__ import annotations

import enum
from decimal import Decimal
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from venue_office.core.errors import DiscountPolicyError


class LineItemCategory(str, enum.Enum):
    """Categories a priced line item can belong to."""

    ACCOMMODATION = "accommodation"
    CATERING = "catering"
    VENUE = "venue"
    EXTRAS = "extras"


class PercentageDiscount(BaseModel):
    """Uniform percentage taken off every line item."""

    type: Literal["percentage"] = "percentage"
    percentage: Decimal = Field(ge=Decimal("0"), le=Decimal("100"))
    notes: str | None = None

    model_config = ConfigDict(frozen=True)


class ItemOverride(BaseModel):
    """Replacement unit price for items whose label contains ``item``."""

    category: LineItemCategory
    item: str = Field(min_length=1)
    new_unit_price: Decimal = Field(ge=Decimal("0"))

    model_config = ConfigDict(frozen=True)


class PerItemOverrideDiscount(BaseModel):
    """Per-item unit price overrides set by an administrator."""

    type: Literal["per_item_override"] = "per_item_override"
    overrides: tuple[ItemOverride, ...] = Field(min_length=1)
    allow_surcharge: bool = False
    notes: str | None = None

    model_config = ConfigDict(frozen=True)


DiscountPolicy = Annotated[
    Union[PercentageDiscount, PerItemOverrideDiscount],
    Field(discriminator="type"),
]

_POLICY_ADAPTER: TypeAdapter[PercentageDiscount | PerItemOverrideDiscount] = (
    TypeAdapter(DiscountPolicy)
)


def parse_discount_policy(
    payload: PercentageDiscount | PerItemOverrideDiscount | dict[str, Any] | None,
) -> PercentageDiscount | PerItemOverrideDiscount | None:
    """Validate a raw discount policy payload."""

    if payload is None or isinstance(
        payload, (PercentageDiscount, PerItemOverrideDiscount)
    ):
        return payload
    try:
        return _POLICY_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        raise DiscountPolicyError(str(exc)) from exc
