"""Price catalog reader producing immutable per-calculation snapshots."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from venue_office.core.errors import CatalogUnavailable
from venue_office.models import MealPrice, RoomType, Space

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _freeze(prices: Mapping[str, Decimal]) -> Mapping[str, Decimal]:
    return MappingProxyType(dict(prices))


@dataclass(frozen=True, slots=True)
class PriceCatalogSnapshot:
    """Unit prices captured once and used for a whole calculation."""

    meal_prices: Mapping[str, Decimal] = field(default_factory=dict)
    room_types: Mapping[str, Decimal] = field(default_factory=dict)
    spaces: Mapping[str, Decimal] = field(default_factory=dict)
    captured_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        for name in ("meal_prices", "room_types", "spaces"):
            object.__setattr__(self, name, _freeze(getattr(self, name)))

    def meal_price(self, meal_type: str) -> Decimal:
        return _lookup(self.meal_prices, meal_type, "meal type")

    def room_price(self, room_type_name: str) -> Decimal:
        return _lookup(self.room_types, room_type_name, "room type")

    def space_price(self, space_name: str) -> Decimal:
        return _lookup(self.spaces, space_name, "space")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-safe types for storage alongside a snapshot."""

        return {
            "meal_prices": {key: str(value) for key, value in self.meal_prices.items()},
            "room_types": {key: str(value) for key, value in self.room_types.items()},
            "spaces": {key: str(value) for key, value in self.spaces.items()},
            "captured_at": self.captured_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PriceCatalogSnapshot":
        def _prices(key: str) -> dict[str, Decimal]:
            return {
                name: Decimal(value) for name, value in (data.get(key) or {}).items()
            }

        captured_raw = data.get("captured_at")
        captured_at = (
            datetime.fromisoformat(captured_raw) if captured_raw else datetime.now(UTC)
        )
        return cls(
            meal_prices=_prices("meal_prices"),
            room_types=_prices("room_types"),
            spaces=_prices("spaces"),
            captured_at=captured_at,
        )


def _lookup(prices: Mapping[str, Decimal], name: str, kind: str) -> Decimal:
    price = prices.get(name)
    if price is None:
        logger.warning("No catalog price for %s %r; pricing at zero", kind, name)
        return ZERO
    return price


async def load_catalog(session: AsyncSession) -> PriceCatalogSnapshot:
    """Read meal, room type and space prices into a snapshot."""

    try:
        meal_rows = (
            await session.execute(select(MealPrice.meal_type, MealPrice.price))
        ).all()
        room_rows = (await session.execute(select(RoomType.name, RoomType.price))).all()
        space_rows = (await session.execute(select(Space.name, Space.price))).all()
    except SQLAlchemyError as exc:
        logger.exception("Failed to load price catalog")
        raise CatalogUnavailable(f"Failed to load price catalog: {exc}") from exc

    return PriceCatalogSnapshot(
        meal_prices={name: _price(value) for name, value in meal_rows},
        room_types={name: _price(value) for name, value in room_rows},
        spaces={name: _price(value) for name, value in space_rows},
    )


def _price(value: Decimal | float | str | None) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value))
