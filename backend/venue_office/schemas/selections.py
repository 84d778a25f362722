"""Booking selection schemas validated before pricing."""

from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    model_validator,
)

from venue_office.core.errors import InvalidSelections


class _Selection(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class RoomSelection(_Selection):
    """Requested quantity of one room type."""

    room_type_id: uuid.UUID | None = None
    room_type_name: str = Field(min_length=1)
    quantity: int = Field(gt=0)
    byo_linen: bool = False


class AccommodationSelection(_Selection):
    """Rooms requested for the stay."""

    category: Literal["accommodation"] = "accommodation"
    rooms: tuple[RoomSelection, ...] = ()


class MealSelection(_Selection):
    """One meal occasion on one date."""

    meal_type: str = Field(min_length=1)
    date: datetime.date
    headcount: int = Field(gt=0)


class PercolatedCoffeeSelection(_Selection):
    quantity: int = Field(ge=0)


class CateringSelection(_Selection):
    """Meals and the percolated coffee add-on."""

    category: Literal["catering"] = "catering"
    meals: tuple[MealSelection, ...] = ()
    percolated_coffee: PercolatedCoffeeSelection | None = None


class SpaceSelection(_Selection):
    """A single space requested for a number of days."""

    space_id: uuid.UUID | None = None
    space_name: str = Field(min_length=1)
    days: int = Field(gt=0)


class VenueSelection(_Selection):
    """Either exclusive use of the whole centre or individual spaces."""

    category: Literal["venue"] = "venue"
    whole_centre: bool = False
    spaces: tuple[SpaceSelection, ...] = ()

    @model_validator(mode="after")
    def _exclusive_modes(self) -> "VenueSelection":
        if self.whole_centre and self.spaces:
            raise ValueError(
                "Whole-centre booking cannot be combined with individual spaces"
            )
        return self


class ExtraSelection(_Selection):
    """Additional service priced directly by the caller."""

    category: Literal["extras"] = "extras"
    item: str = Field(min_length=1)
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=Decimal("0"))


class BookingSelections(_Selection):
    """Everything a customer selected for a booking."""

    arrival_date: datetime.date
    departure_date: datetime.date
    accommodation: AccommodationSelection | None = None
    catering: CateringSelection | None = None
    venue: VenueSelection | None = None
    extras: tuple[ExtraSelection, ...] = ()

    @model_validator(mode="after")
    def _validate_dates(self) -> "BookingSelections":
        if self.departure_date < self.arrival_date:
            raise ValueError("Departure date must not be before arrival date")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def nights(self) -> int:
        return calculate_nights(self.arrival_date, self.departure_date)


def calculate_nights(arrival: datetime.date, departure: datetime.date) -> int:
    """Number of nights between arrival and departure."""

    return (departure - arrival).days


def calculate_days(arrival: datetime.date, departure: datetime.date) -> int:
    """Calendar days covered by a stay, arrival and departure included."""

    return abs(calculate_nights(arrival, departure)) + 1


def has_selections_for_pricing(selections: BookingSelections) -> bool:
    """Return True when at least one selection produces a line item."""

    accommodation = selections.accommodation
    catering = selections.catering
    venue = selections.venue
    return bool(
        (accommodation and accommodation.rooms)
        or (catering and catering.meals)
        or (
            catering
            and catering.percolated_coffee
            and catering.percolated_coffee.quantity
        )
        or (venue and (venue.whole_centre or venue.spaces))
        or selections.extras
    )


def parse_selections(payload: BookingSelections | dict[str, Any]) -> BookingSelections:
    """Validate raw selections, raising ``InvalidSelections`` on failure."""

    if isinstance(payload, BookingSelections):
        return payload
    payload = dict(payload)
    payload.pop("nights", None)
    try:
        return BookingSelections.model_validate(payload)
    except ValidationError as exc:
        raise InvalidSelections(_format_errors(exc)) from exc


def _format_errors(exc: ValidationError) -> list[str]:
    messages: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        message = error["msg"].removeprefix("Value error, ")
        messages.append(f"{location}: {message}" if location else message)
    return messages
