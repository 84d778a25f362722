"""Booking models."""
from __future__ import annotations

import enum
import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, Date, Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from venue_office.db.base import Base
from venue_office.db.types import ExactDecimal
from venue_office.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from venue_office.models.price_snapshot import BookingPriceSnapshot
    from venue_office.models.reservation import RoomAssignment, SpaceReservation


class BookingStatus(str, enum.Enum):
    """Lifecycle states for venue bookings."""

    PENDING = "Pending"
    IN_TRIAGE = "InTriage"
    APPROVED = "Approved"
    CONFIRMED = "Confirmed"
    DEPOSIT_PENDING = "DepositPending"
    DEPOSIT_RECEIVED = "DepositReceived"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class Booking(TimestampMixin, Base):
    """A customer's request for a stay at the centre."""

    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    reference: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    customer_name: Mapped[str | None] = mapped_column(String(255))
    contact_name: Mapped[str | None] = mapped_column(String(255))
    contact_email: Mapped[str | None] = mapped_column(String(255))
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False
    )
    arrival_date: Mapped[date] = mapped_column(Date, nullable=False)
    departure_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_overnight: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    selections: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    accommodation_requests: Mapped[dict[str, int] | None] = mapped_column(JSON)
    quoted_total: Mapped[Decimal | None] = mapped_column(ExactDecimal)

    space_reservations: Mapped[list["SpaceReservation"]] = relationship(
        "SpaceReservation", back_populates="booking", cascade="all, delete-orphan"
    )
    room_assignments: Mapped[list["RoomAssignment"]] = relationship(
        "RoomAssignment", back_populates="booking", cascade="all, delete-orphan"
    )
    price_snapshots: Mapped[list["BookingPriceSnapshot"]] = relationship(
        "BookingPriceSnapshot",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingPriceSnapshot.revision",
    )
