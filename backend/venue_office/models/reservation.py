"""Space reservations and room assignments held by bookings."""
from __future__ import annotations

import uuid
from datetime import date, time
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, Date, ForeignKey, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from venue_office.db.base import Base
from venue_office.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from venue_office.models.booking import Booking
    from venue_office.models.catalog import Room, Space


class SpaceReservation(TimestampMixin, Base):
    """A booking's claim on a space for one service date."""

    __tablename__ = "space_reservations"
    __table_args__ = (
        UniqueConstraint(
            "booking_id",
            "space_id",
            "service_date",
            "start_time",
            name="uq_space_reservation_slot",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False
    )
    space_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("spaces.id", ondelete="CASCADE"), nullable=False
    )
    service_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time | None] = mapped_column(Time())
    end_time: Mapped[time | None] = mapped_column(Time())

    booking: Mapped["Booking"] = relationship(
        "Booking", back_populates="space_reservations"
    )
    space: Mapped["Space"] = relationship("Space")


class RoomAssignment(TimestampMixin, Base):
    """A physical room allocated to a booking with the extras chosen for it."""

    __tablename__ = "room_assignments"
    __table_args__ = (
        UniqueConstraint("booking_id", "room_id", name="uq_room_assignment"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False
    )
    room_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False
    )
    extra_bed_selected: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    ensuite_selected: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    private_study_selected: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    guest_names: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    booking: Mapped["Booking"] = relationship(
        "Booking", back_populates="room_assignments"
    )
    room: Mapped["Room"] = relationship("Room")
