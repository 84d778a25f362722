"""Advisory detection of space and room double-bookings."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from venue_office.core.errors import BookingNotFound, ConflictComputationError
from venue_office.models import Booking, BookingStatus, RoomAssignment, SpaceReservation

DAY_START = time(0, 0)
DAY_END = time(23, 59)

PRIORITY_STATUSES = frozenset(
    {
        BookingStatus.CONFIRMED,
        BookingStatus.APPROVED,
        BookingStatus.DEPOSIT_RECEIVED,
    }
)

# Statuses whose space reservations are granted and must not be double-booked.
HOLDING_STATUSES = PRIORITY_STATUSES | {
    BookingStatus.DEPOSIT_PENDING,
    BookingStatus.IN_PROGRESS,
}


@dataclass(frozen=True, slots=True)
class SpaceReservationRequest:
    """A booking's claim on a space; ``None`` times mean the full day."""

    booking_id: uuid.UUID
    space_id: uuid.UUID
    service_date: date
    start_time: time | None = None
    end_time: time | None = None
    booking_status: BookingStatus | None = None

    @property
    def window(self) -> tuple[time, time]:
        start = self.start_time if self.start_time is not None else DAY_START
        end = self.end_time if self.end_time is not None else DAY_END
        if start >= end:
            raise ConflictComputationError(
                f"Reservation for space {self.space_id} on {self.service_date} "
                f"has start {start} not before end {end}"
            )
        return start, end


@dataclass(frozen=True, slots=True)
class ConflictRecord:
    booking_id: uuid.UUID
    space_id: uuid.UUID
    service_date: date
    conflicts_with: uuid.UUID


@dataclass(frozen=True, slots=True)
class RoomStay:
    """A room held by a booking for its arrival-departure window."""

    room_id: uuid.UUID
    booking_id: uuid.UUID
    arrival_date: date
    departure_date: date
    booking_status: BookingStatus


@dataclass(frozen=True, slots=True)
class RoomConflict:
    room_id: uuid.UUID
    conflicts_with: uuid.UUID


def overlaps(a: SpaceReservationRequest, b: SpaceReservationRequest) -> bool:
    """Same space, same date and strictly intersecting time windows."""

    if a.space_id != b.space_id or a.service_date != b.service_date:
        return False
    a_start, a_end = a.window
    b_start, b_end = b.window
    return a_start < b_end and b_start < a_end


def is_suppressed(
    my_status: BookingStatus, other_status: BookingStatus | None
) -> bool:
    """A high-priority booking does not treat a pending one as blocking."""

    return my_status in PRIORITY_STATUSES and other_status is BookingStatus.PENDING


def find_conflicts(
    booking_id: uuid.UUID,
    my_reservations: Iterable[SpaceReservationRequest],
    others_in_window: Iterable[SpaceReservationRequest],
    my_status: BookingStatus,
) -> list[ConflictRecord]:
    """Return the reservations of other bookings that block this booking."""

    others = [
        other
        for other in others_in_window
        if other.booking_id != booking_id
        and other.booking_status is not BookingStatus.CANCELLED
    ]
    conflicts: list[ConflictRecord] = []
    for mine in my_reservations:
        for other in others:
            if not overlaps(mine, other):
                continue
            if is_suppressed(my_status, other.booking_status):
                continue
            conflicts.append(
                ConflictRecord(
                    booking_id=booking_id,
                    space_id=mine.space_id,
                    service_date=mine.service_date,
                    conflicts_with=other.booking_id,
                )
            )
    return conflicts


def stays_overlap(
    arrival: date, departure: date, other_arrival: date, other_departure: date
) -> bool:
    """Stays overlap when one arrives before the other departs."""

    return other_arrival < departure and other_departure > arrival


def find_room_conflicts(
    booking_id: uuid.UUID,
    arrival_date: date,
    departure_date: date,
    assignments_for_others: Iterable[RoomStay],
) -> list[RoomConflict]:
    """Rooms already held by other live bookings over overlapping dates."""

    conflicts: list[RoomConflict] = []
    for stay in assignments_for_others:
        if (
            stay.booking_id == booking_id
            or stay.booking_status is BookingStatus.CANCELLED
        ):
            continue
        if stays_overlap(
            arrival_date, departure_date, stay.arrival_date, stay.departure_date
        ):
            conflicts.append(
                RoomConflict(room_id=stay.room_id, conflicts_with=stay.booking_id)
            )
    return conflicts


def to_request(
    reservation: SpaceReservation, booking_status: BookingStatus | None = None
) -> SpaceReservationRequest:
    return SpaceReservationRequest(
        booking_id=reservation.booking_id,
        space_id=reservation.space_id,
        service_date=reservation.service_date,
        start_time=reservation.start_time,
        end_time=reservation.end_time,
        booking_status=booking_status,
    )


async def _get_booking(session: AsyncSession, booking_id: uuid.UUID) -> Booking:
    booking = await session.get(Booking, booking_id)
    if booking is None:
        raise BookingNotFound(f"Booking {booking_id} not found")
    return booking


async def load_space_window(
    session: AsyncSession, *, booking: Booking
) -> tuple[list[SpaceReservationRequest], list[SpaceReservationRequest]]:
    """Read this booking's reservations and the competing ones in its window."""

    mine = await session.execute(
        select(SpaceReservation).where(SpaceReservation.booking_id == booking.id)
    )
    others = await session.execute(
        select(SpaceReservation, Booking.status)
        .join(Booking, Booking.id == SpaceReservation.booking_id)
        .where(
            SpaceReservation.booking_id != booking.id,
            SpaceReservation.service_date >= booking.arrival_date,
            SpaceReservation.service_date <= booking.departure_date,
            Booking.status != BookingStatus.CANCELLED,
        )
    )
    return (
        [to_request(row, booking.status) for row in mine.scalars().all()],
        [to_request(row, status) for row, status in others.all()],
    )


async def load_space_conflicts(
    session: AsyncSession,
    *,
    booking_id: uuid.UUID,
    as_status: BookingStatus | None = None,
) -> list[ConflictRecord]:
    """Compute space conflicts for a stored booking.

    ``as_status`` evaluates the booking as if it already had that status, which
    the approval workflow uses to check what would block it once approved.
    """

    booking = await _get_booking(session, booking_id)
    mine, others = await load_space_window(session, booking=booking)
    return find_conflicts(booking.id, mine, others, as_status or booking.status)


async def load_room_conflicts(
    session: AsyncSession, *, booking_id: uuid.UUID
) -> list[RoomConflict]:
    """Rooms assigned to this booking that other live bookings also hold."""

    booking = await _get_booking(session, booking_id)
    my_rooms = select(RoomAssignment.room_id).where(
        RoomAssignment.booking_id == booking.id
    )
    result = await session.execute(
        select(
            RoomAssignment.room_id,
            Booking.id,
            Booking.arrival_date,
            Booking.departure_date,
            Booking.status,
        )
        .join(Booking, Booking.id == RoomAssignment.booking_id)
        .where(
            RoomAssignment.booking_id != booking.id,
            RoomAssignment.room_id.in_(my_rooms),
        )
    )
    stays = [
        RoomStay(
            room_id=room_id,
            booking_id=other_id,
            arrival_date=arrival,
            departure_date=departure,
            booking_status=status,
        )
        for room_id, other_id, arrival, departure, status in result.all()
    ]
    return find_room_conflicts(
        booking.id, booking.arrival_date, booking.departure_date, stays
    )
