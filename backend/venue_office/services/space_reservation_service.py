"""Guarded writes of space reservations."""

from __future__ import annotations

import logging
import uuid
from datetime import date, time

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from venue_office.core.errors import (
    BookingNotFound,
    InvalidSelections,
    ResourceUnavailable,
)
from venue_office.models import Booking, BookingStatus, Space, SpaceReservation
from venue_office.services.conflict_service import (
    HOLDING_STATUSES,
    SpaceReservationRequest,
    overlaps,
    to_request,
)
from venue_office.services.resource_locks import (
    ResourceLocks,
    booking_key,
    resource_locks,
    space_key,
)

logger = logging.getLogger(__name__)


def _validate_times(start_time: time | None, end_time: time | None) -> None:
    if start_time is not None and end_time is not None and start_time >= end_time:
        raise InvalidSelections(["Reservation end time must be after start time"])


async def reserve_space(
    session: AsyncSession,
    *,
    booking_id: uuid.UUID,
    space_id: uuid.UUID,
    service_date: date,
    start_time: time | None = None,
    end_time: time | None = None,
    locks: ResourceLocks | None = None,
) -> SpaceReservation:
    """Record a space reservation unless a granted booking already holds the slot.

    Overlaps with other pending requests are allowed and surface as advisory
    conflicts; overlaps with bookings in a holding status are rejected.
    """

    _validate_times(start_time, end_time)
    locks = locks or resource_locks
    async with locks.hold(space_key(space_id, service_date), booking_key(booking_id)):
        booking = (
            await session.execute(
                select(Booking).where(Booking.id == booking_id).with_for_update()
            )
        ).scalar_one_or_none()
        if booking is None:
            raise BookingNotFound(f"Booking {booking_id} not found")
        if booking.status is BookingStatus.CANCELLED:
            raise ResourceUnavailable(
                "Spaces cannot be reserved for a cancelled booking"
            )
        if not booking.arrival_date <= service_date <= booking.departure_date:
            raise InvalidSelections(
                [f"Service date {service_date} falls outside the booking's stay"]
            )

        space = (
            await session.execute(
                select(Space).where(Space.id == space_id).with_for_update()
            )
        ).scalar_one_or_none()
        if space is None or not space.active:
            raise ResourceUnavailable(f"Space {space_id} is not available")

        candidate = SpaceReservationRequest(
            booking_id=booking.id,
            space_id=space_id,
            service_date=service_date,
            start_time=start_time,
            end_time=end_time,
            booking_status=booking.status,
        )
        competing = await session.execute(
            select(SpaceReservation, Booking.status)
            .join(Booking, Booking.id == SpaceReservation.booking_id)
            .where(
                SpaceReservation.space_id == space_id,
                SpaceReservation.service_date == service_date,
                SpaceReservation.booking_id != booking.id,
                Booking.status.in_(HOLDING_STATUSES),
            )
        )
        for reservation, status in competing.all():
            if overlaps(candidate, to_request(reservation, status)):
                logger.warning(
                    "Rejected %s on %s for booking %s: held by booking %s",
                    space.name,
                    service_date,
                    booking.reference,
                    reservation.booking_id,
                )
                raise ResourceUnavailable(
                    f"{space.name} is already booked on {service_date} "
                    "for an overlapping time"
                )

        reservation = SpaceReservation(
            booking_id=booking.id,
            space_id=space_id,
            service_date=service_date,
            start_time=start_time,
            end_time=end_time,
        )
        session.add(reservation)
        try:
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            raise ResourceUnavailable(
                f"{space.name} is already reserved by this booking on {service_date}"
            ) from exc

    await session.refresh(reservation)
    logger.info(
        "Reserved %s on %s for booking %s", space.name, service_date, booking.reference
    )
    return reservation


async def release_space_reservation(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    locks: ResourceLocks | None = None,
) -> bool:
    """Delete a reservation; returns False when it does not exist."""

    reservation = await session.get(SpaceReservation, reservation_id)
    if reservation is None:
        return False
    locks = locks or resource_locks
    async with locks.hold(
        space_key(reservation.space_id, reservation.service_date),
        booking_key(reservation.booking_id),
    ):
        await session.delete(reservation)
        await session.commit()
    return True
