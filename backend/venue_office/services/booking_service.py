"""Booking lifecycle: creation, priced submissions, overrides and approval."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from venue_office.core.errors import (
    BookingNotFound,
    InvalidSelections,
    InvalidStatusTransition,
    ResourceUnavailable,
    SnapshotWriteFailed,
)
from venue_office.models import (
    Booking,
    BookingPriceSnapshot,
    BookingStatus,
    RoomAssignment,
    SnapshotType,
    SpaceReservation,
)
from venue_office.schemas.pricing import (
    PercentageDiscount,
    PerItemOverrideDiscount,
    parse_discount_policy,
)
from venue_office.schemas.selections import BookingSelections, parse_selections
from venue_office.services import audit_service
from venue_office.services.allocation_service import (
    check_requested_pool_demand,
    load_pool_capacities,
    load_room_type_pools,
)
from venue_office.services.approval_service import build_approval_checks
from venue_office.services.pricing_service import (
    NegativeTotalMode,
    PricingResult,
    calculate_pricing,
)
from venue_office.services.resource_locks import (
    LockKey,
    ResourceLocks,
    booking_key,
    resource_locks,
    room_key,
    space_key,
)
from venue_office.services.snapshot_service import create_snapshot

logger = logging.getLogger(__name__)

_ALLOWED_STATUS_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {
        BookingStatus.IN_TRIAGE,
        BookingStatus.APPROVED,
        BookingStatus.CANCELLED,
    },
    BookingStatus.IN_TRIAGE: {
        BookingStatus.PENDING,
        BookingStatus.APPROVED,
        BookingStatus.CANCELLED,
    },
    BookingStatus.APPROVED: {
        BookingStatus.CONFIRMED,
        BookingStatus.DEPOSIT_PENDING,
        BookingStatus.DEPOSIT_RECEIVED,
        BookingStatus.CANCELLED,
    },
    BookingStatus.CONFIRMED: {
        BookingStatus.DEPOSIT_PENDING,
        BookingStatus.DEPOSIT_RECEIVED,
        BookingStatus.IN_PROGRESS,
        BookingStatus.CANCELLED,
    },
    BookingStatus.DEPOSIT_PENDING: {
        BookingStatus.DEPOSIT_RECEIVED,
        BookingStatus.CANCELLED,
    },
    BookingStatus.DEPOSIT_RECEIVED: {
        BookingStatus.IN_PROGRESS,
        BookingStatus.CANCELLED,
    },
    BookingStatus.IN_PROGRESS: {BookingStatus.COMPLETED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}


@dataclass(frozen=True, slots=True)
class PricedBooking:
    """Outcome of pricing a stored booking; ``snapshot`` is None if archiving failed."""

    booking: Booking
    result: PricingResult
    snapshot: BookingPriceSnapshot | None


def _validate_status_transition(current: BookingStatus, target: BookingStatus) -> None:
    if target == current:
        return
    allowed = _ALLOWED_STATUS_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise InvalidStatusTransition(
            f"Invalid status transition from {current.value} to {target.value}"
        )


async def get_booking(session: AsyncSession, *, booking_id: uuid.UUID) -> Booking:
    booking = await session.get(Booking, booking_id)
    if booking is None:
        raise BookingNotFound(f"Booking {booking_id} not found")
    return booking


async def create_booking(
    session: AsyncSession,
    *,
    reference: str,
    selections: BookingSelections | dict[str, Any],
    customer_name: str | None = None,
    contact_name: str | None = None,
    contact_email: str | None = None,
    accommodation_requests: Mapping[str, int] | None = None,
) -> Booking:
    """Validate selections and store a new pending booking."""

    parsed = parse_selections(selections)
    if parsed.accommodation is not None and parsed.accommodation.rooms:
        check_requested_pool_demand(
            parsed.accommodation.rooms,
            await load_room_type_pools(session),
            await load_pool_capacities(session),
        )

    booking = Booking(
        reference=reference,
        customer_name=customer_name,
        contact_name=contact_name,
        contact_email=contact_email,
        status=BookingStatus.PENDING,
        arrival_date=parsed.arrival_date,
        departure_date=parsed.departure_date,
        is_overnight=parsed.nights > 0,
        selections=parsed.model_dump(mode="json"),
        accommodation_requests=dict(accommodation_requests or {}),
    )
    session.add(booking)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise
    await session.refresh(booking)
    logger.info("Created booking %s", booking.reference)
    return booking


async def _price_and_snapshot(
    session: AsyncSession,
    *,
    booking_id: uuid.UUID,
    policy: PercentageDiscount | PerItemOverrideDiscount | dict[str, Any] | None,
    snapshot_type: SnapshotType,
    overridden_by: str | None,
    negative_total: NegativeTotalMode,
) -> PricedBooking:
    booking = await get_booking(session, booking_id=booking_id)
    if not booking.selections:
        raise InvalidSelections(["Booking has no selections to price"])

    result = await calculate_pricing(
        session,
        booking.selections,
        parse_discount_policy(policy),
        negative_total=negative_total,
    )
    booking.quoted_total = result.total
    await session.commit()

    snapshot: BookingPriceSnapshot | None
    try:
        snapshot = await create_snapshot(
            session,
            booking_id=booking.id,
            result=result,
            snapshot_type=snapshot_type,
            overridden_by=overridden_by,
        )
    except SnapshotWriteFailed as exc:
        # The quoted total stays committed; the gap is flagged for reconciliation.
        logger.exception("Price snapshot missing for booking %s", booking.reference)
        snapshot = None
        await _record_event_best_effort(
            session,
            event_type="pricing.snapshot_failed",
            booking_id=booking.id,
            actor=overridden_by,
            description=str(exc),
            payload=result.to_dict(),
        )
    return PricedBooking(booking=booking, result=result, snapshot=snapshot)


async def _record_event_best_effort(session: AsyncSession, **kwargs: Any) -> None:
    try:
        await audit_service.record_event(session, **kwargs)
    except SQLAlchemyError:
        await session.rollback()
        logger.exception("Failed to record audit event %s", kwargs.get("event_type"))


async def submit_booking_pricing(
    session: AsyncSession, *, booking_id: uuid.UUID
) -> PricedBooking:
    """Price a booking at standard rates and archive the quote."""

    return await _price_and_snapshot(
        session,
        booking_id=booking_id,
        policy=None,
        snapshot_type=SnapshotType.STANDARD,
        overridden_by=None,
        negative_total=NegativeTotalMode.REJECT,
    )


async def price_from_custom_link(
    session: AsyncSession,
    *,
    booking_id: uuid.UUID,
    policy: PercentageDiscount | PerItemOverrideDiscount | dict[str, Any],
) -> PricedBooking:
    """Price a booking made through a pre-negotiated pricing link."""

    return await _price_and_snapshot(
        session,
        booking_id=booking_id,
        policy=policy,
        snapshot_type=SnapshotType.CUSTOM_LINK,
        overridden_by=None,
        negative_total=NegativeTotalMode.REJECT,
    )


async def override_booking_pricing(
    session: AsyncSession,
    *,
    booking_id: uuid.UUID,
    policy: PercentageDiscount | PerItemOverrideDiscount | dict[str, Any],
    overridden_by: str,
    negative_total: NegativeTotalMode = NegativeTotalMode.REJECT,
) -> PricedBooking:
    """Re-price a booking with an administrator's discount policy."""

    priced = await _price_and_snapshot(
        session,
        booking_id=booking_id,
        policy=policy,
        snapshot_type=SnapshotType.ADMIN_OVERRIDE,
        overridden_by=overridden_by,
        negative_total=negative_total,
    )
    totals = priced.result.to_dict()
    await _record_event_best_effort(
        session,
        event_type="pricing.override",
        booking_id=booking_id,
        actor=overridden_by,
        description=f"Total set to {totals['total']}",
        payload={
            key: totals[key] for key in ("subtotal", "discount_amount", "total")
        },
    )
    return priced


async def _claimed_keys(session: AsyncSession, booking_id: uuid.UUID) -> set[LockKey]:
    reservations = await session.execute(
        select(SpaceReservation.space_id, SpaceReservation.service_date).where(
            SpaceReservation.booking_id == booking_id
        )
    )
    rooms = await session.execute(
        select(RoomAssignment.room_id).where(RoomAssignment.booking_id == booking_id)
    )
    keys = {space_key(space_id, day) for space_id, day in reservations.all()}
    keys.update(room_key(room_id) for room_id in rooms.scalars().all())
    keys.add(booking_key(booking_id))
    return keys


async def approve_booking(
    session: AsyncSession,
    *,
    booking_id: uuid.UUID,
    actor: str | None = None,
    enforce_checklist: bool = True,
    locks: ResourceLocks | None = None,
) -> Booking:
    """Approve a booking while holding every space and room it claims.

    Claims are re-read once the locks are held; if the booking gained a space
    or room in the meantime the wider key set is acquired and the checks rerun.
    """

    booking = await get_booking(session, booking_id=booking_id)
    _validate_status_transition(booking.status, BookingStatus.APPROVED)

    locks = locks or resource_locks
    keys = await _claimed_keys(session, booking_id)
    while True:
        # Reads below must not reuse a transaction opened before the locks.
        await session.commit()
        async with locks.hold(*keys):
            claimed = await _claimed_keys(session, booking_id)
            if claimed <= keys:
                await session.refresh(booking)
                _validate_status_transition(booking.status, BookingStatus.APPROVED)
                checks = await build_approval_checks(session, booking_id=booking_id)
                if checks.space_conflict_count or checks.room_conflict_count:
                    logger.warning(
                        "Approval of booking %s blocked: %s",
                        booking.reference,
                        "; ".join(checks.problems),
                    )
                    raise ResourceUnavailable("; ".join(checks.problems))
                if enforce_checklist and not checks.passed:
                    raise InvalidStatusTransition("; ".join(checks.problems))
                booking.status = BookingStatus.APPROVED
                await session.commit()
                break
        logger.debug("Booking %s gained claims while waiting; retrying", booking_id)
        keys |= claimed

    logger.info("Approved booking %s", booking.reference)
    await _record_event_best_effort(
        session,
        event_type="booking.approved",
        booking_id=booking.id,
        actor=actor,
        description=f"Booking {booking.reference} approved",
    )
    return booking


async def update_status(
    session: AsyncSession,
    *,
    booking_id: uuid.UUID,
    status: BookingStatus,
    actor: str | None = None,
    locks: ResourceLocks | None = None,
) -> Booking:
    """Move a booking to ``status``; approval goes through the guarded path."""

    booking = await get_booking(session, booking_id=booking_id)
    if (
        status is BookingStatus.APPROVED
        and booking.status is not BookingStatus.APPROVED
    ):
        return await approve_booking(
            session, booking_id=booking_id, actor=actor, locks=locks
        )

    previous = booking.status
    _validate_status_transition(previous, status)
    booking.status = status
    await session.commit()
    await _record_event_best_effort(
        session,
        event_type="booking.status_changed",
        booking_id=booking.id,
        actor=actor,
        payload={"from": previous.value, "to": status.value},
    )
    return booking
