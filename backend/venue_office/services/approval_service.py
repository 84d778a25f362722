"""Approval checklist for bookings awaiting staff sign-off."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from venue_office.core.errors import BookingNotFound
from venue_office.models import Booking, BookingStatus
from venue_office.services.allocation_service import (
    AllocatedRoom,
    RoomBucket,
    classify,
    load_allocated_rooms,
)
from venue_office.services.conflict_service import (
    load_room_conflicts,
    load_space_conflicts,
)


@dataclass(frozen=True, slots=True)
class BucketProgress:
    requested: int
    allocated: int


@dataclass(frozen=True, slots=True)
class RoomAllocationCheck:
    passed: bool
    breakdown: dict[RoomBucket, BucketProgress]
    total_requested: int
    total_allocated: int


@dataclass(frozen=True, slots=True)
class ApprovalChecks:
    space_conflict_count: int
    room_conflict_count: int
    room_allocation: RoomAllocationCheck
    problems: tuple[str, ...] = field(default_factory=tuple)

    @property
    def passed(self) -> bool:
        return not self.problems


def validate_room_allocation(
    *,
    is_overnight: bool,
    requested: Mapping[str, int] | None,
    rooms: Iterable[AllocatedRoom],
) -> RoomAllocationCheck:
    """Compare allocated rooms against the requested count in each bucket."""

    if not is_overnight:
        return RoomAllocationCheck(
            passed=True,
            breakdown={bucket: BucketProgress(0, 0) for bucket in RoomBucket},
            total_requested=0,
            total_allocated=0,
        )

    requested = requested or {}
    counts = classify(rooms)
    breakdown = {
        bucket: BucketProgress(
            requested=int(requested.get(bucket.value) or 0),
            allocated=counts.get(bucket),
        )
        for bucket in RoomBucket
    }
    total_requested = sum(progress.requested for progress in breakdown.values())
    total_allocated = sum(progress.allocated for progress in breakdown.values())
    all_met = all(
        progress.allocated >= progress.requested for progress in breakdown.values()
    )
    return RoomAllocationCheck(
        passed=all_met and total_allocated >= total_requested,
        breakdown=breakdown,
        total_requested=total_requested,
        total_allocated=total_allocated,
    )


def validate_booking_for_approval(
    booking: Booking,
    rooms: Iterable[AllocatedRoom],
    *,
    space_conflict_count: int,
    room_conflict_count: int = 0,
) -> ApprovalChecks:
    room_check = validate_room_allocation(
        is_overnight=booking.is_overnight,
        requested=booking.accommodation_requests,
        rooms=rooms,
    )
    problems: list[str] = []
    if space_conflict_count:
        problems.append(f"{space_conflict_count} unresolved space conflict(s)")
    if room_conflict_count:
        problems.append(f"{room_conflict_count} room(s) held by overlapping bookings")
    if not room_check.passed:
        short = [
            f"{bucket.value} {progress.allocated}/{progress.requested}"
            for bucket, progress in room_check.breakdown.items()
            if progress.allocated < progress.requested
        ]
        problems.append("Rooms not fully allocated: " + ", ".join(short))
    return ApprovalChecks(
        space_conflict_count=space_conflict_count,
        room_conflict_count=room_conflict_count,
        room_allocation=room_check,
        problems=tuple(problems),
    )


async def build_approval_checks(
    session: AsyncSession, *, booking_id: uuid.UUID
) -> ApprovalChecks:
    """Evaluate the checklist as if the booking were being approved now."""

    booking = await session.get(Booking, booking_id)
    if booking is None:
        raise BookingNotFound(f"Booking {booking_id} not found")
    space_conflicts = await load_space_conflicts(
        session, booking_id=booking_id, as_status=BookingStatus.APPROVED
    )
    room_conflicts = await load_room_conflicts(session, booking_id=booking_id)
    rooms = await load_allocated_rooms(session, booking_id=booking_id)
    return validate_booking_for_approval(
        booking,
        rooms,
        space_conflict_count=len(space_conflicts),
        room_conflict_count=len(room_conflicts),
    )
