"""Accommodation pool allocation: demand buckets and guarded room assignment."""

from __future__ import annotations

import enum
import logging
import uuid
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from venue_office.core.errors import (
    BookingNotFound,
    InvalidSelections,
    PoolCapacityExceeded,
    ResourceUnavailable,
)
from venue_office.models import (
    Booking,
    BookingStatus,
    Room,
    RoomAssignment,
    RoomPool,
    RoomType,
)
from venue_office.schemas.selections import RoomSelection
from venue_office.services.conflict_service import RoomStay, find_room_conflicts
from venue_office.services.resource_locks import (
    ResourceLocks,
    booking_key,
    resource_locks,
    room_key,
)

logger = logging.getLogger(__name__)

DOUBLE_BED_MARKERS = ("Double", "Queen", "King")
SINGLE_TYPE = "Single"
TWIN_SINGLE_TYPE = "Twin Single"


class RoomBucket(str, enum.Enum):
    """Demand categories customers request rooms in."""

    DOUBLE_BB = "doubleBB"
    SINGLE_BB = "singleBB"
    STUDY_SUITE = "studySuite"
    DOUBLE_ENSUITE = "doubleEnsuite"


POOLED_BUCKETS = frozenset({RoomBucket.STUDY_SUITE, RoomBucket.DOUBLE_ENSUITE})


@dataclass(frozen=True, slots=True)
class AllocatedRoom:
    """A physical room plus the extras selected for it on one booking."""

    room_id: uuid.UUID
    room_type_name: str
    pool_id: uuid.UUID | None = None
    extra_bed_allowed: bool = False
    ensuite_available: bool = False
    private_study_available: bool = False
    extra_bed_selected: bool = False
    ensuite_selected: bool = False
    private_study_selected: bool = False
    guest_names: tuple[str, ...] = ()

    # A selection only counts when the room actually offers the feature.
    @property
    def has_extra_bed(self) -> bool:
        return self.extra_bed_selected and self.extra_bed_allowed

    @property
    def has_ensuite(self) -> bool:
        return self.ensuite_selected and self.ensuite_available

    @property
    def has_private_study(self) -> bool:
        return self.private_study_selected and self.private_study_available


@dataclass(slots=True)
class AccommodationDemandCounts:
    double_bb: int = 0
    single_bb: int = 0
    study_suite: int = 0
    double_ensuite: int = 0

    def add(self, bucket: RoomBucket, amount: int) -> None:
        attribute = _BUCKET_ATTRIBUTES[bucket]
        setattr(self, attribute, getattr(self, attribute) + amount)

    def get(self, bucket: RoomBucket) -> int:
        return getattr(self, _BUCKET_ATTRIBUTES[bucket])

    @property
    def pooled(self) -> int:
        """Rooms drawing on the shared ensuite pool."""
        return self.double_ensuite + self.study_suite

    @property
    def total(self) -> int:
        return self.double_bb + self.single_bb + self.study_suite + self.double_ensuite

    def as_dict(self) -> dict[str, int]:
        return {bucket.value: self.get(bucket) for bucket in RoomBucket}


_BUCKET_ATTRIBUTES = {
    RoomBucket.DOUBLE_BB: "double_bb",
    RoomBucket.SINGLE_BB: "single_bb",
    RoomBucket.STUDY_SUITE: "study_suite",
    RoomBucket.DOUBLE_ENSUITE: "double_ensuite",
}


def _is_double(type_name: str) -> bool:
    return any(marker in type_name for marker in DOUBLE_BED_MARKERS)


def bucket_for(room: AllocatedRoom) -> tuple[RoomBucket, int] | None:
    """Return the demand bucket a room fills and how many places it counts for."""

    type_name = room.room_type_name
    if room.has_ensuite and room.has_private_study and _is_double(type_name):
        return RoomBucket.STUDY_SUITE, 1
    if room.has_ensuite and not room.has_private_study:
        return RoomBucket.DOUBLE_ENSUITE, 1
    if _is_double(type_name):
        return RoomBucket.DOUBLE_BB, 1
    if type_name == SINGLE_TYPE:
        return RoomBucket.SINGLE_BB, 1
    if type_name == TWIN_SINGLE_TYPE:
        return RoomBucket.SINGLE_BB, 3 if room.has_extra_bed else 2
    return None


def classify(rooms: Iterable[AllocatedRoom]) -> AccommodationDemandCounts:
    counts = AccommodationDemandCounts()
    for room in rooms:
        bucket = bucket_for(room)
        if bucket is not None:
            counts.add(*bucket)
    return counts


def pool_usage(rooms: Iterable[AllocatedRoom]) -> dict[uuid.UUID, int]:
    """Count rooms used as ensuite or study suite per shared pool."""

    usage: Counter[uuid.UUID] = Counter()
    for room in rooms:
        bucket = bucket_for(room)
        if (
            room.pool_id is not None
            and bucket is not None
            and bucket[0] in POOLED_BUCKETS
        ):
            usage[room.pool_id] += 1
    return dict(usage)


def ensure_pool_capacity(
    rooms: Iterable[AllocatedRoom], capacities: Mapping[uuid.UUID, int]
) -> None:
    for pool_id, used in pool_usage(rooms).items():
        capacity = capacities.get(pool_id)
        if capacity is not None and used > capacity:
            raise PoolCapacityExceeded(
                f"Room pool {pool_id} allows {capacity} ensuite rooms, {used} requested"
            )


def remaining_pool_capacity(
    rooms: Iterable[AllocatedRoom], capacities: Mapping[uuid.UUID, int]
) -> dict[uuid.UUID, int]:
    usage = pool_usage(rooms)
    return {
        pool_id: max(capacity - usage.get(pool_id, 0), 0)
        for pool_id, capacity in capacities.items()
    }


def check_requested_pool_demand(
    requested: Iterable[RoomSelection],
    room_type_pools: Mapping[str, uuid.UUID],
    capacities: Mapping[uuid.UUID, int],
) -> None:
    """Reject customer requests whose pooled room types exceed their pool."""

    demand: Counter[uuid.UUID] = Counter()
    for room in requested:
        pool_id = room_type_pools.get(room.room_type_name)
        if pool_id is not None:
            demand[pool_id] += room.quantity
    errors = [
        f"Only {capacities[pool_id]} rooms are available in pool {pool_id} "
        f"({quantity} requested)"
        for pool_id, quantity in demand.items()
        if pool_id in capacities and quantity > capacities[pool_id]
    ]
    if errors:
        raise InvalidSelections(errors)


def to_allocated_room(room: Room, assignment: RoomAssignment | None) -> AllocatedRoom:
    room_type = room.room_type
    return AllocatedRoom(
        room_id=room.id,
        room_type_name=room_type.name if room_type else "",
        pool_id=room_type.pool_id if room_type else None,
        extra_bed_allowed=room.extra_bed_allowed,
        ensuite_available=room.ensuite_available,
        private_study_available=room.private_study_available,
        extra_bed_selected=bool(assignment and assignment.extra_bed_selected),
        ensuite_selected=bool(assignment and assignment.ensuite_selected),
        private_study_selected=bool(assignment and assignment.private_study_selected),
        guest_names=tuple(assignment.guest_names or ()) if assignment else (),
    )


async def load_pool_capacities(session: AsyncSession) -> dict[uuid.UUID, int]:
    result = await session.execute(select(RoomPool.id, RoomPool.capacity))
    return {pool_id: capacity for pool_id, capacity in result.all()}


async def load_room_type_pools(session: AsyncSession) -> dict[str, uuid.UUID]:
    result = await session.execute(
        select(RoomType.name, RoomType.pool_id).where(RoomType.pool_id.is_not(None))
    )
    return {name: pool_id for name, pool_id in result.all()}


async def load_allocated_rooms(
    session: AsyncSession, *, booking_id: uuid.UUID
) -> list[AllocatedRoom]:
    """Return the rooms currently assigned to a booking."""

    result = await session.execute(
        select(RoomAssignment)
        .options(selectinload(RoomAssignment.room).selectinload(Room.room_type))
        .where(RoomAssignment.booking_id == booking_id)
    )
    return [
        to_allocated_room(assignment.room, assignment)
        for assignment in result.scalars().all()
    ]


async def _load_booking_for_update(
    session: AsyncSession, booking_id: uuid.UUID
) -> Booking:
    booking = (
        await session.execute(
            select(Booking).where(Booking.id == booking_id).with_for_update()
        )
    ).scalar_one_or_none()
    if booking is None:
        raise BookingNotFound(f"Booking {booking_id} not found")
    if booking.status is BookingStatus.CANCELLED:
        raise ResourceUnavailable("Rooms cannot be assigned to a cancelled booking")
    return booking


async def _load_room_for_update(session: AsyncSession, room_id: uuid.UUID) -> Room:
    room = (
        await session.execute(
            select(Room)
            .options(selectinload(Room.room_type))
            .where(Room.id == room_id)
            .with_for_update()
        )
    ).scalar_one_or_none()
    if room is None or not room.active:
        raise ResourceUnavailable(f"Room {room_id} is not available for allocation")
    return room


async def _ensure_room_free(
    session: AsyncSession, *, booking: Booking, room: Room
) -> None:
    result = await session.execute(
        select(Booking.id, Booking.arrival_date, Booking.departure_date, Booking.status)
        .join(RoomAssignment, RoomAssignment.booking_id == Booking.id)
        .where(RoomAssignment.room_id == room.id, Booking.id != booking.id)
    )
    stays = [
        RoomStay(
            room_id=room.id,
            booking_id=other_id,
            arrival_date=arrival,
            departure_date=departure,
            booking_status=status,
        )
        for other_id, arrival, departure, status in result.all()
    ]
    conflicts = find_room_conflicts(
        booking.id, booking.arrival_date, booking.departure_date, stays
    )
    if conflicts:
        logger.warning(
            "Room %s already held by booking(s) %s", room.room_number,
            ", ".join(str(conflict.conflicts_with) for conflict in conflicts),
        )
        raise ResourceUnavailable(
            f"Room {room.room_number} is already allocated for overlapping dates"
        )


async def assign_room(
    session: AsyncSession,
    *,
    booking_id: uuid.UUID,
    room_id: uuid.UUID,
    extra_bed_selected: bool = False,
    ensuite_selected: bool = False,
    private_study_selected: bool = False,
    guest_names: Sequence[str] = (),
    locks: ResourceLocks | None = None,
) -> RoomAssignment:
    """Allocate a room to a booking, or update the extras of an existing one.

    Availability and the shared pool bound are checked and written while the
    room and booking locks are held, so two concurrent requests cannot both pass.
    """

    locks = locks or resource_locks
    async with locks.hold(room_key(room_id), booking_key(booking_id)):
        booking = await _load_booking_for_update(session, booking_id)
        room = await _load_room_for_update(session, room_id)
        await _ensure_room_free(session, booking=booking, room=room)

        existing = (
            await session.execute(
                select(RoomAssignment).where(
                    RoomAssignment.booking_id == booking_id,
                    RoomAssignment.room_id == room_id,
                )
            )
        ).scalar_one_or_none()

        candidate = replace(
            to_allocated_room(room, None),
            extra_bed_selected=extra_bed_selected,
            ensuite_selected=ensuite_selected,
            private_study_selected=private_study_selected,
            guest_names=tuple(guest_names),
        )
        current = [
            allocated
            for allocated in await load_allocated_rooms(session, booking_id=booking_id)
            if allocated.room_id != room_id
        ]
        capacities = await load_pool_capacities(session)
        try:
            ensure_pool_capacity([*current, candidate], capacities)
        except PoolCapacityExceeded:
            logger.warning(
                "Rejected room %s for booking %s: ensuite pool exhausted",
                room.room_number,
                booking.reference,
            )
            raise

        assignment = existing or RoomAssignment(booking_id=booking_id, room_id=room_id)
        assignment.extra_bed_selected = extra_bed_selected
        assignment.ensuite_selected = ensuite_selected
        assignment.private_study_selected = private_study_selected
        assignment.guest_names = list(guest_names)
        session.add(assignment)
        try:
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            raise ResourceUnavailable(
                f"Room {room.room_number} could not be allocated"
            ) from exc

    await session.refresh(assignment)
    logger.info("Allocated room %s to booking %s", room.room_number, booking.reference)
    return assignment


async def release_room(
    session: AsyncSession,
    *,
    booking_id: uuid.UUID,
    room_id: uuid.UUID,
    locks: ResourceLocks | None = None,
) -> bool:
    """Remove a room allocation; returns False when nothing was assigned."""

    locks = locks or resource_locks
    async with locks.hold(room_key(room_id), booking_key(booking_id)):
        assignment = (
            await session.execute(
                select(RoomAssignment).where(
                    RoomAssignment.booking_id == booking_id,
                    RoomAssignment.room_id == room_id,
                )
            )
        ).scalar_one_or_none()
        if assignment is None:
            return False
        await session.delete(assignment)
        await session.commit()
    return True
