"""Tests for advisory space and room conflict detection."""

from __future__ import annotations

import uuid
from datetime import date, time

import pytest

from venue_office.core.errors import ConflictComputationError
from venue_office.models import BookingStatus
from venue_office.services.conflict_service import (
    RoomStay,
    SpaceReservationRequest,
    find_conflicts,
    find_room_conflicts,
    overlaps,
)

CHAPEL = uuid.uuid4()
HALL = uuid.uuid4()
JUNE_FIRST = date(2024, 6, 1)


def _request(
    start: time | None,
    end: time | None,
    *,
    booking_id: uuid.UUID | None = None,
    space_id: uuid.UUID = CHAPEL,
    service_date: date = JUNE_FIRST,
    status: BookingStatus | None = BookingStatus.PENDING,
) -> SpaceReservationRequest:
    return SpaceReservationRequest(
        booking_id=booking_id or uuid.uuid4(),
        space_id=space_id,
        service_date=service_date,
        start_time=start,
        end_time=end,
        booking_status=status,
    )


def test_touching_reservations_do_not_conflict() -> None:
    morning = _request(time(9), time(11))
    midday = _request(time(11), time(13))

    assert not overlaps(morning, midday)
    assert not overlaps(midday, morning)


def test_one_minute_overlap_conflicts() -> None:
    morning = _request(time(9), time(11, 1))
    midday = _request(time(11), time(13))

    assert overlaps(morning, midday)


@pytest.mark.parametrize(
    ("first", "second"),
    [
        ((time(9), time(11)), (time(10), time(12))),
        ((time(9), time(17)), (time(12), time(13))),
        ((time(9), time(11)), (time(11), time(13))),
        ((None, None), (time(8), time(9))),
        ((None, time(10)), (time(10), None)),
        ((time(14), time(15)), (time(9), time(10))),
    ],
)
def test_overlap_is_symmetric(first, second) -> None:
    a = _request(*first)
    b = _request(*second)

    assert overlaps(a, b) == overlaps(b, a)


def test_missing_times_cover_the_whole_day() -> None:
    all_day = _request(None, None)

    assert overlaps(all_day, _request(time(23), time(23, 30)))
    assert overlaps(all_day, _request(time(0), time(0, 30)))


def test_different_space_or_date_never_overlaps() -> None:
    mine = _request(None, None)

    assert not overlaps(mine, _request(None, None, space_id=HALL))
    assert not overlaps(mine, _request(None, None, service_date=date(2024, 6, 2)))


def test_inverted_window_is_a_computation_error() -> None:
    with pytest.raises(ConflictComputationError):
        overlaps(_request(time(12), time(9)), _request(time(9), time(10)))


def test_approved_booking_outranks_pending_one() -> None:
    my_id = uuid.uuid4()
    mine = [_request(time(9), time(12), booking_id=my_id)]
    pending = [_request(time(10), time(11), status=BookingStatus.PENDING)]

    assert find_conflicts(my_id, mine, pending, BookingStatus.APPROVED) == []
    assert find_conflicts(my_id, mine, pending, BookingStatus.DEPOSIT_RECEIVED) == []


@pytest.mark.parametrize(
    ("my_status", "other_status"),
    [
        (BookingStatus.PENDING, BookingStatus.PENDING),
        (BookingStatus.PENDING, BookingStatus.CONFIRMED),
        (BookingStatus.CONFIRMED, BookingStatus.APPROVED),
        (BookingStatus.IN_TRIAGE, BookingStatus.PENDING),
    ],
)
def test_other_status_combinations_conflict(my_status, other_status) -> None:
    my_id = uuid.uuid4()
    other_id = uuid.uuid4()
    mine = [_request(time(9), time(12), booking_id=my_id)]
    others = [_request(time(10), time(11), booking_id=other_id, status=other_status)]

    (conflict,) = find_conflicts(my_id, mine, others, my_status)

    assert conflict.booking_id == my_id
    assert conflict.conflicts_with == other_id
    assert conflict.space_id == CHAPEL
    assert conflict.service_date == JUNE_FIRST


def test_cancelled_and_own_reservations_are_ignored() -> None:
    my_id = uuid.uuid4()
    mine = [_request(time(9), time(12), booking_id=my_id)]
    others = [
        _request(time(9), time(12), booking_id=my_id),
        _request(time(9), time(12), status=BookingStatus.CANCELLED),
    ]

    assert find_conflicts(my_id, mine, others, BookingStatus.PENDING) == []


def test_room_stays_conflict_only_when_nights_overlap() -> None:
    my_id = uuid.uuid4()
    room_id = uuid.uuid4()
    before = RoomStay(
        room_id=room_id,
        booking_id=uuid.uuid4(),
        arrival_date=date(2024, 5, 30),
        departure_date=date(2024, 6, 1),
        booking_status=BookingStatus.APPROVED,
    )
    during = RoomStay(
        room_id=room_id,
        booking_id=uuid.uuid4(),
        arrival_date=date(2024, 6, 2),
        departure_date=date(2024, 6, 5),
        booking_status=BookingStatus.PENDING,
    )
    cancelled = RoomStay(
        room_id=room_id,
        booking_id=uuid.uuid4(),
        arrival_date=date(2024, 6, 1),
        departure_date=date(2024, 6, 3),
        booking_status=BookingStatus.CANCELLED,
    )

    conflicts = find_room_conflicts(
        my_id, date(2024, 6, 1), date(2024, 6, 3), [before, during, cancelled]
    )

    assert [conflict.conflicts_with for conflict in conflicts] == [during.booking_id]
