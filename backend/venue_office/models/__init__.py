"""ORM models package export."""

from venue_office.models.audit_event import AuditEvent
from venue_office.models.booking import Booking, BookingStatus
from venue_office.models.catalog import MealPrice, Room, RoomPool, RoomType, Space
from venue_office.models.price_snapshot import BookingPriceSnapshot, SnapshotType
from venue_office.models.reservation import RoomAssignment, SpaceReservation

__all__ = [
    "AuditEvent",
    "Booking",
    "BookingPriceSnapshot",
    "BookingStatus",
    "MealPrice",
    "Room",
    "RoomAssignment",
    "RoomPool",
    "RoomType",
    "SnapshotType",
    "Space",
    "SpaceReservation",
]
