"""Service layer exports."""
from venue_office.services import (
    allocation_service,
    approval_service,
    audit_service,
    booking_service,
    catalog_service,
    conflict_service,
    discount_service,
    line_item_service,
    pricing_display,
    pricing_service,
    snapshot_service,
    space_reservation_service,
)

__all__ = [
    "allocation_service",
    "approval_service",
    "audit_service",
    "booking_service",
    "catalog_service",
    "conflict_service",
    "discount_service",
    "line_item_service",
    "pricing_display",
    "pricing_service",
    "snapshot_service",
    "space_reservation_service",
]
