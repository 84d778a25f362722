"""Error taxonomy for the pricing and resource engine."""

from __future__ import annotations

from collections.abc import Iterable


class EngineError(ValueError):
    """Base class for deterministic validation failures."""


class InvalidSelections(EngineError):
    """Raised when booking selections fail boundary validation."""

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid booking selections")


class DiscountPolicyError(EngineError):
    """Raised when a discount policy cannot be applied as requested."""


class DiscountExceedsSubtotal(EngineError):
    """Raised when a discount would push the total below zero."""


class SnapshotImmutable(EngineError):
    """Raised on any attempt to modify a stored price snapshot."""


class ResourceUnavailable(EngineError):
    """Raised when a room or space cannot be granted without double-booking."""


class PoolCapacityExceeded(ResourceUnavailable):
    """Raised when a shared room pool would be over-allocated."""


class InvalidStatusTransition(EngineError):
    """Raised when a booking cannot move to the requested status."""


class BookingNotFound(LookupError):
    """Raised when a booking id does not resolve to a stored booking."""


class CatalogUnavailable(RuntimeError):
    """Raised when the price catalog cannot be read."""


class SnapshotWriteFailed(RuntimeError):
    """Raised when a price snapshot could not be persisted."""


class ConflictComputationError(RuntimeError):
    """Raised for reservation data the conflict resolver cannot interpret."""


__all__ = [
    "BookingNotFound",
    "CatalogUnavailable",
    "ConflictComputationError",
    "DiscountExceedsSubtotal",
    "DiscountPolicyError",
    "EngineError",
    "InvalidSelections",
    "InvalidStatusTransition",
    "PoolCapacityExceeded",
    "ResourceUnavailable",
    "SnapshotImmutable",
    "SnapshotWriteFailed",
]
