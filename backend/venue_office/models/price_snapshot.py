"""Immutable price snapshots recorded against bookings."""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqlalchemy import (
    JSON,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from venue_office.core.errors import SnapshotImmutable
from venue_office.db.base import Base
from venue_office.db.types import ExactDecimal

if TYPE_CHECKING:  # pragma: no cover
    from venue_office.models.booking import Booking


class SnapshotType(str, enum.Enum):
    """Why a snapshot was recorded."""

    STANDARD = "standard"
    CUSTOM_LINK = "custom_link"
    ADMIN_OVERRIDE = "admin_override"


class BookingPriceSnapshot(Base):
    """Append-only audit record of a computed booking price."""

    __tablename__ = "booking_price_snapshots"
    __table_args__ = (
        UniqueConstraint("booking_id", "revision", name="uq_snapshot_revision"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    revision: Mapped[int] = mapped_column(Integer, nullable=False)
    snapshot_type: Mapped[SnapshotType] = mapped_column(
        Enum(SnapshotType), nullable=False
    )
    line_items: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(ExactDecimal, nullable=False)
    discount_percentage: Mapped[Decimal | None] = mapped_column(ExactDecimal)
    discount_amount: Mapped[Decimal] = mapped_column(ExactDecimal, nullable=False)
    total: Mapped[Decimal] = mapped_column(ExactDecimal, nullable=False)
    price_table_snapshot: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    discount_policy: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    override_notes: Mapped[str | None] = mapped_column(String(1024))
    overridden_by: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=sa.func.now(),
    )

    booking: Mapped["Booking"] = relationship(
        "Booking", back_populates="price_snapshots"
    )


@event.listens_for(BookingPriceSnapshot, "before_update")
def _reject_snapshot_update(_mapper, _connection, target: BookingPriceSnapshot) -> None:
    raise SnapshotImmutable(
        f"Price snapshot {target.id} is immutable; record a new snapshot instead"
    )
