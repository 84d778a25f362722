"""Audit event model for tracking key back-office actions."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any, TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import DateTime, ForeignKey, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from venue_office.db.base import Base

if TYPE_CHECKING:  # pragma: no cover
    from venue_office.models.booking import Booking


class AuditEvent(Base):
    """Stores immutable audit events for approvals, overrides and failures."""

    __tablename__ = "audit_events"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    booking_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("bookings.id", ondelete="SET NULL")
    )
    actor: Mapped[str | None] = mapped_column(String(255))
    event_type: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1024))
    payload: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=sa.func.now(),
    )

    booking: Mapped["Booking | None"] = relationship("Booking")
