"""Helper utilities for recording audit events."""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from venue_office.models.audit_event import AuditEvent


async def record_event(
    session: AsyncSession,
    *,
    event_type: str,
    booking_id: uuid.UUID | None = None,
    actor: str | None = None,
    description: str | None = None,
    payload: dict[str, Any] | None = None,
) -> AuditEvent:
    """Persist an audit event and return it."""
    event = AuditEvent(
        booking_id=booking_id,
        actor=actor,
        event_type=event_type,
        description=description,
        payload=payload,
    )
    session.add(event)
    await session.commit()
    await session.refresh(event)
    return event


async def list_events(
    session: AsyncSession,
    *,
    booking_id: uuid.UUID,
    event_type: str | None = None,
) -> list[AuditEvent]:
    """Return audit events for a booking in the order they were recorded."""
    stmt = select(AuditEvent).where(AuditEvent.booking_id == booking_id)
    if event_type is not None:
        stmt = stmt.where(AuditEvent.event_type == event_type)
    result = await session.execute(stmt.order_by(AuditEvent.created_at))
    return list(result.scalars().all())
