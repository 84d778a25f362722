"""Append-only price snapshot archive for bookings."""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from venue_office.core.errors import SnapshotWriteFailed
from venue_office.models import BookingPriceSnapshot, SnapshotType
from venue_office.schemas.pricing import PercentageDiscount
from venue_office.services.line_item_service import PricingLineItem
from venue_office.services.pricing_display import format_currency
from venue_office.services.pricing_service import PricingResult

logger = logging.getLogger(__name__)

LineItemKey = tuple[str, str, int]


@dataclass(frozen=True, slots=True)
class SnapshotComparison:
    """Differences between two snapshots of the same booking."""

    subtotal_delta: Decimal
    discount_delta: Decimal
    total_delta: Decimal
    line_items_changed: bool
    new_discount_applied: bool
    added: tuple[LineItemKey, ...] = field(default_factory=tuple)
    removed: tuple[LineItemKey, ...] = field(default_factory=tuple)
    changed: tuple[LineItemKey, ...] = field(default_factory=tuple)


async def create_snapshot(
    session: AsyncSession,
    *,
    booking_id: uuid.UUID,
    result: PricingResult,
    snapshot_type: SnapshotType,
    overridden_by: str | None = None,
) -> BookingPriceSnapshot:
    """Persist an immutable snapshot of ``result`` as the booking's next revision."""

    policy = result.discount_policy
    try:
        current = (
            await session.execute(
                select(func.max(BookingPriceSnapshot.revision)).where(
                    BookingPriceSnapshot.booking_id == booking_id
                )
            )
        ).scalar_one_or_none()
        snapshot = BookingPriceSnapshot(
            booking_id=booking_id,
            revision=(current or 0) + 1,
            snapshot_type=snapshot_type,
            line_items=[item.to_dict() for item in result.line_items],
            subtotal=result.subtotal,
            discount_percentage=(
                policy.percentage if isinstance(policy, PercentageDiscount) else None
            ),
            discount_amount=result.discount_amount,
            total=result.total,
            price_table_snapshot=result.price_snapshot.to_dict(),
            discount_policy=policy.model_dump(mode="json") if policy else None,
            override_notes=policy.notes if policy else None,
            overridden_by=overridden_by,
        )
        session.add(snapshot)
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Failed to write price snapshot for booking %s", booking_id)
        raise SnapshotWriteFailed(
            f"Failed to create price snapshot for booking {booking_id}: {exc}"
        ) from exc
    await session.refresh(snapshot)
    logger.info(
        "Recorded %s price snapshot r%s for booking %s (total %s)",
        snapshot_type.value,
        snapshot.revision,
        booking_id,
        result.total,
    )
    return snapshot


async def get_latest_snapshot(
    session: AsyncSession, *, booking_id: uuid.UUID
) -> BookingPriceSnapshot | None:
    """Return the most recent snapshot for a booking, if any."""

    result = await session.execute(
        select(BookingPriceSnapshot)
        .where(BookingPriceSnapshot.booking_id == booking_id)
        .order_by(BookingPriceSnapshot.revision.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_snapshots(
    session: AsyncSession, *, booking_id: uuid.UUID
) -> list[BookingPriceSnapshot]:
    """Return the full audit trail for a booking, oldest first."""

    result = await session.execute(
        select(BookingPriceSnapshot)
        .where(BookingPriceSnapshot.booking_id == booking_id)
        .order_by(BookingPriceSnapshot.revision.asc())
    )
    return list(result.scalars().all())


async def get_snapshot(
    session: AsyncSession, *, snapshot_id: uuid.UUID
) -> BookingPriceSnapshot | None:
    return await session.get(BookingPriceSnapshot, snapshot_id, populate_existing=True)


def snapshot_line_items(snapshot: BookingPriceSnapshot) -> list[PricingLineItem]:
    return [PricingLineItem.from_dict(data) for data in snapshot.line_items]


def _keyed_totals(items: list[PricingLineItem]) -> dict[LineItemKey, Decimal]:
    # Repeated labels (e.g. two extras with the same name) get an occurrence index.
    seen: Counter[tuple[str, str]] = Counter()
    keyed: dict[LineItemKey, Decimal] = {}
    for item in items:
        category, label = item.key
        keyed[(category, label, seen[item.key])] = item.total
        seen[item.key] += 1
    return keyed


def compare_snapshots(
    original: BookingPriceSnapshot, updated: BookingPriceSnapshot
) -> SnapshotComparison:
    """Summarise how ``updated`` differs from ``original``."""

    before = _keyed_totals(snapshot_line_items(original))
    after = _keyed_totals(snapshot_line_items(updated))

    added = tuple(key for key in after if key not in before)
    removed = tuple(key for key in before if key not in after)
    changed = tuple(
        key for key in after if key in before and before[key] != after[key]
    )

    return SnapshotComparison(
        subtotal_delta=Decimal(updated.subtotal) - Decimal(original.subtotal),
        discount_delta=Decimal(updated.discount_amount or 0)
        - Decimal(original.discount_amount or 0),
        total_delta=Decimal(updated.total) - Decimal(original.total),
        line_items_changed=bool(added or removed or changed),
        new_discount_applied=(
            not original.discount_percentage and bool(updated.discount_percentage)
        ),
        added=added,
        removed=removed,
        changed=changed,
    )


def format_snapshot(snapshot: BookingPriceSnapshot) -> dict[str, Any]:
    """Render a snapshot into display strings."""

    discount = Decimal(snapshot.discount_amount or 0)
    return {
        "type": snapshot.snapshot_type.value,
        "revision": snapshot.revision,
        "created": snapshot.created_at.strftime("%d/%m/%Y %H:%M")
        if snapshot.created_at
        else None,
        "subtotal": format_currency(Decimal(snapshot.subtotal)),
        "discount": format_currency(discount) if discount else "None",
        "total": format_currency(Decimal(snapshot.total)),
        "line_items": [
            {
                "description": (
                    f"{item.item} ({item.qty} x {format_currency(item.unit_price)})"
                ),
                "total": format_currency(item.total),
                "discounted": (
                    format_currency(item.discounted_total)
                    if item.discounted_total is not None
                    else None
                ),
            }
            for item in snapshot_line_items(snapshot)
        ],
    }
