"""Price catalog and physical inventory models."""
from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from venue_office.db.base import Base
from venue_office.models.mixins import TimestampMixin


class MealPrice(TimestampMixin, Base):
    """Per-serve price of a meal type."""

    __tablename__ = "meal_prices"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    meal_type: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))


class RoomPool(TimestampMixin, Base):
    """Fixed set of physical rooms shared between several room types."""

    __tablename__ = "room_pools"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)

    room_types: Mapped[list["RoomType"]] = relationship(
        "RoomType", back_populates="pool"
    )


class RoomType(TimestampMixin, Base):
    """Sellable room category with a per bed-night price."""

    __tablename__ = "room_types"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    max_qty: Mapped[int | None] = mapped_column(Integer)
    pool_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("room_pools.id", ondelete="SET NULL")
    )

    pool: Mapped["RoomPool | None"] = relationship(
        "RoomPool", back_populates="room_types"
    )
    rooms: Mapped[list["Room"]] = relationship("Room", back_populates="room_type")


class Room(TimestampMixin, Base):
    """A physical bedroom."""

    __tablename__ = "rooms"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    room_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    level: Mapped[str | None] = mapped_column(String(64))
    room_type_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("room_types.id", ondelete="SET NULL")
    )
    extra_bed_allowed: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    ensuite_available: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    private_study_available: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    room_type: Mapped["RoomType | None"] = relationship(
        "RoomType", back_populates="rooms"
    )


class Space(TimestampMixin, Base):
    """Bookable meeting space (chapel, hall, ...)."""

    __tablename__ = "spaces"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    capacity: Mapped[int | None] = mapped_column(Integer)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
