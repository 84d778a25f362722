"""Test fixtures for the venue back office."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from decimal import Decimal
import uuid

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

from venue_office.core.config import get_settings
from venue_office.db.base import Base
from venue_office.db.session import dispose_engine, get_sessionmaker
from venue_office.models import MealPrice, Room, RoomPool, RoomType, Space
from venue_office.services.resource_locks import ResourceLocks


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest.fixture()
def locks() -> ResourceLocks:
    """Fresh lock registry bound to the running test's event loop."""
    return ResourceLocks()


@dataclass
class Inventory:
    pool_id: uuid.UUID
    spaces: dict[str, uuid.UUID] = field(default_factory=dict)
    rooms: dict[str, uuid.UUID] = field(default_factory=dict)


@pytest_asyncio.fixture()
async def inventory(reset_database: None, db_url: str) -> Inventory:
    """Seed the catalog with meals, room types, a shared ensuite pool and spaces."""
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        session.add_all(
            [
                MealPrice(meal_type="Breakfast", price=Decimal("15.00")),
                MealPrice(meal_type="Lunch", price=Decimal("30.00")),
                MealPrice(meal_type="Dinner", price=Decimal("45.00")),
            ]
        )
        pool = RoomPool(name="Ensuite wing", capacity=2)
        session.add(pool)
        await session.flush()

        double = RoomType(name="Double Bed", price=Decimal("120.00"), max_qty=10)
        single = RoomType(name="Single", price=Decimal("80.00"), max_qty=10)
        twin = RoomType(name="Twin Single", price=Decimal("90.00"), max_qty=6)
        ensuite = RoomType(
            name="Double Bed + Ensuite",
            price=Decimal("150.00"),
            max_qty=2,
            pool_id=pool.id,
        )
        study = RoomType(
            name="Double Bed + Ensuite + Priv Study",
            price=Decimal("180.00"),
            max_qty=2,
            pool_id=pool.id,
        )
        session.add_all([double, single, twin, ensuite, study])
        await session.flush()

        rooms = {
            "101": Room(room_number="101", level="Ground", room_type_id=double.id),
            "102": Room(room_number="102", level="Ground", room_type_id=single.id),
            "103": Room(
                room_number="103",
                level="Ground",
                room_type_id=twin.id,
                extra_bed_allowed=True,
            ),
            "201": Room(
                room_number="201",
                level="Upper",
                room_type_id=ensuite.id,
                ensuite_available=True,
                private_study_available=True,
            ),
            "202": Room(
                room_number="202",
                level="Upper",
                room_type_id=ensuite.id,
                ensuite_available=True,
                private_study_available=True,
            ),
            "203": Room(
                room_number="203",
                level="Upper",
                room_type_id=study.id,
                ensuite_available=True,
                private_study_available=True,
            ),
            "301": Room(room_number="301", level="Annex", room_type_id=double.id, active=False),
        }
        session.add_all(rooms.values())

        spaces = {
            "Chapel": Space(name="Chapel", price=Decimal("200.00"), capacity=80),
            "Main Hall": Space(name="Main Hall", price=Decimal("350.00"), capacity=150),
            "Old Library": Space(
                name="Old Library", price=Decimal("90.00"), capacity=20, active=False
            ),
        }
        session.add_all(spaces.values())
        await session.commit()

        return Inventory(
            pool_id=pool.id,
            spaces={name: space.id for name, space in spaces.items()},
            rooms={number: room.id for number, room in rooms.items()},
        )
