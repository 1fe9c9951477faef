"""Shared test fixtures."""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

# Import all models so SQLModel.metadata knows about them
from walkie.models.store import StoredValue  # noqa: F401
from walkie.db.store import GoalSetting, KeyValueStore, WalkHistory


class FakeClock:
    """Manually advanced clock. Call it to read the time."""

    def __init__(self, start: datetime = datetime(2025, 5, 10, 8, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture(name="clock")
def clock_fixture() -> FakeClock:
    return FakeClock()


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine. Tables recreated fresh for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="store")
def store_fixture(engine) -> KeyValueStore:
    return KeyValueStore(engine)


@pytest.fixture(name="goal")
def goal_fixture(store) -> GoalSetting:
    return GoalSetting(store, default_km=2.0)


@pytest.fixture(name="history")
def history_fixture(store) -> WalkHistory:
    return WalkHistory(store)
