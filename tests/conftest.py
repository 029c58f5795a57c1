"""Fixtures compartidas por los tests de ingesta de eventos."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from factory_ingest_services.ingest_api.core.domain import MachineEvent
from factory_ingest_services.ingest_api.infrastructure.persistence import (
    InMemoryEventStore,
    metadata,
)


NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def make_event(
    event_id: str = "E-1",
    defect_count: int = 1,
    *,
    event_time: datetime | None = None,
    received_time: datetime | None = None,
    machine_id: str = "M1",
    factory_id: str = "F1",
    line_id: str = "L1",
    duration_ms: int = 1000,
) -> MachineEvent:
    return MachineEvent(
        event_id=event_id,
        event_time=event_time or NOW - timedelta(minutes=10),
        received_time=received_time or NOW - timedelta(minutes=5),
        machine_id=machine_id,
        factory_id=factory_id,
        line_id=line_id,
        duration_ms=duration_ms,
        defect_count=defect_count,
    )


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Reloj fijo para probar los límites temporales."""
    return lambda: NOW


@pytest.fixture
def memory_store() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture
def sqlite_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db_session(sqlite_engine):
    TestingSessionLocal = sessionmaker(
        bind=sqlite_engine, autocommit=False, autoflush=False, future=True
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
