"""Tabla machine_events (un registro por eventId)."""

from __future__ import annotations

from sqlalchemy import BigInteger, Column, DateTime, Index, Integer, MetaData, String, Table

metadata = MetaData()

# Timestamps en UTC naive: SQLite no guarda zona horaria y así
# las comparaciones de rango son consistentes en todos los motores.
machine_events = Table(
    "machine_events",
    metadata,
    Column("event_id", String(128), primary_key=True),
    Column("machine_id", String(128), nullable=False),
    Column("factory_id", String(128), nullable=False),
    Column("line_id", String(128), nullable=False),
    Column("event_time", DateTime, nullable=False),
    Column("received_time", DateTime, nullable=False),
    Column("duration_ms", BigInteger, nullable=False),
    Column("defect_count", Integer, nullable=False),
    Column("payload_hash", String(64), nullable=False),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
    Index("ix_machine_events_machine_time", "machine_id", "event_time"),
    Index("ix_machine_events_factory_time", "factory_id", "event_time"),
)
