"""Persistence infrastructure for machine events."""

from .memory_store import InMemoryEventStore
from .schema_setup import ensure_schema
from .sql_store import SqlEventStore
from .tables import machine_events, metadata

__all__ = [
    "InMemoryEventStore",
    "SqlEventStore",
    "ensure_schema",
    "machine_events",
    "metadata",
]
