"""Abstract interface for the event store.

This decouples reconciliation and aggregation from persistence details.
Any store implementation (SQL, in-memory) can implement this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence

from .events import StoredEvent
from .stats import LineDefectTotals


class EventStore(ABC):
    """Abstract interface for durable keyed event storage.

    Implementations:
    - SqlEventStore: SQLAlchemy session over machine_events
    - InMemoryEventStore: dict + lock, for tests and local runs

    Failures must be raised as StoreError (or DuplicateEventError for
    unique-key conflicts).
    """

    @abstractmethod
    def find_by_id(self, event_id: str) -> Optional[StoredEvent]:
        """Return the stored record for ``event_id`` or None."""
        pass

    @abstractmethod
    def find_by_machine_and_time_range(
        self, machine_id: str, start: datetime, end: datetime
    ) -> List[StoredEvent]:
        """Records of ``machine_id`` with event_time in [start, end)."""
        pass

    @abstractmethod
    def group_defects_by_line(
        self, factory_id: str, start: datetime, end: datetime
    ) -> List[LineDefectTotals]:
        """Per-line totals for event_time in [start, end).

        Only rows with defect_count >= 0 contribute (to both totals and
        counts). Ordered by total_defects descending.
        """
        pass

    @abstractmethod
    def upsert_all(self, records: Sequence[StoredEvent]) -> None:
        """Apply the queued writes of one batch, all or nothing.

        - ``record.expected_hash is None``: plain insert. If the event_id
          already exists, raise DuplicateEventError.
        - otherwise: overwrite only if the stored payload_hash still equals
          ``expected_hash``. If the row is missing or changed, raise
          DuplicateEventError.

        created_at is preserved on overwrite and updated_at refreshed.
        Empty input is a no-op.
        """
        pass
