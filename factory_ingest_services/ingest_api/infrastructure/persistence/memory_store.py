from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from ...core.domain.errors import DuplicateEventError
from ...core.domain.events import StoredEvent, as_utc
from ...core.domain.stats import LineDefectTotals
from ...core.domain.store_interface import EventStore


class InMemoryEventStore(EventStore):
    """Implementación sencilla en memoria del store de eventos.

    - Un dict por eventId protegido por un lock: cada operación es atómica.
    - Útil para tests y corridas locales sin base de datos.
    """

    def __init__(self) -> None:
        self._records: Dict[str, StoredEvent] = {}
        self._lock = threading.Lock()

    def find_by_id(self, event_id: str) -> Optional[StoredEvent]:
        with self._lock:
            return self._records.get(event_id)

    def find_by_machine_and_time_range(
        self, machine_id: str, start: datetime, end: datetime
    ) -> List[StoredEvent]:
        start, end = as_utc(start), as_utc(end)
        with self._lock:
            matched = [
                r for r in self._records.values()
                if r.machine_id == machine_id and start <= as_utc(r.event_time) < end
            ]
        return sorted(matched, key=lambda r: as_utc(r.event_time))

    def group_defects_by_line(
        self, factory_id: str, start: datetime, end: datetime
    ) -> List[LineDefectTotals]:
        start, end = as_utc(start), as_utc(end)
        totals: Dict[str, List[int]] = {}
        with self._lock:
            for r in self._records.values():
                if r.factory_id != factory_id or r.defect_count < 0:
                    continue
                if not (start <= as_utc(r.event_time) < end):
                    continue
                acc = totals.setdefault(r.line_id, [0, 0])
                acc[0] += r.defect_count
                acc[1] += 1

        rows = [LineDefectTotals(line_id, d, c) for line_id, (d, c) in totals.items()]
        # sorted() es estable: los empates conservan el orden de aparición.
        return sorted(rows, key=lambda row: row.total_defects, reverse=True)

    def upsert_all(self, records: Sequence[StoredEvent]) -> None:
        if not records:
            return

        now = datetime.now(timezone.utc)
        with self._lock:
            # Se verifica todo el lote antes de escribir: o se aplica entero o nada.
            for record in records:
                current = self._records.get(record.event_id)
                if record.is_insert:
                    stale = current is not None
                else:
                    stale = current is None or current.payload_hash != record.expected_hash
                if stale:
                    raise DuplicateEventError(
                        "upsert_all",
                        "event_id changed by another batch since lookup",
                        event_ids=[record.event_id],
                    )

            for record in records:
                current = self._records.get(record.event_id)
                created_at = current.created_at if current is not None else now
                self._records[record.event_id] = replace(
                    record, created_at=created_at, updated_at=now, expected_hash=None
                )

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
