"""Store de eventos sobre SQLAlchemy.

IMPORTANTE: el store NO hace commit. La unidad de trabajo (commit/rollback)
pertenece al caller (endpoint o CLI), para que un lote se persista completo
o no se persista.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...core.domain.errors import DuplicateEventError, StoreError
from ...core.domain.events import StoredEvent, as_utc
from ...core.domain.stats import LineDefectTotals
from ...core.domain.store_interface import EventStore
from .tables import machine_events

logger = logging.getLogger(__name__)


def _to_db(value: datetime) -> datetime:
    return as_utc(value).replace(tzinfo=None)


def _from_db(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc)


def _row_to_event(row) -> StoredEvent:
    return StoredEvent(
        event_id=str(row.event_id),
        event_time=_from_db(row.event_time),
        received_time=_from_db(row.received_time),
        machine_id=str(row.machine_id),
        factory_id=str(row.factory_id),
        line_id=str(row.line_id),
        duration_ms=int(row.duration_ms),
        defect_count=int(row.defect_count),
        payload_hash=str(row.payload_hash),
        created_at=_from_db(row.created_at),
        updated_at=_from_db(row.updated_at),
    )


def _business_fields(record: StoredEvent) -> dict:
    return {
        "machine_id": record.machine_id,
        "factory_id": record.factory_id,
        "line_id": record.line_id,
        "event_time": _to_db(record.event_time),
        "received_time": _to_db(record.received_time),
        "duration_ms": int(record.duration_ms),
        "defect_count": int(record.defect_count),
        "payload_hash": record.payload_hash,
    }


class SqlEventStore(EventStore):
    """EventStore respaldado por la tabla machine_events."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_id(self, event_id: str) -> Optional[StoredEvent]:
        t = machine_events
        try:
            row = self._db.execute(select(t).where(t.c.event_id == event_id)).first()
        except SQLAlchemyError as e:
            logger.exception("[STORE] find_by_id failed event_id=%s", event_id)
            raise StoreError("find_by_id", f"{type(e).__name__}: {e}") from e

        if not row:
            return None
        return _row_to_event(row)

    def find_by_machine_and_time_range(
        self, machine_id: str, start: datetime, end: datetime
    ) -> List[StoredEvent]:
        t = machine_events
        stmt = (
            select(t)
            .where(
                t.c.machine_id == machine_id,
                t.c.event_time >= _to_db(start),
                t.c.event_time < _to_db(end),
            )
            .order_by(t.c.event_time)
        )
        try:
            rows = self._db.execute(stmt).fetchall()
        except SQLAlchemyError as e:
            logger.exception("[STORE] range query failed machine_id=%s", machine_id)
            raise StoreError("find_by_machine_and_time_range", f"{type(e).__name__}: {e}") from e

        return [_row_to_event(r) for r in rows]

    def group_defects_by_line(
        self, factory_id: str, start: datetime, end: datetime
    ) -> List[LineDefectTotals]:
        t = machine_events
        total_defects = func.sum(t.c.defect_count)
        stmt = (
            select(
                t.c.line_id,
                total_defects.label("total_defects"),
                func.count().label("event_count"),
            )
            .where(
                t.c.factory_id == factory_id,
                t.c.event_time >= _to_db(start),
                t.c.event_time < _to_db(end),
                t.c.defect_count >= 0,
            )
            .group_by(t.c.line_id)
            .order_by(total_defects.desc())
        )
        try:
            rows = self._db.execute(stmt).fetchall()
        except SQLAlchemyError as e:
            logger.exception("[STORE] group query failed factory_id=%s", factory_id)
            raise StoreError("group_defects_by_line", f"{type(e).__name__}: {e}") from e

        return [
            LineDefectTotals(
                line_id=str(r.line_id),
                total_defects=int(r.total_defects or 0),
                event_count=int(r.event_count or 0),
            )
            for r in rows
        ]

    def upsert_all(self, records: Sequence[StoredEvent]) -> None:
        if not records:
            return

        t = machine_events
        now = _to_db(datetime.now(timezone.utc))
        inserts = [
            {"event_id": r.event_id, **_business_fields(r), "created_at": now, "updated_at": now}
            for r in records
            if r.is_insert
        ]
        updates = [r for r in records if not r.is_insert]

        try:
            # Insert plano: si otro lote ya insertó el eventId, la PK lo rechaza.
            if inserts:
                self._db.execute(insert(t), inserts)

            # Compare-and-swap sobre el hash observado; created_at no se toca.
            for record in updates:
                result = self._db.execute(
                    update(t)
                    .where(
                        t.c.event_id == record.event_id,
                        t.c.payload_hash == record.expected_hash,
                    )
                    .values(**_business_fields(record), updated_at=now)
                )
                if result.rowcount != 1:
                    logger.warning(
                        "[STORE] stale update event_id=%s expected_hash=%s",
                        record.event_id,
                        record.expected_hash,
                    )
                    raise DuplicateEventError(
                        "upsert_all",
                        "event_id changed by another batch since lookup",
                        event_ids=[record.event_id],
                    )

            logger.debug("[STORE] upsert inserted=%d updated=%d", len(inserts), len(updates))

        except IntegrityError as e:
            ids = [row["event_id"] for row in inserts]
            logger.warning("[STORE] unique conflict on insert ids=%d err=%s", len(ids), type(e).__name__)
            raise DuplicateEventError(
                "upsert_all",
                "event_id inserted concurrently by another batch",
                event_ids=ids,
            ) from e
        except SQLAlchemyError as e:
            logger.exception("[STORE] upsert failed records=%d", len(records))
            raise StoreError("upsert_all", f"{type(e).__name__}: {e}") from e
