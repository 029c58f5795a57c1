"""Modelo de dominio para eventos de máquina."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional


def as_utc(value: datetime) -> datetime:
    """Normaliza un datetime a UTC con tzinfo (naive se interpreta como UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class RejectionReason(str, Enum):
    """Códigos de rechazo por evento."""
    INVALID_DURATION = "INVALID_DURATION"
    INVALID_EVENT_TIME = "INVALID_EVENT_TIME"


class Decision(str, Enum):
    """Resultado de reconciliar un evento contra el estado guardado."""
    ACCEPT = "accept"
    DEDUPE = "dedupe"
    UPDATE = "update"


@dataclass(frozen=True)
class MachineEvent:
    """Evento de telemetría de máquina - unidad de ingesta.

    ``payload_hash`` nunca lo envía el productor: lo calcula el reconciliador
    a partir de los campos de negocio.
    """
    event_id: str
    event_time: datetime
    received_time: datetime
    machine_id: str
    factory_id: str
    line_id: str
    duration_ms: int
    defect_count: int
    payload_hash: Optional[str] = None

    def with_payload_hash(self, payload_hash: str) -> "MachineEvent":
        return replace(self, payload_hash=payload_hash)


@dataclass(frozen=True)
class StoredEvent:
    """Proyección persistida de un evento.

    ``created_at`` y ``updated_at`` los asigna el store.

    ``expected_hash`` indica la intención de escritura en ``upsert_all``:
    - None: el eventId no existía al reconciliar, se inserta
    - hash: se sobrescribe solo si el registro guardado sigue teniendo ese hash
    """
    event_id: str
    event_time: datetime
    received_time: datetime
    machine_id: str
    factory_id: str
    line_id: str
    duration_ms: int
    defect_count: int
    payload_hash: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    expected_hash: Optional[str] = field(default=None, compare=False)

    @property
    def is_insert(self) -> bool:
        return self.expected_hash is None

    @classmethod
    def from_event(
        cls, event: MachineEvent, expected_hash: Optional[str] = None
    ) -> "StoredEvent":
        if event.payload_hash is None:
            raise ValueError(f"event {event.event_id!r} has no payload_hash")
        return cls(
            event_id=event.event_id,
            event_time=as_utc(event.event_time),
            received_time=as_utc(event.received_time),
            machine_id=event.machine_id,
            factory_id=event.factory_id,
            line_id=event.line_id,
            duration_ms=int(event.duration_ms),
            defect_count=int(event.defect_count),
            payload_hash=event.payload_hash,
            expected_hash=expected_hash,
        )


@dataclass(frozen=True)
class Rejection:
    event_id: str
    reason: RejectionReason


@dataclass
class BatchOutcome:
    """Resumen de un lote procesado."""
    accepted: int = 0
    deduped: int = 0
    updated: int = 0
    rejected: int = 0
    rejections: List[Rejection] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.accepted + self.deduped + self.updated + self.rejected

    def to_dict(self) -> dict:
        return {
            "accepted": self.accepted,
            "deduped": self.deduped,
            "updated": self.updated,
            "rejected": self.rejected,
            "rejections": [
                {"eventId": r.event_id, "reason": r.reason.value} for r in self.rejections
            ],
        }
