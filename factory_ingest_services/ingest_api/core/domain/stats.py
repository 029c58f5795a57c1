"""Vistas derivadas de solo lectura sobre eventos guardados."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class HealthStatus(str, Enum):
    """Clasificación de salud de una máquina (dos estados, sin transiciones)."""
    HEALTH = "HEALTH"
    WARNING = "WARNING"


@dataclass(frozen=True)
class WindowStats:
    machine_id: str
    start: datetime
    end: datetime
    events_count: int
    defects_count: int
    avg_defect_rate: float
    status: HealthStatus

    def to_dict(self) -> dict:
        return {
            "machineId": self.machine_id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "eventsCount": self.events_count,
            "defectsCount": self.defects_count,
            "avgDefectRate": self.avg_defect_rate,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class LineDefectTotals:
    """Fila agregada por línea que devuelve el store."""
    line_id: str
    total_defects: int
    event_count: int


@dataclass(frozen=True)
class LineRanking:
    line_id: str
    total_defects: int
    event_count: int
    defects_percent: float

    def to_dict(self) -> dict:
        return {
            "lineId": self.line_id,
            "totalDefects": self.total_defects,
            "eventCount": self.event_count,
            "defectsPercent": self.defects_percent,
        }
