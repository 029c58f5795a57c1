from __future__ import annotations

from datetime import datetime, timezone
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .core.domain import (
    BatchOutcome,
    HealthStatus,
    LineRanking,
    MachineEvent,
    WindowStats,
)

T = TypeVar("T")


class CamelModel(BaseModel):
    # JSON en camelCase (eventId, machineId...), acepta también snake_case.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MachineEventIn(CamelModel):
    event_id: str = Field(..., min_length=1)
    event_time: datetime
    received_time: Optional[datetime] = None
    machine_id: str
    factory_id: str
    line_id: str
    # Sin ge/le: los rangos inválidos son rechazos por evento, no 422.
    duration_ms: int
    defect_count: int

    def to_domain(self, received_default: datetime) -> MachineEvent:
        return MachineEvent(
            event_id=self.event_id,
            event_time=self.event_time,
            received_time=self.received_time or received_default,
            machine_id=self.machine_id,
            factory_id=self.factory_id,
            line_id=self.line_id,
            duration_ms=self.duration_ms,
            defect_count=self.defect_count,
        )


class RejectionOut(CamelModel):
    event_id: str
    reason: str


class BatchIngestResult(CamelModel):
    accepted: int
    deduped: int
    updated: int
    rejected: int
    rejections: List[RejectionOut] = Field(default_factory=list)

    @classmethod
    def from_outcome(cls, outcome: BatchOutcome) -> "BatchIngestResult":
        return cls(
            accepted=outcome.accepted,
            deduped=outcome.deduped,
            updated=outcome.updated,
            rejected=outcome.rejected,
            rejections=[
                RejectionOut(event_id=r.event_id, reason=r.reason.value)
                for r in outcome.rejections
            ],
        )


class MachineStatsOut(CamelModel):
    machine_id: str
    start: datetime
    end: datetime
    events_count: int
    defects_count: int
    avg_defect_rate: float
    status: HealthStatus

    @classmethod
    def from_stats(cls, stats: WindowStats) -> "MachineStatsOut":
        return cls(
            machine_id=stats.machine_id,
            start=stats.start,
            end=stats.end,
            events_count=stats.events_count,
            defects_count=stats.defects_count,
            avg_defect_rate=stats.avg_defect_rate,
            status=stats.status,
        )


class TopDefectLineOut(CamelModel):
    line_id: str
    total_defects: int
    event_count: int
    defects_percent: float

    @classmethod
    def from_ranking(cls, ranking: LineRanking) -> "TopDefectLineOut":
        return cls(
            line_id=ranking.line_id,
            total_defects=ranking.total_defects,
            event_count=ranking.event_count,
            defects_percent=ranking.defects_percent,
        )


class ApiResponse(BaseModel, Generic[T]):
    """Envelope común de respuesta: {success, message, data}."""
    success: bool = True
    message: str = "success"
    data: Optional[T] = None


def server_now() -> datetime:
    return datetime.now(timezone.utc)
