"""Domain layer - Modelos, contratos y errores."""

from .events import (
    BatchOutcome,
    Decision,
    MachineEvent,
    Rejection,
    RejectionReason,
    StoredEvent,
    as_utc,
)
from .stats import HealthStatus, LineDefectTotals, LineRanking, WindowStats
from .errors import DuplicateEventError, StoreError
from .store_interface import EventStore

__all__ = [
    "BatchOutcome",
    "Decision",
    "MachineEvent",
    "Rejection",
    "RejectionReason",
    "StoredEvent",
    "as_utc",
    "HealthStatus",
    "LineDefectTotals",
    "LineRanking",
    "WindowStats",
    "DuplicateEventError",
    "StoreError",
    "EventStore",
]
