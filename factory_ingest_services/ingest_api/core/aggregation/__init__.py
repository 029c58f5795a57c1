"""Aggregation layer - Estadísticas de defectos por ventana."""

from .defect_stats import (
    DefectAggregator,
    WARNING_DEFECT_RATE,
    compute_status,
    round_half_up,
    window_hours,
)

__all__ = [
    "DefectAggregator",
    "WARNING_DEFECT_RATE",
    "compute_status",
    "round_half_up",
    "window_hours",
]
