"""Estadísticas de defectos por ventana de tiempo.

Funciones de cálculo sobre el store: no persisten nada y se recalculan
en cada llamada.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import List

from ..domain.events import as_utc
from ..domain.stats import HealthStatus, LineRanking, WindowStats
from ..domain.store_interface import EventStore

logger = logging.getLogger(__name__)

WARNING_DEFECT_RATE = 2.0


def window_hours(start: datetime, end: datetime) -> float:
    """Duración de [start, end) en horas, truncada a segundos enteros."""
    delta = as_utc(end) - as_utc(start)
    whole_seconds = delta.days * 86400 + delta.seconds
    return whole_seconds / 3600.0


def round_half_up(value: float, digits: int = 2) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def compute_status(avg_defect_rate: float, threshold: float = WARNING_DEFECT_RATE) -> HealthStatus:
    """WARNING si la tasa alcanza el umbral, HEALTH en otro caso."""
    if avg_defect_rate >= threshold:
        return HealthStatus.WARNING
    return HealthStatus.HEALTH


class DefectAggregator:
    """Calcula estado de máquina y ranking de líneas a partir del store."""

    def __init__(self, store: EventStore, warning_defect_rate: float = WARNING_DEFECT_RATE) -> None:
        self._store = store
        self._warning_defect_rate = float(warning_defect_rate)

    def window_stats(self, machine_id: str, start: datetime, end: datetime) -> WindowStats:
        """Estadísticas de una máquina en [start, end).

        Los defectCount negativos cuentan como evento pero no suman defectos.
        Una ventana de duración <= 0 da tasa 0.0.
        """
        records = self._store.find_by_machine_and_time_range(machine_id, start, end)

        events_count = len(records)
        defects_count = sum(r.defect_count for r in records if r.defect_count >= 0)

        hours = window_hours(start, end)
        avg_defect_rate = defects_count / hours if hours > 0 else 0.0
        status = compute_status(avg_defect_rate, self._warning_defect_rate)

        logger.debug(
            "[STATS] machine_id=%s events=%d defects=%d rate=%.3f status=%s",
            machine_id, events_count, defects_count, avg_defect_rate, status.value,
        )

        return WindowStats(
            machine_id=machine_id,
            start=start,
            end=end,
            events_count=events_count,
            defects_count=defects_count,
            avg_defect_rate=avg_defect_rate,
            status=status,
        )

    def top_defect_lines(
        self,
        factory_id: str,
        start: datetime,
        end: datetime,
        limit: int,
    ) -> List[LineRanking]:
        """Líneas con más defectos de una fábrica en [start, end).

        Se respeta el orden del store (total de defectos descendente);
        ``limit <= 0`` devuelve lista vacía.
        """
        if limit <= 0:
            return []

        grouped = self._store.group_defects_by_line(factory_id, start, end)

        rankings: List[LineRanking] = []
        for row in grouped[:limit]:
            if row.event_count > 0:
                percent = round_half_up(row.total_defects * 100.0 / row.event_count, 2)
            else:
                percent = 0.0
            rankings.append(
                LineRanking(
                    line_id=row.line_id,
                    total_defects=int(row.total_defects),
                    event_count=int(row.event_count),
                    defects_percent=percent,
                )
            )
        return rankings
