"""Validador de eventos de máquina."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Tuple

from ..domain.events import MachineEvent, RejectionReason, as_utc


MAX_DURATION_MS = 3_600_000
FUTURE_TOLERANCE = timedelta(minutes=15)


class EventValidator:
    """Valida eventos antes de reconciliarlos.

    Responsabilidades:
    - Validar rango de duración (0..max, ambos inclusivos)
    - Rechazar eventos demasiado en el futuro respecto al reloj actual
    """

    def __init__(
        self,
        max_duration_ms: int = MAX_DURATION_MS,
        future_tolerance: timedelta = FUTURE_TOLERANCE,
    ) -> None:
        self._max_duration_ms = int(max_duration_ms)
        self._future_tolerance = future_tolerance

    def validate(
        self, event: MachineEvent, now: datetime
    ) -> Tuple[bool, Optional[RejectionReason]]:
        """Valida un evento.

        Args:
            event: Evento a validar
            now: Reloj de referencia (UTC)

        Returns:
            (is_valid, rejection_reason)
        """
        if event.duration_ms < 0 or event.duration_ms > self._max_duration_ms:
            return False, RejectionReason.INVALID_DURATION

        if as_utc(event.event_time) > as_utc(now) + self._future_tolerance:
            return False, RejectionReason.INVALID_EVENT_TIME

        return True, None
