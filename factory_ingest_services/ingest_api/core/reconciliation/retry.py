"""Retry helper for retryable store conflicts."""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, Optional, TypeVar

from ..domain.errors import StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_with_conflict_retry(
    attempt: Callable[[], T],
    max_retries: int = 3,
    on_conflict: Optional[Callable[[], None]] = None,
) -> T:
    """Ejecuta ``attempt`` con retry + exponential backoff ante conflictos reintentables.

    Un conflicto (DuplicateEventError) indica que otro lote insertó el mismo
    eventId en paralelo. El lote completo se vuelve a reconciliar: en el
    siguiente intento el registro ganador ya es visible.

    Args:
        attempt: Callable que procesa el lote completo
        max_retries: Intentos totales (mínimo 1)
        on_conflict: Limpieza antes de reintentar (ej. db.rollback)
    """
    max_retries = max(1, int(max_retries))
    for n in range(1, max_retries + 1):
        try:
            return attempt()
        except StoreError as e:
            if not e.retryable or n >= max_retries:
                logger.error("[RETRY] Store error (intento %d/%d): %s", n, max_retries, e)
                raise
            if on_conflict is not None:
                on_conflict()
            delay = min(100 * (2 ** (n - 1)), 2000)
            jitter = random.uniform(0, delay * 0.1)
            total_delay = (delay + jitter) / 1000.0
            logger.warning(
                "[RETRY] Conflicto de eventId detectado (intento %d/%d), reintentando en %.2fs...",
                n, max_retries, total_delay,
            )
            time.sleep(total_delay)
    raise RuntimeError("unreachable")
