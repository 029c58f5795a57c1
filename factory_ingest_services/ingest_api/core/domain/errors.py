"""Excepciones del store de eventos.

Las implementaciones del store capturan los errores del motor de BD y los
re-lanzan como StoreError con contexto. El core no los recupera: abortan
el lote completo.
"""

from __future__ import annotations

from typing import Optional, Sequence


class StoreError(Exception):
    """Fallo de lectura/escritura en el store."""

    retryable = False

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        self.message = message
        super().__init__(f"[EventStore] {operation}: {message}")


class DuplicateEventError(StoreError):
    """Violación de clave única por inserciones concurrentes del mismo eventId.

    Es reintentable: al volver a procesar el lote, el registro ganador ya es
    visible y el evento se reconcilia como dedupe/update.
    """

    retryable = True

    def __init__(
        self,
        operation: str,
        message: str,
        event_ids: Optional[Sequence[str]] = None,
    ) -> None:
        self.event_ids = list(event_ids or [])
        super().__init__(operation, message)
