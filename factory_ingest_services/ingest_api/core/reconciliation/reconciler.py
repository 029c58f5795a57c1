"""Reconciliación de lotes de eventos contra el estado guardado.

Por cada evento, en orden de entrada:
1. Calcula el payload_hash
2. Valida duración y eventTime (rechazo sin consultar el store)
3. Busca el registro existente en el store y decide accept/dedupe/update
   (la decisión no depende de otros eventos del mismo lote)
4. Al final hace UN solo upsert_all con las escrituras encoladas: una por
   eventId, la última en orden de entrada. Cada escritura lleva el hash
   observado en el lookup para que el store detecte lotes concurrentes.

Los contadores y la cola son locales a cada llamada de process_batch.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Sequence

from ..domain.events import (
    BatchOutcome,
    Decision,
    MachineEvent,
    Rejection,
    StoredEvent,
    as_utc,
)
from ..domain.store_interface import EventStore
from ..hashing import compute_payload_hash
from ..validation import EventValidator
from .policy import UpdatePolicy


logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EventReconciler:
    """Reconciliador de lotes de eventos.

    No guarda estado mutable entre llamadas: se puede compartir entre
    threads siempre que el store garantice unicidad por eventId.
    """

    def __init__(
        self,
        store: EventStore,
        validator: Optional[EventValidator] = None,
        update_policy: UpdatePolicy = UpdatePolicy.ALWAYS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._validator = validator or EventValidator()
        self._update_policy = UpdatePolicy(update_policy)
        self._clock = clock

    @property
    def update_policy(self) -> UpdatePolicy:
        return self._update_policy

    def process_batch(self, events: Sequence[MachineEvent]) -> BatchOutcome:
        """Reconcilia un lote completo.

        Args:
            events: Eventos en orden de entrada

        Returns:
            BatchOutcome con contadores y rechazos en orden de entrada

        Raises:
            StoreError: Si el store falla en lookup o escritura (sin resultado parcial)
        """
        outcome = BatchOutcome()
        pending: Dict[str, StoredEvent] = {}
        now = self._clock()

        for raw in events:
            event = raw.with_payload_hash(compute_payload_hash(raw))

            is_valid, reason = self._validator.validate(event, now)
            if not is_valid:
                outcome.rejected += 1
                outcome.rejections.append(Rejection(event.event_id, reason))
                logger.warning(
                    "[RECONCILE] rejected event_id=%s reason=%s",
                    event.event_id,
                    reason.value,
                )
                continue

            existing = self._store.find_by_id(event.event_id)
            decision = self._decide(event, existing)
            logger.debug(
                "[RECONCILE] event_id=%s decision=%s", event.event_id, decision.value
            )

            if decision is Decision.ACCEPT:
                outcome.accepted += 1
                pending[event.event_id] = StoredEvent.from_event(event)
            elif decision is Decision.UPDATE:
                outcome.updated += 1
                pending[event.event_id] = StoredEvent.from_event(
                    event, expected_hash=existing.payload_hash
                )
            else:
                outcome.deduped += 1

        if pending:
            self._store.upsert_all(list(pending.values()))

        logger.info(
            "[RECONCILE] batch size=%d accepted=%d deduped=%d updated=%d rejected=%d writes=%d",
            len(events),
            outcome.accepted,
            outcome.deduped,
            outcome.updated,
            outcome.rejected,
            len(pending),
        )
        return outcome

    def _decide(self, event: MachineEvent, existing: Optional[StoredEvent]) -> Decision:
        if existing is None:
            return Decision.ACCEPT

        if existing.payload_hash == event.payload_hash:
            return Decision.DEDUPE

        if self._update_policy is UpdatePolicy.NEWER_RECEIVED_ONLY:
            if as_utc(event.received_time) <= as_utc(existing.received_time):
                # Llegó tarde: se conserva el estado guardado.
                return Decision.DEDUPE

        return Decision.UPDATE
