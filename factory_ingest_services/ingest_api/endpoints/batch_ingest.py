"""Endpoint para ingesta de eventos en lote."""

from __future__ import annotations

import os
import logging
from datetime import timedelta
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from factory_ingest_services.common.config import get_settings
from factory_ingest_services.common.db import get_db
from ..auth import require_api_key
from ..core.domain import BatchOutcome, DuplicateEventError, StoreError
from ..core.reconciliation import EventReconciler, UpdatePolicy, run_with_conflict_retry
from ..core.validation import EventValidator
from ..infrastructure.persistence import SqlEventStore
from ..schemas import ApiResponse, BatchIngestResult, MachineEventIn, server_now

router = APIRouter(tags=["events"])
logger = logging.getLogger(__name__)


def build_reconciler(db: Session) -> EventReconciler:
    settings = get_settings()
    validator = EventValidator(
        max_duration_ms=settings.max_duration_ms,
        future_tolerance=timedelta(seconds=settings.future_tolerance_seconds),
    )
    return EventReconciler(
        SqlEventStore(db),
        validator=validator,
        update_policy=UpdatePolicy(settings.update_policy),
    )


def _error_detail(prefix: str, e: Exception) -> str:
    detail = f"{prefix}: {type(e).__name__}"
    if os.getenv("INGEST_DEBUG_ERRORS", "").strip() == "1":
        detail = f"{detail}: {e}"
    return detail


@router.post(
    "/events/batch",
    response_model=ApiResponse[BatchIngestResult],
    dependencies=[Depends(require_api_key)],
)
def ingest_events_batch(
    payload: List[MachineEventIn],
    db: Session = Depends(get_db),
):
    """Ingesta de un lote de eventos de máquina.

    El lote se reconcilia completo y se persiste en una sola transacción:
    o se devuelve el resumen completo o falla entero.
    """
    received_at = server_now()
    events = [item.to_domain(received_at) for item in payload]
    reconciler = build_reconciler(db)

    def _attempt() -> BatchOutcome:
        return reconciler.process_batch(events)

    try:
        outcome = run_with_conflict_retry(
            _attempt,
            max_retries=get_settings().conflict_max_retries,
            on_conflict=db.rollback,
        )
        db.commit()
    except DuplicateEventError as e:
        logger.exception("Conflict in /events/batch err=%s", type(e).__name__)
        db.rollback()
        raise HTTPException(status_code=409, detail=_error_detail("Concurrent update conflict, retry", e))
    except StoreError as e:
        logger.exception("Store error in /events/batch err=%s", type(e).__name__)
        db.rollback()
        raise HTTPException(status_code=500, detail=_error_detail("Store error", e))

    return ApiResponse[BatchIngestResult](data=BatchIngestResult.from_outcome(outcome))
