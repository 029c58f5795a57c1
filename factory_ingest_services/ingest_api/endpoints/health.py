"""Health and readiness endpoints."""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from factory_ingest_services.common.db import get_db

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health")
def health():
    """Liveness probe: always returns ok if process is running."""
    return {"status": "ok"}


@router.get("/ready")
def ready(db: Session = Depends(get_db)):
    """Readiness probe: checks DB connectivity and measures latency.

    No expone detalles del error al cliente; solo se loguean internamente.
    """
    try:
        start_time = time.time()
        db.execute(text("SELECT 1"))
        latency_ms = (time.time() - start_time) * 1000
    except Exception:
        logger.exception("Readiness check failed")
        raise HTTPException(status_code=503, detail="not ready")

    return {"status": "ready", "latency_ms": round(latency_ms, 2)}
