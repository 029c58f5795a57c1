from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from factory_ingest_services.common.config import get_settings
from factory_ingest_services.common.db import get_engine
from .endpoints import batch_ingest_router, health_router, machine_states_router
from .infrastructure.persistence import ensure_schema

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    settings = get_settings()
    logger.info(
        "Factory Ingest Service starting update_policy=%s max_duration_ms=%d warning_rate=%.2f",
        settings.update_policy,
        settings.max_duration_ms,
        settings.warning_defect_rate,
    )
    if settings.auto_create_schema:
        ensure_schema(get_engine())
    yield


app = FastAPI(title="Factory Event Ingest Service", version="0.1.0", lifespan=lifespan)

app.include_router(health_router)
app.include_router(batch_ingest_router)
app.include_router(machine_states_router)
