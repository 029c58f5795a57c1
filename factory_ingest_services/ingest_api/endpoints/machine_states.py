"""Endpoints de estado de máquina y ranking de líneas."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from factory_ingest_services.common.config import get_settings
from factory_ingest_services.common.db import get_db
from ..auth import require_api_key
from ..core.aggregation import DefectAggregator
from ..core.domain import StoreError
from ..infrastructure.persistence import SqlEventStore
from ..schemas import ApiResponse, MachineStatsOut, TopDefectLineOut

router = APIRouter(tags=["states"])
logger = logging.getLogger(__name__)


def _aggregator(db: Session) -> DefectAggregator:
    return DefectAggregator(
        SqlEventStore(db),
        warning_defect_rate=get_settings().warning_defect_rate,
    )


@router.get(
    "/states",
    response_model=ApiResponse[MachineStatsOut],
    dependencies=[Depends(require_api_key)],
)
def get_machine_states(
    machine_id: str = Query(..., alias="machineId"),
    start: datetime = Query(...),
    end: datetime = Query(...),
    db: Session = Depends(get_db),
):
    """Estado de una máquina en [start, end).

    Incluye cantidad de eventos, defectos, tasa por hora y status.
    """
    try:
        stats = _aggregator(db).window_stats(machine_id, start, end)
    except StoreError as e:
        logger.exception("Store error in /states err=%s", type(e).__name__)
        raise HTTPException(status_code=500, detail=f"Store error: {type(e).__name__}")

    return ApiResponse[MachineStatsOut](data=MachineStatsOut.from_stats(stats))


@router.get(
    "/states/top-defect-lines",
    response_model=ApiResponse[List[TopDefectLineOut]],
    dependencies=[Depends(require_api_key)],
)
def get_top_defect_lines(
    factory_id: str = Query(..., alias="factoryId"),
    start: datetime = Query(..., alias="from"),
    end: datetime = Query(..., alias="to"),
    limit: int = Query(...),
    db: Session = Depends(get_db),
):
    """Líneas de una fábrica ordenadas por total de defectos (desc)."""
    try:
        rankings = _aggregator(db).top_defect_lines(factory_id, start, end, limit)
    except StoreError as e:
        logger.exception("Store error in /states/top-defect-lines err=%s", type(e).__name__)
        raise HTTPException(status_code=500, detail=f"Store error: {type(e).__name__}")

    return ApiResponse[List[TopDefectLineOut]](
        data=[TopDefectLineOut.from_ranking(r) for r in rankings]
    )
