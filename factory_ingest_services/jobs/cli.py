"""CLI entry point for operators: schema, file ingestion and queries."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session, sessionmaker

from factory_ingest_services.common.config import Settings, get_settings
from factory_ingest_services.common.db import create_engine_from_url
from factory_ingest_services.ingest_api.core.aggregation import DefectAggregator
from factory_ingest_services.ingest_api.core.domain import StoreError
from factory_ingest_services.ingest_api.core.reconciliation import (
    EventReconciler,
    UpdatePolicy,
    run_with_conflict_retry,
)
from factory_ingest_services.ingest_api.core.validation import EventValidator
from factory_ingest_services.ingest_api.infrastructure.persistence import (
    SqlEventStore,
    ensure_schema,
)
from factory_ingest_services.ingest_api.schemas import MachineEventIn, server_now

logger = logging.getLogger(__name__)


def _parse_ts(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid ISO-8601 timestamp: {value!r}")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Factory event ingest (reconciliation + defect stats)")
    p.add_argument("--database-url", default=None, help="override DATABASE_URL")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="create the machine_events schema")

    ingest = sub.add_parser("ingest", help="reconcile a JSON array of events from FILE")
    ingest.add_argument("file", type=Path)

    stats = sub.add_parser("stats", help="window stats for one machine in [start, end)")
    stats.add_argument("--machine-id", required=True)
    stats.add_argument("--start", required=True, type=_parse_ts)
    stats.add_argument("--end", required=True, type=_parse_ts)

    top = sub.add_parser("top-lines", help="lines ranked by total defects")
    top.add_argument("--factory-id", required=True)
    top.add_argument("--from", dest="start", required=True, type=_parse_ts)
    top.add_argument("--to", dest="end", required=True, type=_parse_ts)
    top.add_argument("--limit", type=int, default=10)

    return p


def _load_events(path: Path) -> List[MachineEventIn]:
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"{path} must contain a JSON array of events")
    return [MachineEventIn.model_validate(item) for item in raw]


def _run_ingest(db: Session, settings: Settings, path: Path) -> dict:
    received_at = server_now()
    events = [item.to_domain(received_at) for item in _load_events(path)]
    reconciler = EventReconciler(
        SqlEventStore(db),
        validator=EventValidator(
            max_duration_ms=settings.max_duration_ms,
            future_tolerance=timedelta(seconds=settings.future_tolerance_seconds),
        ),
        update_policy=UpdatePolicy(settings.update_policy),
    )
    outcome = run_with_conflict_retry(
        lambda: reconciler.process_batch(events),
        max_retries=settings.conflict_max_retries,
        on_conflict=db.rollback,
    )
    db.commit()
    return outcome.to_dict()


def main(argv: Optional[List[str]] = None) -> int:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    args = _build_parser().parse_args(argv)
    engine = create_engine_from_url(args.database_url or settings.database_url)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)

    try:
        if args.command == "init-db":
            ensure_schema(engine)
            result: object = {"status": "ok"}
        else:
            with SessionLocal() as db:
                try:
                    if args.command == "ingest":
                        result = _run_ingest(db, settings, args.file)
                    elif args.command == "stats":
                        aggregator = DefectAggregator(SqlEventStore(db), settings.warning_defect_rate)
                        result = aggregator.window_stats(args.machine_id, args.start, args.end).to_dict()
                    else:
                        aggregator = DefectAggregator(SqlEventStore(db), settings.warning_defect_rate)
                        rankings = aggregator.top_defect_lines(
                            args.factory_id, args.start, args.end, args.limit
                        )
                        result = [r.to_dict() for r in rankings]
                except StoreError:
                    db.rollback()
                    raise
    except StoreError as e:
        logger.error("Error de store en '%s': %s", args.command, e)
        return 1
    except (OSError, ValueError, ValidationError) as e:
        logger.error("Entrada inválida para '%s': %s", args.command, e)
        return 1
    finally:
        engine.dispose()

    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
