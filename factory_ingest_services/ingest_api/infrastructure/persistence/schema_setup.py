"""Database schema setup for the event store."""

from __future__ import annotations

import logging

from sqlalchemy.engine import Engine

from .tables import metadata

logger = logging.getLogger(__name__)


def ensure_schema(engine: Engine) -> None:
    """Ensure the machine_events schema exists.

    Creates tables and indexes if they don't exist. Safe to call multiple times.

    Args:
        engine: SQLAlchemy engine
    """
    logger.info("[DB] Ensuring schema exists")

    try:
        metadata.create_all(bind=engine)
        logger.info("[DB] Schema creation completed successfully")
    except Exception as e:
        logger.exception("[DB] Schema creation failed: %s", e)
        raise
