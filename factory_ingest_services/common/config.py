from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


UPDATE_POLICIES = ("always", "newer_received_only")


def _default_env_file() -> str:
    # .env del directorio de trabajo; las variables reales del entorno tienen prioridad.
    return str(Path.cwd() / ".env")


@dataclass(frozen=True)
class Settings:
    database_url: str

    max_duration_ms: int
    future_tolerance_seconds: int
    warning_defect_rate: float
    update_policy: str

    conflict_max_retries: int
    auto_create_schema: bool
    log_level: str


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("FACTORY_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    database_url = os.getenv("DATABASE_URL", "sqlite:///./factory_events.db")

    max_duration_ms = int(os.getenv("EVENT_MAX_DURATION_MS", "3600000"))
    future_tolerance_seconds = int(os.getenv("EVENT_FUTURE_TOLERANCE_SECONDS", "900"))
    warning_defect_rate = float(os.getenv("WARNING_DEFECT_RATE", "2.0"))

    # Política ante un eventId conocido con hash distinto:
    # - always: siempre se sobrescribe
    # - newer_received_only: solo si receivedTime es estrictamente más reciente
    update_policy = os.getenv("EVENT_UPDATE_POLICY", "always").strip().lower()
    if update_policy not in UPDATE_POLICIES:
        raise ValueError(
            f"EVENT_UPDATE_POLICY must be one of {UPDATE_POLICIES}, got {update_policy!r}"
        )

    conflict_max_retries = int(os.getenv("INGEST_CONFLICT_MAX_RETRIES", "3"))
    auto_create_schema = os.getenv("DB_AUTO_CREATE_SCHEMA", "1").strip() == "1"
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()

    return Settings(
        database_url=database_url,
        max_duration_ms=max_duration_ms,
        future_tolerance_seconds=future_tolerance_seconds,
        warning_defect_rate=warning_defect_rate,
        update_policy=update_policy,
        conflict_max_retries=conflict_max_retries,
        auto_create_schema=auto_create_schema,
        log_level=log_level,
    )
