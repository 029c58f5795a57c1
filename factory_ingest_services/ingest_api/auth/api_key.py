"""Autenticación por API Key para endpoints de eventos y estados.

SECURITY: En producción (ENVIRONMENT=production), INGEST_API_KEY debe estar configurado.
"""

from __future__ import annotations

import hmac
import logging
import os

from fastapi import Header, HTTPException

logger = logging.getLogger(__name__)


def _is_production() -> bool:
    return os.getenv("ENVIRONMENT", "").strip().lower() == "production"


def require_api_key(
    x_api_key: str | None = Header(default=None, alias="X-API-Key")
) -> None:
    """Valida el header X-API-Key contra INGEST_API_KEY.

    Sin INGEST_API_KEY: en desarrollo se permite el acceso con warning,
    en producción se responde 500 (misconfiguration).
    """
    expected = os.getenv("INGEST_API_KEY")

    if not expected:
        if _is_production():
            logger.error("[AUTH] INGEST_API_KEY not configured in production")
            raise HTTPException(status_code=500, detail="Server misconfiguration: API key not set")
        logger.warning("[AUTH] INGEST_API_KEY not set - allowing unauthenticated access (DEV ONLY)")
        return

    if not x_api_key:
        raise HTTPException(status_code=401, detail="API key required")

    # Comparación en tiempo constante
    if not hmac.compare_digest(x_api_key.encode(), expected.encode()):
        logger.warning("[AUTH] Invalid API key attempt")
        raise HTTPException(status_code=401, detail="Invalid API key")
