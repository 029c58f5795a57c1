"""Módulo de endpoints HTTP.

Contiene todos los endpoints de la API organizados por función.
"""

from .health import router as health_router
from .batch_ingest import router as batch_ingest_router
from .machine_states import router as machine_states_router

__all__ = [
    "health_router",
    "batch_ingest_router",
    "machine_states_router",
]
