"""Módulo de autenticación para endpoints de ingesta y consulta."""

from .api_key import require_api_key

__all__ = ["require_api_key"]
