"""Validation layer - Validación de eventos."""

from .event_validator import EventValidator, FUTURE_TOLERANCE, MAX_DURATION_MS

__all__ = ["EventValidator", "FUTURE_TOLERANCE", "MAX_DURATION_MS"]
