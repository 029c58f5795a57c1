"""Política de actualización para eventIds ya conocidos."""

from __future__ import annotations

from enum import Enum


class UpdatePolicy(str, Enum):
    """Qué hacer cuando llega un eventId conocido con hash distinto.

    - ALWAYS: se sobrescribe siempre (default)
    - NEWER_RECEIVED_ONLY: solo si receivedTime es estrictamente más reciente
      que el guardado; si no, cuenta como deduped y no se escribe
    """
    ALWAYS = "always"
    NEWER_RECEIVED_ONLY = "newer_received_only"
