"""Hashing layer - Huella de contenido de eventos."""

from .payload_hash import canonical_payload, compute_payload_hash, format_instant

__all__ = ["canonical_payload", "compute_payload_hash", "format_instant"]
