"""Huella de idempotencia de un evento.

El hash se persiste y se compara entre ejecuciones, por lo que la forma
canónica debe ser estable:

- claves en orden fijo: eventId, eventTime, machineId, durationMs,
  defectCount, factoryId, lineId
- eventTime como instante ISO-8601 UTC terminado en ``Z``
- JSON compacto, UTF-8 sin escapar (salvo caracteres de control, en hex
  mayúscula)
- año siempre con 4 dígitos
- SHA-256 en hexadecimal (64 caracteres)

receivedTime NO forma parte del hash.
"""

from __future__ import annotations

import hashlib
import json
import re
from datetime import datetime

from ..domain.events import MachineEvent, as_utc

# Cada "\" del JSON abre una secuencia de escape; se recorren de izquierda a
# derecha para no confundir "\\u..." (barra escapada) con un escape \uXXXX.
_ESCAPE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)")


def _upper_unicode_escape(match: re.Match) -> str:
    # Caracteres de control como \u001F, en hexadecimal mayúscula.
    seq = match.group(1)
    if seq.startswith("u"):
        return "\\u" + seq[1:].upper()
    return match.group(0)


def format_instant(value: datetime) -> str:
    """Formatea un instante UTC: sin fracción si es cero, 3 dígitos si son ms exactos, 6 si no.

    Ejemplos: ``2024-01-15T10:00:00Z``, ``2024-01-15T10:00:00.250Z``,
    ``2024-01-15T10:00:00.250001Z``.
    """
    ts = as_utc(value)
    base = f"{ts.year:04d}-{ts:%m-%dT%H:%M:%S}"
    micros = ts.microsecond
    if micros == 0:
        return f"{base}Z"
    if micros % 1000 == 0:
        return f"{base}.{micros // 1000:03d}Z"
    return f"{base}.{micros:06d}Z"


def canonical_payload(event: MachineEvent) -> str:
    """Representación canónica (JSON compacto) de los campos de negocio."""
    node = {
        "eventId": event.event_id,
        "eventTime": format_instant(event.event_time),
        "machineId": event.machine_id,
        "durationMs": int(event.duration_ms),
        "defectCount": int(event.defect_count),
        "factoryId": event.factory_id,
        "lineId": event.line_id,
    }
    payload = json.dumps(node, ensure_ascii=False, separators=(",", ":"))
    return _ESCAPE.sub(_upper_unicode_escape, payload)


def compute_payload_hash(event: MachineEvent) -> str:
    """SHA-256 hex de la forma canónica del evento."""
    return hashlib.sha256(canonical_payload(event).encode("utf-8")).hexdigest()
