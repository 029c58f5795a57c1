"""Core module - Reconciliación y agregación de eventos de máquina.

Estructura:
- domain/          → Modelos, errores e interfaz del store
- hashing/         → Huella de idempotencia (payload_hash)
- validation/      → Validación de duración y eventTime
- reconciliation/  → Decisión accept/dedupe/update/reject por lote
- aggregation/     → Estado de máquina y ranking de líneas
"""
