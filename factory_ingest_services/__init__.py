"""Factory event ingest services.

- common:     configuración y conexión a BD
- ingest_api: API HTTP, reconciliación de lotes y estadísticas de defectos
- jobs:       CLI para operadores
"""
