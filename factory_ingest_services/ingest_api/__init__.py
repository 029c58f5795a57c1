"""API de ingesta de eventos de máquina."""
