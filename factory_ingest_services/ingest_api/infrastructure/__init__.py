"""Infraestructura: persistencia de eventos."""
