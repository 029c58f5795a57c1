"""Reconciliation layer - Decisión accept/dedupe/update/reject por lote."""

from .policy import UpdatePolicy
from .reconciler import EventReconciler, utc_now
from .retry import run_with_conflict_retry

__all__ = ["EventReconciler", "UpdatePolicy", "run_with_conflict_retry", "utc_now"]
