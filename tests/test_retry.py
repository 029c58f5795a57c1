"""Tests del retry ante conflictos de eventId concurrentes."""

from unittest.mock import MagicMock

import pytest

from factory_ingest_services.ingest_api.core.domain import DuplicateEventError, StoreError
from factory_ingest_services.ingest_api.core.reconciliation import retry as retry_module
from factory_ingest_services.ingest_api.core.reconciliation import run_with_conflict_retry


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(retry_module.time, "sleep", lambda _s: None)


def _conflict():
    return DuplicateEventError("upsert_all", "duplicate key", event_ids=["E-1"])


class TestConflictRetry:

    def test_success_on_first_attempt(self):
        attempt = MagicMock(return_value="ok")
        assert run_with_conflict_retry(attempt) == "ok"
        attempt.assert_called_once()

    def test_conflict_is_retried_and_cleanup_runs(self):
        attempt = MagicMock(side_effect=[_conflict(), "ok"])
        on_conflict = MagicMock()

        assert run_with_conflict_retry(attempt, max_retries=3, on_conflict=on_conflict) == "ok"
        assert attempt.call_count == 2
        on_conflict.assert_called_once()

    def test_exhausted_retries_raise(self):
        attempt = MagicMock(side_effect=[_conflict(), _conflict(), _conflict()])

        with pytest.raises(DuplicateEventError):
            run_with_conflict_retry(attempt, max_retries=3)

        assert attempt.call_count == 3

    def test_non_retryable_error_is_not_retried(self):
        attempt = MagicMock(side_effect=StoreError("find_by_id", "connection lost"))
        on_conflict = MagicMock()

        with pytest.raises(StoreError):
            run_with_conflict_retry(attempt, max_retries=5, on_conflict=on_conflict)

        attempt.assert_called_once()
        on_conflict.assert_not_called()

    def test_zero_retries_still_runs_once(self):
        attempt = MagicMock(return_value=1)
        assert run_with_conflict_retry(attempt, max_retries=0) == 1
