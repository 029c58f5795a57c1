"""Tests del CLI de operadores (SQLite en archivo temporal)."""

import json

import pytest

from factory_ingest_services.common.config import get_settings
from factory_ingest_services.jobs.cli import main


EVENTS = [
    {
        "eventId": "E-1",
        "eventTime": "2024-01-15T08:10:00Z",
        "receivedTime": "2024-01-15T09:00:00Z",
        "machineId": "M1",
        "factoryId": "F1",
        "lineId": "L1",
        "durationMs": 1000,
        "defectCount": 3,
    },
    {
        "eventId": "E-2",
        "eventTime": "2024-01-15T08:20:00Z",
        "machineId": "M1",
        "factoryId": "F1",
        "lineId": "L2",
        "durationMs": 1000,
        "defectCount": 2,
    },
    {
        "eventId": "E-3",
        "eventTime": "2024-01-15T08:30:00Z",
        "machineId": "M1",
        "factoryId": "F1",
        "lineId": "L2",
        "durationMs": 7200000,
        "defectCount": 9,
    },
]


@pytest.fixture
def db_url(tmp_path, monkeypatch):
    monkeypatch.setenv("FACTORY_ENV_FILE", str(tmp_path / "missing.env"))
    monkeypatch.delenv("EVENT_UPDATE_POLICY", raising=False)
    return f"sqlite:///{tmp_path / 'events.db'}"


@pytest.fixture
def events_file(tmp_path):
    path = tmp_path / "events.json"
    path.write_text(json.dumps(EVENTS), encoding="utf-8")
    return path


def _run(capsys, *argv):
    code = main(list(argv))
    return code, capsys.readouterr().out


class TestCli:

    def test_ingest_then_query(self, db_url, events_file, capsys):
        assert _run(capsys, "--database-url", db_url, "init-db")[0] == 0

        code, out = _run(capsys, "--database-url", db_url, "ingest", str(events_file))
        assert code == 0
        summary = json.loads(out)
        assert (summary["accepted"], summary["rejected"]) == (2, 1)
        assert summary["rejections"] == [{"eventId": "E-3", "reason": "INVALID_DURATION"}]

        code, out = _run(
            capsys, "--database-url", db_url, "stats",
            "--machine-id", "M1", "--start", "2024-01-15T08:00:00Z", "--end", "2024-01-15T09:00:00Z",
        )
        assert code == 0
        stats = json.loads(out)
        assert stats["defectsCount"] == 5
        assert stats["status"] == "WARNING"

        code, out = _run(
            capsys, "--database-url", db_url, "top-lines",
            "--factory-id", "F1", "--from", "2024-01-15T08:00:00Z", "--to", "2024-01-15T09:00:00Z",
            "--limit", "1",
        )
        assert code == 0
        assert json.loads(out) == [
            {"lineId": "L1", "totalDefects": 3, "eventCount": 1, "defectsPercent": 300.0}
        ]

    def test_replayed_file_is_deduped(self, db_url, events_file, capsys):
        _run(capsys, "--database-url", db_url, "init-db")
        _run(capsys, "--database-url", db_url, "ingest", str(events_file))

        code, out = _run(capsys, "--database-url", db_url, "ingest", str(events_file))

        assert code == 0
        assert json.loads(out)["deduped"] == 2

    def test_non_array_file_fails(self, db_url, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text('{"eventId": "E-1"}', encoding="utf-8")
        _run(capsys, "--database-url", db_url, "init-db")

        assert _run(capsys, "--database-url", db_url, "ingest", str(path))[0] == 1

    def test_query_without_schema_fails(self, db_url, capsys):
        code, _ = _run(
            capsys, "--database-url", db_url, "stats",
            "--machine-id", "M1", "--start", "2024-01-15T08:00:00Z", "--end", "2024-01-15T09:00:00Z",
        )
        assert code == 1


class TestSettings:

    def test_invalid_update_policy_is_rejected(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FACTORY_ENV_FILE", str(tmp_path / "missing.env"))
        monkeypatch.setenv("EVENT_UPDATE_POLICY", "sometimes")

        with pytest.raises(ValueError):
            get_settings()

    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FACTORY_ENV_FILE", str(tmp_path / "missing.env"))
        for name in ("EVENT_MAX_DURATION_MS", "EVENT_FUTURE_TOLERANCE_SECONDS",
                     "WARNING_DEFECT_RATE", "EVENT_UPDATE_POLICY"):
            monkeypatch.delenv(name, raising=False)

        settings = get_settings()

        assert settings.max_duration_ms == 3_600_000
        assert settings.future_tolerance_seconds == 900
        assert settings.warning_defect_rate == 2.0
        assert settings.update_policy == "always"
