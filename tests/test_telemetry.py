from __future__ import annotations

import json
from pathlib import Path

import numpy as np

from mongars.affect import AffectiveField
from mongars.runtime import SommeilMetrics, TaskStatus
from mongars.telemetry import default_log_path, event, make_record


def test_event_appends_jsonl(tmp_path: Path) -> None:
    log = tmp_path / "nested" / "events.jsonl"
    event("sommeil_cycle", {"cycles_run": 1}, log_path=log)
    event("sommeil_consolidate", {"count": np.int64(7), "ratio": np.float32(0.5)}, log_path=log)

    lines = log.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    first, second = (json.loads(line) for line in lines)
    assert first["event"] == "sommeil_cycle"
    assert first["data"] == {"cycles_run": 1}
    assert isinstance(first["ts"], float)
    assert second["data"] == {"count": 7, "ratio": 0.5}


def test_event_coerces_containers_and_enums(tmp_path: Path) -> None:
    log = tmp_path / "events.jsonl"
    record = event(
        "snapshot",
        {
            "status": TaskStatus.COMPLETED,
            "attention": ("a", "b"),
            "vector": np.array([0.25, 0.5]),
            "nested": {1: {"x"}},
        },
        log_path=log,
    )
    assert record["data"] == {
        "status": "completed",
        "attention": ["a", "b"],
        "vector": [0.25, 0.5],
        "nested": {"1": ["x"]},
    }
    assert json.loads(log.read_text(encoding="utf-8"))["data"] == record["data"]


def test_log_path_from_environment(tmp_path: Path, monkeypatch) -> None:
    target = tmp_path / "env.jsonl"
    monkeypatch.setenv("MONGARS_TELEMETRY_LOG", str(target))
    assert default_log_path() == target
    event("ping", {})
    assert target.exists()


def test_record_uses_to_dict_views() -> None:
    metrics = SommeilMetrics(cycles_run=2)
    record = make_record("sommeil_cycle", {"metrics": metrics, "field": AffectiveField(0.5, 0.1, 0.2, 0.3)}, ts=12.0)
    assert record["ts"] == 12.0
    assert record["data"]["metrics"]["cycles_run"] == 2
    assert record["data"]["field"]["v"] == 0.5
    json.dumps(record)
