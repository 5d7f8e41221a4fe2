"""Tests for JSONL run observability sinks."""

from __future__ import annotations

import json
from pathlib import Path

from sql_roadmap.core.observability import JSONLRunLogger, NullRunLogger, utc_now_iso


def _load_events(path: Path) -> list[dict[str, object]]:
    with path.open("r", encoding="utf-8") as handle:
        return [json.loads(line) for line in handle]


def test_jsonl_run_logger_appends_events(tmp_path: Path) -> None:
    logger = JSONLRunLogger(base_dir=tmp_path)

    logger.log_event("run-1", "run_started", {"examples": 3})
    logger.log_event("run-1", "example_finished", {"example": "week1_filter_nigeria", "message": None})

    files = sorted(tmp_path.glob("*.jsonl"))
    assert len(files) == 1
    target = files[0]
    assert target.name.endswith("-run-1.jsonl")
    events = _load_events(target)
    assert [event["event"] for event in events] == ["run_started", "example_finished"]
    assert events[0]["examples"] == 3
    assert "message" not in events[1]
    assert "timestamp" in events[1]


def test_null_run_logger_writes_nothing(tmp_path: Path) -> None:
    NullRunLogger().log_event("run-2", "run_started", {"examples": 1})

    assert list(tmp_path.iterdir()) == []


def test_jsonl_run_logger_keeps_one_file_per_run(tmp_path: Path) -> None:
    logger = JSONLRunLogger(base_dir=tmp_path / "runs")

    first = logger.log_path("run 1/2")
    logger.log_event("run 1/2", "run_started", {})
    logger.log_event("other", "run_started", {})

    assert logger.log_path("run 1/2") == first
    assert first.name.endswith("-run-1-2.jsonl")
    assert len(list((tmp_path / "runs").glob("*.jsonl"))) == 2
    assert logger.log_path("   ").name.endswith("-run.jsonl")


def test_utc_now_iso_uses_zulu_suffix() -> None:
    stamp = utc_now_iso()

    assert stamp.endswith("Z")
    assert "T" in stamp
