"""JSONL-backed observability helpers for harness runs."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol


class RunObservationSink(Protocol):
    """Records lifecycle events emitted by the harness."""

    def log_event(self, run_id: str, event: str, payload: dict[str, Any]) -> None:  # pragma: no cover - interface
        ...


def utc_now_iso() -> str:
    """Return the current UTC time in ISO-8601 with millisecond precision."""

    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _build_event(event: str, payload: dict[str, Any]) -> dict[str, Any]:
    enriched = {key: value for key, value in payload.items() if value is not None}
    enriched.setdefault("event", event)
    enriched.setdefault("timestamp", utc_now_iso())
    return enriched


@dataclass(slots=True)
class JSONLRunLogger(RunObservationSink):
    """Persists harness events as JSON lines, one file per run.

    The file is named `<UTC start>-<run id>.jsonl` and fixed by the first
    event of the run.
    """

    base_dir: Path
    _targets: dict[str, Path] = field(init=False, default_factory=dict)

    def log_event(self, run_id: str, event: str, payload: dict[str, Any]) -> None:  # type: ignore[override]
        prepared = _build_event(event, payload)
        target = self.log_path(run_id)
        with target.open("a", encoding="utf-8") as handle:
            json.dump(prepared, handle, ensure_ascii=False, default=str)
            handle.write("\n")

    def log_path(self, run_id: str) -> Path:
        target = self._targets.get(run_id)
        if target is None:
            base = Path(self.base_dir).expanduser()
            base.mkdir(parents=True, exist_ok=True)
            started = datetime.now(UTC).strftime("%Y%m%dT%H%M%S")
            safe_id = re.sub(r"[^A-Za-z0-9_-]+", "-", run_id.strip()) or "run"
            target = base / f"{started}-{safe_id}.jsonl"
            self._targets[run_id] = target
        return target


class NullRunLogger(RunObservationSink):
    """Sink used when no run log directory is configured."""

    def log_event(self, run_id: str, event: str, payload: dict[str, Any]) -> None:  # type: ignore[override]
        return None
