"""Per-example verdicts and the human-readable run report."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Literal, Sequence

from sql_roadmap.core.observability import utc_now_iso

VerdictStatus = Literal["passed", "mismatch", "query_error", "timeout"]


@dataclass(slots=True)
class Verdict:
    name: str
    status: VerdictStatus
    message: str = ""
    diff: list[dict[str, Any]] = field(default_factory=list)
    elapsed_s: float = 0.0
    row_count: int | None = None

    @property
    def passed(self) -> bool:
        return self.status == "passed"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ReportEmitter:
    """Renders verdicts line by line and derives the process exit code."""

    output_func: Callable[[str], None] = field(default=print)
    max_diff_rows: int = 5

    def emit(self, verdicts: Sequence[Verdict]) -> int:
        for verdict in verdicts:
            self._render_verdict(verdict)

        failed = [verdict.name for verdict in verdicts if not verdict.passed]
        passed_count = len(verdicts) - len(failed)
        self.output_func("")
        self.output_func(f"{passed_count} passed, {len(failed)} failed ({len(verdicts)} examples)")
        if failed:
            self.output_func("Failing examples:")
            for name in failed:
                self.output_func(f"  - {name}")
        return exit_code(verdicts)

    def _render_verdict(self, verdict: Verdict) -> None:
        label = "PASS" if verdict.passed else verdict.status.upper()
        line = f"[{label}] {verdict.name} ({verdict.elapsed_s * 1000:.1f} ms)"
        if verdict.message:
            line += f": {verdict.message}"
        self.output_func(line)

        if verdict.status != "mismatch":
            return
        for entry in verdict.diff[: self.max_diff_rows]:
            self.output_func("    " + _describe_diff_entry(entry))
        hidden = len(verdict.diff) - self.max_diff_rows
        if hidden > 0:
            self.output_func(f"    ... {hidden} more difference(s)")


def exit_code(verdicts: Sequence[Verdict]) -> int:
    return 0 if all(verdict.passed for verdict in verdicts) else 1


def write_json_report(path: str | Path, verdicts: Sequence[Verdict]) -> Path:
    """Write the optional machine-readable report and return its path."""

    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "generated_at": utc_now_iso(),
        "passed": sum(1 for verdict in verdicts if verdict.passed),
        "failed": sum(1 for verdict in verdicts if not verdict.passed),
        "examples": [verdict.to_dict() for verdict in verdicts],
    }
    with target.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, ensure_ascii=False, default=str)
        handle.write("\n")
    return target


def _describe_diff_entry(entry: dict[str, Any]) -> str:
    kind = entry.get("kind", "mismatch")
    where = f" at row {entry['position']}" if "position" in entry else ""
    if kind == "missing":
        return f"missing{where}: expected {entry.get('expected')}"
    if kind == "unexpected":
        return f"unexpected{where}: got {entry.get('actual')}"
    return f"mismatch{where}: expected {entry.get('expected')}, got {entry.get('actual')}"
