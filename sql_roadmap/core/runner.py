"""Command-line entry point for checking curriculum examples against fixtures."""

from __future__ import annotations

import argparse
import logging
import sqlite3
import sys
import time
from contextlib import closing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, Sequence
from uuid import uuid4

from sql_roadmap.core.config import Settings, load_settings
from sql_roadmap.core.curriculum import Example, YamlCurriculumLoader, select_examples
from sql_roadmap.core.errors import FixtureError, QueryError, QueryTimeoutError, VerificationMismatch
from sql_roadmap.core.fixtures import SEED_FIXTURES, FixtureSet, load_fixtures
from sql_roadmap.core.observability import JSONLRunLogger, NullRunLogger, RunObservationSink
from sql_roadmap.core.report import ReportEmitter, Verdict, write_json_report
from sql_roadmap.core.verifier import ensure_match
from sql_roadmap.integrations.sqlite_backend import InMemorySQLiteBackend, StatementTimeout

LOGGER = logging.getLogger(__name__)

FIXTURE_FAILURE_EXIT_CODE = 2


class SQLExecutor(Protocol):
    """Executes SQL statements and returns rows as column mappings."""

    def run(self, statement: str) -> list[dict[str, Any]]:  # pragma: no cover - interface
        ...


@dataclass(slots=True)
class QueryRunner:
    """Runs named catalogue examples against an open backend."""

    backend: SQLExecutor
    catalogue: dict[str, Example]

    def run(self, name: str) -> list[dict[str, Any]]:
        """Return the rows produced by example *name*, in backend order."""

        example = self.catalogue.get(name)
        if example is None:
            raise KeyError(f"Unknown example '{name}'")
        try:
            return self.backend.run(example.query)
        except StatementTimeout as exc:
            raise QueryTimeoutError(name, exc.timeout_s) from exc
        except sqlite3.Error as exc:
            raise QueryError(name, str(exc)) from exc


@dataclass
class Harness:
    """Coordinates Load -> (Run -> Verify) per example for one run."""

    catalogue: dict[str, Example]
    timeout_s: float | None = 2.0
    progress_interval: int = 1000
    fixtures: FixtureSet = SEED_FIXTURES
    run_logger: RunObservationSink = field(default_factory=NullRunLogger)
    run_id: str = field(default_factory=lambda: f"run-{uuid4().hex[:8]}")

    def execute(self, names: Sequence[str] | None = None) -> list[Verdict]:
        """Run the selected examples and return one verdict per example.

        Raises `FixtureError` when the reference dataset cannot be loaded;
        every other failure is recorded against the example that caused it.
        """

        examples = select_examples(self.catalogue, list(names) if names else None)
        self.run_logger.log_event(self.run_id, "run_started", {"examples": len(examples)})

        backend = InMemorySQLiteBackend(
            timeout_s=self.timeout_s, progress_interval=self.progress_interval
        )
        with closing(backend):
            self._prepare_backend(backend)
            self.run_logger.log_event(
                self.run_id,
                "fixtures_loaded",
                {
                    "customers": len(self.fixtures.customers),
                    "orders": len(self.fixtures.orders),
                },
            )
            runner = QueryRunner(backend=backend, catalogue=self.catalogue)
            verdicts = [self._run_example(runner, example) for example in examples]

        self.run_logger.log_event(
            self.run_id,
            "run_finished",
            {
                "passed": sum(1 for verdict in verdicts if verdict.passed),
                "failed": sum(1 for verdict in verdicts if not verdict.passed),
            },
        )
        return verdicts

    def _prepare_backend(self, backend: InMemorySQLiteBackend) -> None:
        try:
            backend.open()
            load_fixtures(backend, self.fixtures)
            backend.freeze()
        except sqlite3.Error as exc:
            raise FixtureError(f"Unable to prepare the fixture backend: {exc}") from exc

    def _run_example(self, runner: QueryRunner, example: Example) -> Verdict:
        started = time.perf_counter()
        rows: list[dict[str, Any]] | None = None
        try:
            rows = runner.run(example.name)
            ensure_match(example, rows)
        except QueryTimeoutError as exc:
            verdict = Verdict(name=example.name, status="timeout", message=str(exc))
        except QueryError as exc:
            verdict = Verdict(name=example.name, status="query_error", message=exc.native_message)
        except VerificationMismatch as exc:
            verdict = Verdict(
                name=example.name,
                status="mismatch",
                message=f"{len(exc.diff)} difference(s)",
                diff=exc.diff,
            )
        else:
            verdict = Verdict(name=example.name, status="passed")

        verdict.elapsed_s = time.perf_counter() - started
        verdict.row_count = len(rows) if rows is not None else None
        if verdict.passed:
            LOGGER.debug("Example %s passed in %.3fs", example.name, verdict.elapsed_s)
        else:
            LOGGER.warning("Example %s %s: %s", example.name, verdict.status, verdict.message)
        self.run_logger.log_event(
            self.run_id,
            "example_finished",
            {
                "example": example.name,
                "status": verdict.status,
                "message": verdict.message or None,
                "row_count": verdict.row_count,
                "elapsed_s": round(verdict.elapsed_s, 6),
            },
        )
        return verdict


def build_harness(settings: Settings, curriculum_path: str | Path | None = None) -> Harness:
    """Create a harness from *settings*, optionally overriding the catalogue path."""

    path = Path(curriculum_path) if curriculum_path else settings.curriculum.resolve_path()
    catalogue = YamlCurriculumLoader(path=path).load()
    run_logger: RunObservationSink = NullRunLogger()
    if settings.paths.run_logs_dir:
        run_logger = JSONLRunLogger(base_dir=Path(settings.paths.run_logs_dir).expanduser())
    return Harness(
        catalogue=catalogue,
        timeout_s=settings.backend.timeout_s or None,
        progress_interval=settings.backend.progress_interval,
        run_logger=run_logger,
    )


def _configure_logging(verbose: bool) -> None:
    root_logger = logging.getLogger()
    if root_logger.handlers:
        if verbose:
            root_logger.setLevel(logging.DEBUG)
        return
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point: run every example and print a report."""

    parser = argparse.ArgumentParser(description="Check SQL roadmap examples against the seed fixtures")
    parser.add_argument("--config", default="configs/dev.yaml", help="Path to the YAML config file")
    parser.add_argument("--curriculum", default=None, help="Override the example catalogue path")
    parser.add_argument(
        "--only",
        action="append",
        default=[],
        metavar="NAME",
        help="Run only the named example (repeatable)",
    )
    parser.add_argument("--report", default=None, help="Write a JSON report to this path")
    parser.add_argument("--list", action="store_true", help="List example names and exit")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    _configure_logging(verbose=args.verbose)
    settings = load_settings(args.config)
    harness = build_harness(settings, args.curriculum)

    if args.list:
        for example in harness.catalogue.values():
            print(f"{example.name}\t{example.description}")
        return 0

    unknown = [name for name in args.only if name not in harness.catalogue]
    if unknown:
        parser.error(f"unknown example(s): {', '.join(unknown)}")

    try:
        verdicts = harness.execute(args.only or None)
    except FixtureError as exc:
        LOGGER.error("Fixture setup failed: %s", exc)
        print(f"Fixture setup failed: {exc}", file=sys.stderr)
        return FIXTURE_FAILURE_EXIT_CODE

    code = ReportEmitter().emit(verdicts)
    report_path = args.report or settings.report.path
    if report_path:
        target = write_json_report(report_path, verdicts)
        LOGGER.info("Report written to %s", target)
    return code


if __name__ == "__main__":
    sys.exit(main())
