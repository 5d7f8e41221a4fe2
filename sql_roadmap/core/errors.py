"""Error taxonomy for the example harness.

Only `FixtureError` aborts a run. The remaining errors are scoped to a single
example and are turned into verdicts by the harness loop.
"""

from __future__ import annotations

from typing import Any


class HarnessError(Exception):
    """Base class for all harness failures."""


class FixtureError(HarnessError):
    """The reference dataset could not be materialised."""


class QueryError(HarnessError):
    """An example query failed against the backend."""

    def __init__(self, example: str, native_message: str) -> None:
        super().__init__(f"{example}: {native_message}")
        self.example = example
        self.native_message = native_message


class QueryTimeoutError(HarnessError, TimeoutError):
    """An example query exceeded its execution bound."""

    def __init__(self, example: str, timeout_s: float) -> None:
        super().__init__(f"{example}: exceeded {timeout_s:g}s execution bound")
        self.example = example
        self.timeout_s = timeout_s


class VerificationMismatch(HarnessError):
    """An example query ran but produced unexpected rows."""

    def __init__(self, example: str, diff: list[dict[str, Any]]) -> None:
        super().__init__(f"{example}: {len(diff)} mismatched row(s)")
        self.example = example
        self.diff = diff
