"""Structural comparison of produced rows against curriculum expectations.

Order-sensitive examples (sorting, ranking) are compared position by position.
Order-insensitive examples are compared as a multiset: every expected row must
pair with exactly one produced row. Numeric values may differ by at most the
example's tolerance; everything else must be equal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from numbers import Number
from typing import Any, Sequence

from sql_roadmap.core.curriculum import Example
from sql_roadmap.core.errors import VerificationMismatch

Row = dict[str, Any]


@dataclass(slots=True)
class VerificationResult:
    passed: bool
    diff: list[dict[str, Any]] = field(default_factory=list)


def verify_example(example: Example, actual: Sequence[Row]) -> VerificationResult:
    """Compare *actual* with the rows recorded for *example*."""

    return verify_rows(
        actual,
        example.expected_rows,
        order_sensitive=example.order_sensitive,
        tolerance=example.tolerance,
    )


def ensure_match(example: Example, actual: Sequence[Row]) -> None:
    """Raise `VerificationMismatch` when *actual* differs from the expectation."""

    result = verify_example(example, actual)
    if not result.passed:
        raise VerificationMismatch(example.name, result.diff)


def verify_rows(
    actual: Sequence[Row],
    expected: Sequence[Row],
    *,
    order_sensitive: bool,
    tolerance: float | None = None,
) -> VerificationResult:
    if order_sensitive:
        diff = _ordered_diff(actual, expected, tolerance)
    else:
        diff = _unordered_diff(actual, expected, tolerance)
    return VerificationResult(passed=not diff, diff=diff)


def rows_equal(actual: Row, expected: Row, tolerance: float | None = None) -> bool:
    if set(actual) != set(expected):
        return False
    return all(values_equal(actual[key], expected[key], tolerance) for key in expected)


def values_equal(actual: Any, expected: Any, tolerance: float | None = None) -> bool:
    if actual is None or expected is None:
        return actual is None and expected is None
    if isinstance(actual, bool) or isinstance(expected, bool):
        return type(actual) is type(expected) and actual == expected
    if _is_number(actual) and _is_number(expected):
        if tolerance is None:
            return actual == expected
        return abs(float(actual) - float(expected)) <= tolerance + 1e-12
    return actual == expected


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def _ordered_diff(
    actual: Sequence[Row], expected: Sequence[Row], tolerance: float | None
) -> list[dict[str, Any]]:
    diff: list[dict[str, Any]] = []
    for position in range(max(len(actual), len(expected))):
        produced = actual[position] if position < len(actual) else None
        wanted = expected[position] if position < len(expected) else None
        if produced is None:
            diff.append({"kind": "missing", "position": position, "expected": wanted})
        elif wanted is None:
            diff.append({"kind": "unexpected", "position": position, "actual": produced})
        elif not rows_equal(produced, wanted, tolerance):
            diff.append(
                {
                    "kind": "mismatch",
                    "position": position,
                    "expected": wanted,
                    "actual": produced,
                }
            )
    return diff


def _unordered_diff(
    actual: Sequence[Row], expected: Sequence[Row], tolerance: float | None
) -> list[dict[str, Any]]:
    # Candidates per expected row, exact matches first so they are claimed
    # before tolerance-only pairings.
    candidates: list[list[int]] = []
    for wanted in expected:
        exact = [index for index, row in enumerate(actual) if rows_equal(row, wanted)]
        close = [
            index
            for index, row in enumerate(actual)
            if index not in exact and rows_equal(row, wanted, tolerance)
        ]
        candidates.append(exact + close)

    owner: dict[int, int] = {}
    for position in range(len(expected)):
        _claim(position, candidates, owner, set())

    paired_expected = set(owner.values())
    diff: list[dict[str, Any]] = [
        {"kind": "missing", "expected": wanted}
        for position, wanted in enumerate(expected)
        if position not in paired_expected
    ]
    diff.extend(
        {"kind": "unexpected", "actual": row}
        for index, row in enumerate(actual)
        if index not in owner
    )
    return diff


def _claim(
    position: int, candidates: list[list[int]], owner: dict[int, int], visited: set[int]
) -> bool:
    """Pair expected row *position* with an actual row along an augmenting path."""

    for index in candidates[position]:
        if index in visited:
            continue
        visited.add(index)
        if index not in owner or _claim(owner[index], candidates, owner, visited):
            owner[index] = position
            return True
    return False
