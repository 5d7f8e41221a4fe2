"""Static catalogue of curriculum example queries and their expected rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import yaml


@dataclass(frozen=True, slots=True)
class Example:
    """A named example query with the rows the curriculum text promises."""

    name: str
    query: str
    expected_rows: list[dict[str, Any]] = field(default_factory=list)
    order_sensitive: bool = True
    tolerance: float | None = None
    week: int | None = None
    description: str = ""


class CurriculumLoader(Protocol):
    """Provides the example catalogue for a run."""

    def load(self) -> dict[str, Example]:  # pragma: no cover - interface
        """Return examples keyed by name, in catalogue order."""


@dataclass(slots=True)
class YamlCurriculumLoader(CurriculumLoader):
    """Loads examples from a YAML mapping keyed by example name."""

    path: Path

    def load(self) -> dict[str, Example]:
        target = Path(self.path)
        if not target.exists():
            raise FileNotFoundError(f"Curriculum file not found: {target}")
        with target.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle) or {}
        if not isinstance(payload, dict):
            raise ValueError("Curriculum file must contain a top-level mapping")

        examples = payload.get("examples", payload)
        if not isinstance(examples, dict):
            raise ValueError("'examples' must be a mapping of example name to definition")
        return {str(name): parse_example(str(name), entry) for name, entry in examples.items()}


def parse_example(name: str, entry: Any) -> Example:
    """Build an `Example` from a raw catalogue entry."""

    if not isinstance(entry, dict):
        raise ValueError(f"Example '{name}' must be a mapping")

    query = entry.get("query")
    if not isinstance(query, str) or not query.strip():
        raise ValueError(f"Example '{name}' is missing its query")

    raw_rows = entry.get("expected_rows", [])
    if not isinstance(raw_rows, list) or not all(isinstance(row, dict) for row in raw_rows):
        raise ValueError(f"Example '{name}' expected_rows must be a list of mappings")

    tolerance = entry.get("tolerance")
    if tolerance is not None:
        tolerance = float(tolerance)
        if tolerance < 0:
            raise ValueError(f"Example '{name}' tolerance must be non-negative")

    week = entry.get("week")
    return Example(
        name=name,
        query=query.strip(),
        expected_rows=[{str(key): value for key, value in row.items()} for row in raw_rows],
        order_sensitive=bool(entry.get("order_sensitive", True)),
        tolerance=tolerance,
        week=int(week) if week is not None else None,
        description=str(entry.get("description", "")),
    )


def select_examples(catalogue: dict[str, Example], names: list[str] | None) -> list[Example]:
    """Return the examples named in *names*, or the whole catalogue."""

    if not names:
        return list(catalogue.values())
    unknown = [name for name in names if name not in catalogue]
    if unknown:
        raise KeyError(f"Unknown example(s): {', '.join(unknown)}")
    return [catalogue[name] for name in names]
