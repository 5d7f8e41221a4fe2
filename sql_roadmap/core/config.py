"""Utilities for loading harness settings from YAML configuration files."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CURRICULUM_PATH = "assets/curriculum/roadmap.yaml"


@dataclass(slots=True)
class BackendSettings:
    timeout_s: float = 2.0
    progress_interval: int = 1000


@dataclass(slots=True)
class CurriculumSettings:
    path: str = DEFAULT_CURRICULUM_PATH
    path_env: str | None = None

    def resolve_path(self) -> Path:
        override = os.getenv(self.path_env) if self.path_env else None
        path = Path(override or self.path).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Curriculum file not found at '{path}'")
        return path


@dataclass(slots=True)
class ReportSettings:
    path: str | None = None


@dataclass(slots=True)
class PathsSettings:
    run_logs_dir: str | None = None


@dataclass(slots=True)
class Settings:
    backend: BackendSettings = field(default_factory=BackendSettings)
    curriculum: CurriculumSettings = field(default_factory=CurriculumSettings)
    report: ReportSettings = field(default_factory=ReportSettings)
    paths: PathsSettings = field(default_factory=PathsSettings)


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        payload = yaml.safe_load(handle) or {}
    if not isinstance(payload, dict):
        raise ValueError(f"Configuration file '{path}' must contain a mapping")
    return payload


def load_settings(path: str | Path) -> Settings:
    """Read configuration from *path* and return structured settings."""

    config_path = Path(path)
    raw = _load_yaml(config_path)

    backend_raw = raw.get("backend") or {}
    backend = BackendSettings(
        timeout_s=float(backend_raw.get("timeout_s", 2.0)),
        progress_interval=int(backend_raw.get("progress_interval", 1000)),
    )
    if backend.timeout_s < 0:
        raise ValueError("backend.timeout_s must be non-negative")
    if backend.progress_interval <= 0:
        raise ValueError("backend.progress_interval must be positive")

    curriculum_raw = raw.get("curriculum") or {}
    path_env = curriculum_raw.get("path_env")
    curriculum = CurriculumSettings(
        path=str(curriculum_raw.get("path", DEFAULT_CURRICULUM_PATH)),
        path_env=str(path_env) if path_env else None,
    )

    report_raw = raw.get("report") or {}
    report_path = report_raw.get("path")
    report = ReportSettings(path=str(report_path) if report_path else None)

    paths_raw = raw.get("paths") or {}
    run_logs_dir = paths_raw.get("run_logs_dir")
    paths = PathsSettings(run_logs_dir=str(run_logs_dir) if run_logs_dir else None)

    return Settings(backend=backend, curriculum=curriculum, report=report, paths=paths)
