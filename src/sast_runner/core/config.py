"""Runner configuration files.

A configuration file is YAML (``.yaml``/``.yml``) or JSON. A relative
``project_path`` is taken relative to the directory holding the file, so the
same file works from any working directory. ``container_bind_project_path``
names a path on the engine host and is passed through untouched.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from sast_runner.core.schemas import RunnerConfig

_LOADERS = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.load,
}


def load_config(path: Path | str) -> RunnerConfig:
    """Load a ``RunnerConfig`` from ``path``.

    An empty file yields the defaults.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the suffix is unsupported or the top level is not a mapping
        pydantic.ValidationError: If a field has the wrong type or value
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    suffix = path.suffix.lower()
    loader = _LOADERS.get(suffix)
    if loader is None:
        raise ValueError(f"Unsupported config format: {suffix}. Use .yaml, .yml, or .json")

    with open(path, encoding="utf-8") as f:
        data = loader(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration in {path} must be a mapping, got {type(data).__name__}")

    return RunnerConfig.model_validate(_anchor_project_path(data, path.parent))


def _anchor_project_path(data: dict[str, Any], base: Path) -> dict[str, Any]:
    project_path = data.get("project_path")
    if project_path is None or Path(project_path).is_absolute():
        return data
    return {**data, "project_path": base / project_path}
