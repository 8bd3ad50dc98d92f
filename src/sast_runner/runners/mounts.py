"""Host path to bind-mount source translation."""

from __future__ import annotations

from pathlib import Path
from uuid import UUID

from sast_runner.core.constants import ANALYSIS_FOLDER


def mount_source(
    run_id: UUID | str,
    project_path: Path | str,
    bind_project_path: str | None = None,
) -> str:
    """Return the host path mounted into every container of an analysis.

    The per-run folder is ``<base>/.sast-runner/<run_id>``, where ``base`` is
    ``bind_project_path`` when set and ``project_path`` otherwise. Windows
    drive-letter paths are rewritten for the engine, see
    :func:`windows_mount_source`.
    """
    base = bind_project_path or str(project_path)
    path = str(Path(base) / ANALYSIS_FOLDER / str(run_id))

    if path[1:2] == ":":
        return windows_mount_source(path)
    return path


def windows_mount_source(path: str) -> str:
    """Rewrite a drive-letter path into the engine's bind-source syntax.

    ``C:\\Users\\me\\proj`` becomes ``//c//Users//me//proj``: lower-case
    drive, no colon, leading slash, forward slashes only, every slash doubled.
    """
    path = path[0].lower() + path[1:]
    path = "/" + path.replace(":", "")
    path = path.replace("\\", "/")
    return path.replace("/", "//")
