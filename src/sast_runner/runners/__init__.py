"""Runners module - Docker image and container lifecycle management."""

from __future__ import annotations

from sast_runner.runners.cleanup import delete_all_for_run
from sast_runner.runners.container_runner import ContainerRunner
from sast_runner.runners.images import ImageAvailabilityChecker, ImagePuller
from sast_runner.runners.mounts import mount_source

__all__ = [
    "ContainerRunner",
    "delete_all_for_run",
    "ImageAvailabilityChecker",
    "ImagePuller",
    "mount_source",
]
