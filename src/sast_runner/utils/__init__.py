"""Utils module - Shared utilities."""

from __future__ import annotations

from sast_runner.utils.logging import ContainerLogRecord, setup_logging

__all__ = ["ContainerLogRecord", "setup_logging"]
