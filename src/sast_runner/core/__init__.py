"""Core module - configuration, schemas and errors."""

from __future__ import annotations

from sast_runner.core.config import load_config
from sast_runner.core.constants import ANALYSIS_FOLDER, DEFAULT_REGISTRY, MOUNT_TARGET
from sast_runner.core.errors import (
    CleanupError,
    ContainerRuntimeError,
    EngineCommunicationError,
    InvalidInvocationError,
    SastRunnerError,
)
from sast_runner.core.schemas import RegistryCredentials, RunnerConfig, ToolInvocation

__all__ = [
    "ANALYSIS_FOLDER",
    "CleanupError",
    "ContainerRuntimeError",
    "DEFAULT_REGISTRY",
    "EngineCommunicationError",
    "InvalidInvocationError",
    "load_config",
    "MOUNT_TARGET",
    "RegistryCredentials",
    "RunnerConfig",
    "SastRunnerError",
    "ToolInvocation",
]
