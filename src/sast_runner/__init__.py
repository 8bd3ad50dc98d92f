"""sast-runner - Run static-analysis tools in ephemeral Docker containers."""

from __future__ import annotations

from sast_runner.analysis import AnalysisContainers
from sast_runner.core.errors import (
    CleanupError,
    ContainerRuntimeError,
    EngineCommunicationError,
    InvalidInvocationError,
    SastRunnerError,
)
from sast_runner.core.schemas import RegistryCredentials, RunnerConfig, ToolInvocation

__version__ = "0.1.0"

__all__ = [
    "AnalysisContainers",
    "CleanupError",
    "ContainerRuntimeError",
    "EngineCommunicationError",
    "InvalidInvocationError",
    "RegistryCredentials",
    "RunnerConfig",
    "SastRunnerError",
    "ToolInvocation",
    "__version__",
]
