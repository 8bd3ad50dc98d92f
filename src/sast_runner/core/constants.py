"""Shared constants for sast-runner.

Centralized constants to avoid duplication and ensure consistency across modules.
"""

from __future__ import annotations

# Registry prefix stripped from references before looking for a cached image.
DEFAULT_REGISTRY = "docker.io"

# Every tool container sees its per-run copy of the project here.
MOUNT_TARGET = "/src"

# Hidden folder inside the project holding one source copy per analysis.
ANALYSIS_FOLDER = ".sast-runner"

# Token in a command template replaced with the analysis id.
ANALYSIS_ID_PLACEHOLDER = "ANALYSISID"

# Host environment variables.
REGISTRY_USERNAME_ENV = "SAST_RUNNER_REGISTRY_USERNAME"
REGISTRY_PASSWORD_ENV = "SAST_RUNNER_REGISTRY_PASSWORD"
REGISTRY_ADDRESS_ENV = "SAST_RUNNER_REGISTRY_ADDRESS"
FORWARDED_TOKEN_ENV = "GITHUB_TOKEN"
