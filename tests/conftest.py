"""Shared fixtures for sast-runner tests."""

from __future__ import annotations

import uuid
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from sast_runner.core.schemas import RunnerConfig

RUN_ID = uuid.UUID("6f1d7f0e-2b0c-4c7e-9a53-0d3c8d2f4b11")


@pytest.fixture
def run_id() -> uuid.UUID:
    return RUN_ID


@pytest.fixture
def runner_config() -> RunnerConfig:
    return RunnerConfig(project_path=Path("/home/dev/project"))


@pytest.fixture
def docker_client() -> MagicMock:
    """Mock DockerClient whose low-level API reports a clean tool run."""
    client = MagicMock()
    client.api.images.return_value = []
    client.api._url.side_effect = lambda path: f"http+docker://localhost/v1.41{path}"
    client.api._stream_helper.return_value = iter(
        [b'{"status":"Pulling"}', b'{"status":"Done"}']
    )
    client.api.create_container.return_value = {"Id": "c0ffee", "Warnings": []}
    client.api.wait.return_value = {"StatusCode": 0, "Error": None}
    client.api.logs.return_value = iter([b'{"results": ', b"[]}"])
    client.api.containers.return_value = []
    client.api.ping.return_value = True
    return client


@pytest.fixture(autouse=True)
def clean_registry_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "SAST_RUNNER_REGISTRY_USERNAME",
        "SAST_RUNNER_REGISTRY_PASSWORD",
        "SAST_RUNNER_REGISTRY_ADDRESS",
        "GITHUB_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)
