"""Docker container runner for static-analysis tools.

This module manages the complete lifecycle of one tool container:
- Container creation with the per-analysis bind mount
- Start and wait for exit
- Stdout collection
- Removal

Every container name starts with the analysis id so that the containers of
one analysis can always be found and removed together, see
``sast_runner.runners.cleanup``.

Waiting has no deadline: a tool that never exits blocks its caller.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from docker.errors import DockerException, NotFound
from docker.types import Mount
from requests.exceptions import RequestException

from sast_runner.core.constants import (
    ANALYSIS_ID_PLACEHOLDER,
    FORWARDED_TOKEN_ENV,
    MOUNT_TARGET,
)
from sast_runner.core.errors import (
    CleanupError,
    ContainerRuntimeError,
    EngineCommunicationError,
    InvalidInvocationError,
)
from sast_runner.core.schemas import RunnerConfig
from sast_runner.runners.mounts import mount_source
from sast_runner.utils.logging import ContainerLogRecord

if TYPE_CHECKING:
    import docker

logger = logging.getLogger(__name__)

_ENGINE_ERRORS = (DockerException, RequestException)


def substitute_analysis_id(command: str, run_id: UUID | str) -> str:
    """Replace every analysis id placeholder in ``command``."""
    return command.replace(ANALYSIS_ID_PLACEHOLDER, str(run_id))


class ContainerRunner:
    """Runs a single tool command in a throwaway container.

    Example:
        ```python
        runner = ContainerRunner(docker.from_env(), RunnerConfig(project_path=Path(".")))
        output = runner.run(
            "docker.io/sast/bandit:v1",
            "bandit -r . -f json -o /src/ANALYSISID.json; cat /src/ANALYSISID.json",
            run_id,
        )
        ```
    """

    def __init__(self, client: docker.DockerClient, config: RunnerConfig) -> None:
        """Initialize the container runner.

        Args:
            client: Docker client shared by every concurrent run
            config: Runner configuration (project and bind paths)
        """
        self._client = client
        self._config = config

    def run(self, image: str, command: str, run_id: UUID) -> str:
        """Run ``command`` in a new container from ``image`` and return its stdout.

        Args:
            image: Image reference, already pulled
            command: Shell command template; ``ANALYSISID`` is replaced with run_id
            run_id: Analysis the container belongs to

        Returns:
            The complete stdout of the container, uninterpreted

        Raises:
            InvalidInvocationError: If image or command is empty
            EngineCommunicationError: If create, start, wait or log reading fails
            ContainerRuntimeError: If the engine reports an error on wait
        """
        if not image or not command:
            raise InvalidInvocationError()

        command = substitute_analysis_id(command, run_id)
        record = ContainerLogRecord(image=image, run_id=run_id)

        container_id = self._create_container(image, command, record)
        record = record.with_container(container_id)
        self._start_container(container_id, record)
        logger.debug(f"Container {container_id} started", extra=record.as_extra())

        try:
            self._wait_container(container_id, record)
            output = self._read_logs(container_id)
            logger.debug(f"Read output of container {container_id}", extra=record.as_extra())
            return output
        finally:
            self._remove_container(container_id, record)

    def _create_container(self, image: str, command: str, record: ContainerLogRecord) -> str:
        host_config = self._host_config(record.run_id)
        name = f"{record.run_id}-{uuid4()}"

        try:
            response = self._client.api.create_container(
                image,
                name=name,
                host_config=host_config,
                **self._container_config(command),
            )
        except _ENGINE_ERRORS as e:
            logger.error(f"Failed to create container from {image}: {e}", extra=record.as_extra())
            raise EngineCommunicationError(f"Failed to create container: {e}") from e

        container_id = response["Id"]
        logger.debug(f"Created container {name} ({container_id})", extra=record.as_extra())
        return container_id

    def _start_container(self, container_id: str, record: ContainerLogRecord) -> None:
        try:
            self._client.api.start(container_id)
        except _ENGINE_ERRORS as e:
            logger.error(f"Failed to start container {container_id}: {e}", extra=record.as_extra())
            # Not removed here; run-scoped cleanup still finds it by name.
            logger.warning(
                f"Container {container_id} was created but never started and is left in place",
                extra=record.as_extra(),
            )
            raise EngineCommunicationError(f"Failed to start container: {e}") from e

    def _wait_container(self, container_id: str, record: ContainerLogRecord) -> None:
        logger.debug(f"Waiting for container {container_id}", extra=record.as_extra())
        try:
            result = self._client.api.wait(container_id)
        except _ENGINE_ERRORS as e:
            logger.error(f"Failed to wait for container {container_id}: {e}", extra=record.as_extra())
            raise EngineCommunicationError(f"Failed to wait for container: {e}") from e

        error = result.get("Error")
        if error:
            message = error.get("Message", "") if isinstance(error, dict) else str(error)
            raise ContainerRuntimeError(container_id, message, int(result.get("StatusCode", -1)))

    def _read_logs(self, container_id: str) -> str:
        """Drain the stdout log stream into a single string."""
        chunks: list[bytes] = []
        try:
            for chunk in self._client.api.logs(
                container_id, stdout=True, stderr=False, stream=True
            ):
                chunks.append(chunk)
        except _ENGINE_ERRORS as e:
            raise EngineCommunicationError(f"Failed to read container logs: {e}") from e

        return b"".join(chunks).decode("utf-8", errors="replace")

    def _remove_container(self, container_id: str, record: ContainerLogRecord) -> None:
        try:
            self._client.api.remove_container(container_id, force=True)
            logger.debug(f"Removed container {container_id}", extra=record.as_extra())
        except NotFound:
            logger.debug(f"Container {container_id} already removed", extra=record.as_extra())
        except _ENGINE_ERRORS as e:
            logger.warning(str(CleanupError(container_id, str(e))), extra=record.as_extra())

    def _container_config(self, command: str) -> dict[str, Any]:
        """Keyword arguments for ``create_container`` besides image, name and host config."""
        return {
            "command": ["/bin/sh", "-c", f"cd {MOUNT_TARGET} && {command}"],
            "tty": True,
            "environment": [f"{FORWARDED_TOKEN_ENV}={os.environ.get(FORWARDED_TOKEN_ENV, '')}"],
        }

    def _host_config(self, run_id: UUID) -> dict[str, Any]:
        """Host config with the single private bind mount of the analysis folder."""
        source = mount_source(
            run_id,
            self._config.project_path,
            self._config.container_bind_project_path,
        )
        mount = Mount(
            target=MOUNT_TARGET,
            source=source,
            type="bind",
            propagation="private",
        )
        return self._client.api.create_host_config(mounts=[mount])
