"""Per-analysis facade over the image and container runners.

An analysis is one scanning pipeline execution. It owns:
- The analysis id embedded in every container name and mount path
- The lock that serializes image cache lookups
- The shared Docker client handle

Formatters call ``pull_image`` then ``create_analysis_container`` for each
tool, possibly from several threads at once, and the pipeline calls
``delete_all_for_run`` on teardown or abort.
"""

from __future__ import annotations

import contextlib
import logging
import threading
import uuid
from typing import TYPE_CHECKING

from docker.errors import DockerException
from requests.exceptions import RequestException

from sast_runner.core.errors import InvalidInvocationError, SastRunnerError
from sast_runner.core.schemas import RunnerConfig, ToolInvocation
from sast_runner.runners.cleanup import delete_all_for_run
from sast_runner.runners.container_runner import ContainerRunner
from sast_runner.runners.images import ImageAvailabilityChecker, ImagePuller
from sast_runner.utils.logging import ContainerLogRecord

if TYPE_CHECKING:
    import docker

logger = logging.getLogger(__name__)


class AnalysisContainers:
    """Runs the tool containers of a single analysis.

    Example:
        ```python
        containers = AnalysisContainers(docker.from_env(), load_config("sast.yaml"))
        invocation = ToolInvocation.for_tool("bandit", "sast/bandit:v1", "bandit -r . -f json")
        try:
            containers.pull_image(invocation.resolved_image)
            output = containers.create_analysis_container(invocation)
        finally:
            containers.delete_all_for_run()
            containers.close()
        ```
    """

    def __init__(
        self,
        client: docker.DockerClient,
        config: RunnerConfig,
        run_id: uuid.UUID | None = None,
        lock: threading.Lock | None = None,
    ) -> None:
        """Initialize the facade.

        Args:
            client: Docker client shared by all tool runs
            config: Runner configuration
            run_id: Analysis id, generated when omitted
            lock: Lock guarding image cache lookups, created when omitted
        """
        self._client = client
        self._config = config
        self._run_id = run_id if run_id is not None else uuid.uuid4()

        checker = ImageAvailabilityChecker(client, lock if lock is not None else threading.Lock())
        self._puller = ImagePuller(client, config, checker)
        self._runner = ContainerRunner(client, config)

    @property
    def run_id(self) -> uuid.UUID:
        return self._run_id

    def create_analysis_container(self, invocation: ToolInvocation) -> str:
        """Run one tool and return its raw stdout.

        Raises:
            InvalidInvocationError: If the invocation has no image or no command
            EngineCommunicationError: On Docker API failures
            ContainerRuntimeError: If waiting on the container reports an error
        """
        if invocation.is_invalid():
            raise InvalidInvocationError()

        image = invocation.resolved_image
        record = ContainerLogRecord(image=image, run_id=self._run_id)
        tool = invocation.tool or image

        try:
            output = self._runner.run(image, invocation.command, self._run_id)
        except SastRunnerError:
            logger.debug(f"Tool {tool} finished with error", extra=record.as_extra())
            raise

        logger.debug(f"Tool {tool} finished successfully", extra=record.as_extra())
        return output

    def pull_image(self, image: str) -> None:
        """Make sure ``image`` is available locally, pulling it if needed."""
        self._puller.pull_if_missing(image)

    def delete_all_for_run(self) -> list[str]:
        """Force-remove every container of this analysis."""
        return delete_all_for_run(self._client, self._run_id)

    def ping(self) -> bool:
        """Return True if the Docker engine answers."""
        try:
            return bool(self._client.api.ping())
        except (DockerException, RequestException) as e:
            logger.warning(f"Docker engine is not reachable: {e}")
            return False

    def close(self) -> None:
        """Release the Docker client."""
        with contextlib.suppress(Exception):
            self._client.close()
