"""Image availability check and on-demand pull.

The availability check is serialized by a lock owned by the caller; the pull
that follows it is not. Two concurrent callers may both find an image
missing and both pull it, which costs a duplicate download but never
corrupts the local image store.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from docker.errors import DockerException
from docker.utils import parse_repository_tag
from requests.exceptions import RequestException

from sast_runner.core.constants import DEFAULT_REGISTRY
from sast_runner.core.errors import EngineCommunicationError
from sast_runner.core.schemas import RegistryCredentials, RunnerConfig

if TYPE_CHECKING:
    import docker

logger = logging.getLogger(__name__)


def strip_default_registry(image: str) -> str:
    """Remove the default registry prefix used when comparing cached images."""
    return image.replace(f"{DEFAULT_REGISTRY}/", "")


class ImageAvailabilityChecker:
    """Looks up locally cached images, one query at a time."""

    def __init__(self, client: docker.DockerClient, lock: threading.Lock | None = None) -> None:
        self._client = client
        self._lock = lock if lock is not None else threading.Lock()

    def is_missing(self, image: str) -> bool:
        """Return True if no cached image matches ``image``.

        Raises:
            EngineCommunicationError: If the image list cannot be fetched
        """
        reference = strip_default_registry(image)
        with self._lock:
            try:
                images = self._client.api.images(filters={"reference": reference})
            except (DockerException, RequestException) as e:
                logger.error(f"Failed to list images matching {reference}: {e}")
                raise EngineCommunicationError(f"Failed to list images: {e}") from e

        return len(images) == 0


class ImagePuller:
    """Pulls tool images, skipping the ones already cached."""

    def __init__(
        self,
        client: docker.DockerClient,
        config: RunnerConfig,
        checker: ImageAvailabilityChecker,
    ) -> None:
        self._client = client
        self._config = config
        self._checker = checker

    def pull_if_missing(self, image: str) -> None:
        """Pull ``image`` unless it is cached or container execution is disabled.

        Raises:
            EngineCommunicationError: If the check or the pull fails
        """
        if self._config.disable_docker:
            return

        try:
            missing = self._checker.is_missing(image)
            if missing:
                logger.debug(f"Image {image} not found in local cache")
                self.pull(image)
        except EngineCommunicationError:
            logger.error(f"Failed to pull image {image}")
            raise

    def pull(self, image: str) -> None:
        """Pull ``image`` and drain the whole progress stream.

        The pull only counts as done once every chunk of the response has
        been read; an error while reading fails the pull.

        The request is issued with explicit headers: ``APIClient.pull`` falls
        back to the host's ``~/.docker/config.json`` when no auth is given,
        and only the configured registry credentials may be sent.
        """
        token = RegistryCredentials.from_env().encode()
        repository, tag = parse_repository_tag(image)
        params = {"tag": tag or "latest", "fromImage": repository}
        headers = {"X-Registry-Auth": token} if token is not None else {}
        api = self._client.api
        logger.info(f"Pulling image {image}...")

        try:
            response = api._post(
                api._url("/images/create"),
                params=params,
                headers=headers,
                stream=True,
                timeout=None,
            )
            api._raise_for_status(response)
            received = 0
            for chunk in api._stream_helper(response):
                received += len(chunk)
        except (DockerException, RequestException) as e:
            logger.error(f"Failed to pull image {image}: {e}")
            raise EngineCommunicationError(f"Failed to pull image {image}: {e}") from e

        logger.info(f"Successfully pulled {image}")
        logger.debug(f"Pull stream for {image} drained ({received} bytes)")
