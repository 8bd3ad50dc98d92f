"""Bulk removal of every container that belongs to one analysis."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from uuid import UUID

from docker.errors import DockerException
from requests.exceptions import RequestException

from sast_runner.core.errors import CleanupError

if TYPE_CHECKING:
    import docker

logger = logging.getLogger(__name__)


def delete_all_for_run(client: docker.DockerClient, run_id: UUID | str) -> list[str]:
    """Force-remove all containers, running or not, whose name contains ``run_id``.

    Best effort: a failed removal is logged and the remaining containers are
    still attempted. Nothing is raised.

    Returns:
        IDs of the containers that were removed
    """
    run_id = str(run_id)
    try:
        containers = client.api.containers(all=True, filters={"name": run_id})
    except (DockerException, RequestException) as e:
        logger.error(f"Failed to list containers of analysis {run_id}: {e}")
        return []

    removed: list[str] = []
    for container in containers:
        container_id = container["Id"]
        try:
            client.api.remove_container(container_id, force=True)
        except (DockerException, RequestException) as e:
            logger.warning(str(CleanupError(container_id, str(e))), extra={"analysis_id": run_id})
            continue
        removed.append(container_id)

    logger.debug(f"Removed {len(removed)}/{len(containers)} containers of analysis {run_id}")
    return removed
