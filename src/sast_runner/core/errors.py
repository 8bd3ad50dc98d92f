"""Exception types raised by sast-runner."""

from __future__ import annotations


class SastRunnerError(Exception):
    """Base class for every error raised by this package."""


class InvalidInvocationError(SastRunnerError):
    """Image or command is empty; raised before any engine call."""

    def __init__(self, message: str = "image or cmd is empty") -> None:
        super().__init__(message)


class EngineCommunicationError(SastRunnerError):
    """The Docker engine could not be reached or rejected a request.

    The underlying docker/requests exception is kept as ``__cause__``.
    """


class ContainerRuntimeError(SastRunnerError):
    """The engine reported an error while waiting on a container."""

    def __init__(self, container_id: str, message: str, exit_status: int) -> None:
        self.container_id = container_id
        self.message = message
        self.exit_status = exit_status
        super().__init__(
            f"Error on wait container {container_id}: {message} | Exited with status {exit_status}"
        )


class CleanupError(SastRunnerError):
    """A container could not be removed.

    Only ever logged; cleanup failures never reach the caller.
    """

    def __init__(self, container_id: str, reason: str) -> None:
        self.container_id = container_id
        self.reason = reason
        super().__init__(f"Failed to remove container {container_id}: {reason}")
