"""Pydantic schemas for sast-runner.

This module defines the data contracts shared by the runner components:
the runner configuration, a single tool invocation and the registry
credentials used when pulling images.
"""

from __future__ import annotations

import os
from pathlib import Path

from docker.auth import encode_header
from pydantic import BaseModel, Field, field_validator

from sast_runner.core.constants import (
    DEFAULT_REGISTRY,
    REGISTRY_ADDRESS_ENV,
    REGISTRY_PASSWORD_ENV,
    REGISTRY_USERNAME_ENV,
)


class RunnerConfig(BaseModel):
    """Configuration consumed by the container runner.

    Attributes:
        project_path: Host path of the project being analysed
        container_bind_project_path: Alternate host root used for bind mounts,
            needed when the runner itself lives in a container and the engine
            resolves paths on a different host
        disable_docker: Skip every image pull (tools run elsewhere)
        custom_images: Per-tool image overrides, keyed by tool name
        log_level: Default log level for the CLI
    """

    project_path: Path = Field(default=Path("."), description="Project source path")
    container_bind_project_path: str | None = Field(
        default=None, description="Alternate bind-mount root"
    )
    disable_docker: bool = Field(default=False, description="Disable container execution")
    custom_images: dict[str, str] = Field(
        default_factory=dict, description="Tool name -> custom image reference"
    )
    log_level: str = Field(default="INFO")

    @field_validator("custom_images")
    @classmethod
    def validate_custom_images(cls, v: dict[str, str]) -> dict[str, str]:
        """Reject overrides with a blank tool name or image."""
        for tool, image in v.items():
            if not tool.strip() or not image.strip():
                raise ValueError(f"Invalid custom image override {tool!r}: {image!r}")
        return v

    def custom_image_for(self, tool: str | None) -> str:
        """Return the configured override for ``tool`` or an empty string."""
        if not tool:
            return ""
        return self.custom_images.get(tool, "")


class ToolInvocation(BaseModel):
    """One static-analysis tool run: which image, which command.

    Empty values are accepted here on purpose; the runner rejects them
    with ``InvalidInvocationError`` before touching the engine.
    """

    image: str = Field(default="", description="Default image reference")
    command: str = Field(default="", description="Shell command template")
    custom_image: str = Field(default="", description="Overrides image when set")
    tool: str | None = Field(default=None, description="Tool name, used for logging")

    @property
    def resolved_image(self) -> str:
        """Custom image if one is configured, else the default image."""
        return self.custom_image or self.image

    def is_invalid(self) -> bool:
        return not self.resolved_image or not self.command

    @classmethod
    def for_tool(
        cls,
        tool: str,
        image_without_registry: str,
        command: str,
        config: RunnerConfig | None = None,
    ) -> ToolInvocation:
        """Build an invocation for a tool hosted on the default registry.

        Args:
            tool: Tool name, also the key for custom image overrides
            image_without_registry: Repository and tag, e.g. 'sast/bandit:v1'
            command: Shell command template
            config: Runner configuration holding custom image overrides

        Returns:
            ToolInvocation with the default registry prefixed to the image
        """
        custom_image = config.custom_image_for(tool) if config is not None else ""
        return cls(
            image=f"{DEFAULT_REGISTRY}/{image_without_registry}",
            command=command,
            custom_image=custom_image,
            tool=tool,
        )


class RegistryCredentials(BaseModel):
    """Basic-auth credentials for the image registry."""

    username: str = ""
    password: str = ""
    server_address: str = ""

    @classmethod
    def from_env(cls) -> RegistryCredentials:
        return cls(
            username=os.environ.get(REGISTRY_USERNAME_ENV, ""),
            password=os.environ.get(REGISTRY_PASSWORD_ENV, ""),
            server_address=os.environ.get(REGISTRY_ADDRESS_ENV, ""),
        )

    def auth_config(self) -> dict[str, str] | None:
        """Docker auth payload, or None unless both username and password are set."""
        if not self.username or not self.password:
            return None
        return {
            "username": self.username,
            "password": self.password,
            "serveraddress": self.server_address,
        }

    def encode(self) -> str | None:
        """Registry auth token (base64url JSON) as sent in X-Registry-Auth."""
        auth = self.auth_config()
        if auth is None:
            return None
        return encode_header(auth).decode("ascii")
