"""CLI for sast-runner.

Provides a command-line interface using Typer for:
- Pulling tool images
- Running a single tool container
- Removing the containers of an analysis
- Checking the Docker engine
"""

from __future__ import annotations

import uuid
from pathlib import Path

import docker
import typer
from docker.errors import DockerException
from rich.console import Console
from rich.table import Table

from sast_runner.analysis import AnalysisContainers
from sast_runner.core.config import load_config
from sast_runner.core.errors import SastRunnerError
from sast_runner.core.schemas import RunnerConfig, ToolInvocation
from sast_runner.utils.logging import setup_logging

app = typer.Typer(
    name="sast-runner",
    help="Run static-analysis tools in ephemeral Docker containers",
    add_completion=False,
)

console = Console()


def _load(config: Path | None) -> RunnerConfig:
    if config is None:
        return RunnerConfig()
    try:
        return load_config(config)
    except Exception as e:
        console.print(f"[bold red]Error loading config: {e}[/]")
        raise typer.Exit(1) from e


def _open(runner_config: RunnerConfig, analysis_id: uuid.UUID | None = None) -> AnalysisContainers:
    try:
        client = docker.from_env()
    except DockerException as e:
        console.print(f"[bold red]Cannot connect to Docker: {e}[/]")
        raise typer.Exit(1) from e
    return AnalysisContainers(client, runner_config, run_id=analysis_id)


@app.command()
def run(
    image: str = typer.Option(..., "--image", "-i", help="Tool image reference"),
    command: str = typer.Option(..., "--command", "-c", help="Shell command run in /src"),
    config: Path | None = typer.Option(None, "--config", help="Runner configuration (YAML/JSON)"),
    analysis_id: uuid.UUID | None = typer.Option(
        None, "--analysis-id", help="Analysis id (generated when omitted)"
    ),
    log_level: str = typer.Option("INFO", "--log-level", "-l", help="Logging level"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Output logs in JSON format"),
) -> None:
    """Pull an image if needed, run one command in it and print its output."""
    setup_logging(level=log_level, json_format=json_logs, rich_console=not json_logs)
    runner_config = _load(config)
    containers = _open(runner_config, analysis_id)

    try:
        containers.pull_image(image)
        output = containers.create_analysis_container(ToolInvocation(image=image, command=command))
    except SastRunnerError as e:
        console.print(f"[bold red]{e}[/]")
        raise typer.Exit(1) from e
    finally:
        containers.close()

    console.print(output, markup=False, highlight=False)


@app.command()
def pull(
    image: str = typer.Option(..., "--image", "-i", help="Image reference to pull"),
    config: Path | None = typer.Option(None, "--config", help="Runner configuration (YAML/JSON)"),
    log_level: str = typer.Option("INFO", "--log-level", "-l", help="Logging level"),
) -> None:
    """Pull an image unless it is already cached."""
    setup_logging(level=log_level)
    containers = _open(_load(config))

    try:
        containers.pull_image(image)
    except SastRunnerError as e:
        console.print(f"[bold red]{e}[/]")
        raise typer.Exit(1) from e
    finally:
        containers.close()

    console.print(f"[bold green]{image} is available[/]")


@app.command()
def cleanup(
    analysis_id: uuid.UUID = typer.Option(..., "--analysis-id", help="Analysis to clean up"),
    config: Path | None = typer.Option(None, "--config", help="Runner configuration (YAML/JSON)"),
    log_level: str = typer.Option("INFO", "--log-level", "-l", help="Logging level"),
) -> None:
    """Force-remove every container of an analysis."""
    setup_logging(level=log_level)
    containers = _open(_load(config), analysis_id)

    try:
        removed = containers.delete_all_for_run()
    finally:
        containers.close()

    table = Table(title=f"Removed containers ({analysis_id})")
    table.add_column("Container", style="cyan")
    for container_id in removed:
        table.add_row(container_id[:12])
    console.print(table)


@app.command()
def ping() -> None:
    """Check that the Docker engine is reachable."""
    containers = _open(RunnerConfig())
    try:
        reachable = containers.ping()
    finally:
        containers.close()

    if not reachable:
        console.print("[bold red]Docker engine is not reachable[/]")
        raise typer.Exit(1)
    console.print("[bold green]Docker engine is reachable[/]")


@app.command()
def init_config(
    output: Path = typer.Option(
        Path("sast-runner.yaml"), "--output", "-o", help="Output configuration file"
    ),
) -> None:
    """Generate a sample configuration file."""
    sample_config = """\
# sast-runner configuration

# Project being analysed; each analysis gets a copy under
# <project_path>/.sast-runner/<analysis id>, mounted at /src.
# A relative path is taken from the directory holding this file.
project_path: "."

# Set when the runner itself runs in a container and the engine needs
# the host-side path of the project
# container_bind_project_path: "/home/me/projects/app"

# Skip image pulls entirely
disable_docker: false

# Per-tool image overrides, e.g.
#   bandit: registry.example.com/tools/bandit:1.7
custom_images: {}
"""
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(sample_config)
    console.print(f"[bold green]Sample configuration written to {output}[/]")


if __name__ == "__main__":
    app()
