"""Tests for ContainerRunner."""

import logging

import pytest
from docker.errors import APIError, NotFound
from requests.exceptions import ConnectionError as RequestsConnectionError

from sast_runner.core.errors import (
    ContainerRuntimeError,
    EngineCommunicationError,
    InvalidInvocationError,
)
from sast_runner.core.schemas import RunnerConfig
from sast_runner.runners.container_runner import ContainerRunner, substitute_analysis_id
from sast_runner.runners.mounts import mount_source


class TestValidation:
    """Tests for invocation validation."""

    @pytest.mark.parametrize(("image", "command"), [("", "cmd"), ("img", ""), ("", "")])
    def test_empty_image_or_command(self, docker_client, runner_config, run_id, image, command):
        """Test empty image or command is rejected without engine calls."""
        runner = ContainerRunner(docker_client, runner_config)
        with pytest.raises(InvalidInvocationError):
            runner.run(image, command, run_id)
        assert docker_client.mock_calls == []


class TestContainerConfig:
    """Tests for the container created for a tool run."""

    def test_analysis_id_substituted(self, docker_client, runner_config, run_id):
        """Test the placeholder is replaced by the analysis id in the command."""
        ContainerRunner(docker_client, runner_config).run("img", "echo ANALYSISID", run_id)

        command = docker_client.api.create_container.call_args.kwargs["command"]
        assert command == ["/bin/sh", "-c", f"cd /src && echo {run_id}"]
        assert "ANALYSISID" not in " ".join(command)

    def test_every_placeholder_replaced(self, run_id):
        result = substitute_analysis_id("a ANALYSISID b ANALYSISID", run_id)
        assert result == f"a {run_id} b {run_id}"

    def test_name_starts_with_analysis_id(self, docker_client, runner_config, run_id):
        """Test container names carry the analysis id plus a unique suffix."""
        runner = ContainerRunner(docker_client, runner_config)
        runner.run("img", "true", run_id)
        docker_client.api.logs.return_value = iter([b""])
        runner.run("img", "true", run_id)

        names = [c.kwargs["name"] for c in docker_client.api.create_container.call_args_list]
        assert all(name.startswith(f"{run_id}-") for name in names)
        assert names[0] != names[1]

    def test_tty_and_image(self, docker_client, runner_config, run_id):
        ContainerRunner(docker_client, runner_config).run("sast/bandit:v1", "true", run_id)

        call = docker_client.api.create_container.call_args
        assert call.args == ("sast/bandit:v1",)
        assert call.kwargs["tty"] is True

    def test_token_forwarded(self, docker_client, runner_config, run_id, monkeypatch):
        """Test the host token is forwarded into the container environment."""
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_example")
        ContainerRunner(docker_client, runner_config).run("img", "true", run_id)

        environment = docker_client.api.create_container.call_args.kwargs["environment"]
        assert environment == ["GITHUB_TOKEN=ghp_example"]

    def test_token_empty_when_unset(self, docker_client, runner_config, run_id):
        ContainerRunner(docker_client, runner_config).run("img", "true", run_id)
        environment = docker_client.api.create_container.call_args.kwargs["environment"]
        assert environment == ["GITHUB_TOKEN="]

    def test_bind_mount(self, docker_client, runner_config, run_id):
        """Test the single private bind mount of the analysis folder."""
        ContainerRunner(docker_client, runner_config).run("img", "true", run_id)

        mounts = docker_client.api.create_host_config.call_args.kwargs["mounts"]
        assert len(mounts) == 1
        mount = mounts[0]
        assert mount["Type"] == "bind"
        assert mount["Target"] == "/src"
        assert mount["Source"] == mount_source(run_id, runner_config.project_path)
        assert mount["BindOptions"] == {"Propagation": "private"}

        host_config = docker_client.api.create_container.call_args.kwargs["host_config"]
        assert host_config is docker_client.api.create_host_config.return_value

    def test_bind_mount_alternate_root(self, docker_client, run_id):
        config = RunnerConfig(project_path="/workspace", container_bind_project_path="C:\\proj")
        ContainerRunner(docker_client, config).run("img", "true", run_id)

        mount = docker_client.api.create_host_config.call_args.kwargs["mounts"][0]
        assert mount["Source"] == f"//c//proj//.sast-runner//{run_id}"


class TestRunLifecycle:
    """Tests for create, start, wait, logs and removal."""

    def test_clean_run_returns_stdout(self, docker_client, runner_config, run_id):
        """Test the full stdout stream is returned and the container removed."""
        output = ContainerRunner(docker_client, runner_config).run("img", "scan", run_id)

        assert output == '{"results": []}'
        docker_client.api.start.assert_called_once_with("c0ffee")
        docker_client.api.wait.assert_called_once_with("c0ffee")
        docker_client.api.logs.assert_called_once_with(
            "c0ffee", stdout=True, stderr=False, stream=True
        )
        docker_client.api.remove_container.assert_called_once_with("c0ffee", force=True)

    def test_non_zero_exit_still_reads_logs(self, docker_client, runner_config, run_id):
        """Test a tool exit code alone is not an error."""
        docker_client.api.wait.return_value = {"StatusCode": 1, "Error": None}
        output = ContainerRunner(docker_client, runner_config).run("img", "scan", run_id)
        assert output == '{"results": []}'

    def test_invalid_utf8_replaced(self, docker_client, runner_config, run_id):
        docker_client.api.logs.return_value = iter([b"ok \xff"])
        output = ContainerRunner(docker_client, runner_config).run("img", "scan", run_id)
        assert output == "ok \ufffd"

    def test_create_failure(self, docker_client, runner_config, run_id):
        """Test a create failure is an engine error and nothing else runs."""
        docker_client.api.create_container.side_effect = APIError("no such image")

        with pytest.raises(EngineCommunicationError):
            ContainerRunner(docker_client, runner_config).run("img", "scan", run_id)

        docker_client.api.start.assert_not_called()
        docker_client.api.remove_container.assert_not_called()

    def test_start_failure_leaves_container(self, docker_client, runner_config, run_id):
        """Test a container that fails to start is not removed by the run."""
        docker_client.api.start.side_effect = APIError("port in use")

        with pytest.raises(EngineCommunicationError):
            ContainerRunner(docker_client, runner_config).run("img", "scan", run_id)

        docker_client.api.wait.assert_not_called()
        docker_client.api.remove_container.assert_not_called()

    def test_wait_error(self, docker_client, runner_config, run_id):
        """Test a wait error carries id and status and skips the logs."""
        docker_client.api.wait.return_value = {
            "StatusCode": 137,
            "Error": {"Message": "container killed"},
        }

        with pytest.raises(ContainerRuntimeError) as exc_info:
            ContainerRunner(docker_client, runner_config).run("img", "scan", run_id)

        error = exc_info.value
        assert "c0ffee" in str(error)
        assert "137" in str(error)
        assert "container killed" in str(error)
        assert error.exit_status == 137
        docker_client.api.logs.assert_not_called()
        docker_client.api.remove_container.assert_called_once_with("c0ffee", force=True)

    def test_wait_transport_failure(self, docker_client, runner_config, run_id):
        docker_client.api.wait.side_effect = RequestsConnectionError("daemon gone")

        with pytest.raises(EngineCommunicationError):
            ContainerRunner(docker_client, runner_config).run("img", "scan", run_id)

        docker_client.api.remove_container.assert_called_once_with("c0ffee", force=True)

    def test_log_read_failure_still_removes(self, docker_client, runner_config, run_id):
        """Test the container is removed when reading logs fails."""

        def stream():
            yield b"partial"
            raise APIError("connection reset")

        docker_client.api.logs.return_value = stream()

        with pytest.raises(EngineCommunicationError):
            ContainerRunner(docker_client, runner_config).run("img", "scan", run_id)

        docker_client.api.remove_container.assert_called_once_with("c0ffee", force=True)

    def test_remove_failure_not_raised(self, docker_client, runner_config, run_id, caplog):
        """Test removal failures are logged but never change the result."""
        docker_client.api.remove_container.side_effect = APIError("removal in progress")

        output = ContainerRunner(docker_client, runner_config).run("img", "scan", run_id)

        assert output == '{"results": []}'
        assert "Failed to remove container c0ffee" in caplog.text

    def test_remove_not_found_logged_at_debug(self, docker_client, runner_config, run_id, caplog):
        """Test an already removed container is noted at debug level only."""
        docker_client.api.remove_container.side_effect = NotFound("gone")

        with caplog.at_level(logging.DEBUG, logger="sast_runner.runners.container_runner"):
            output = ContainerRunner(docker_client, runner_config).run("img", "scan", run_id)

        assert output == '{"results": []}'
        records = [r for r in caplog.records if "already removed" in r.getMessage()]
        assert [r.levelno for r in records] == [logging.DEBUG]
        assert records[0].container_id == "c0ffee"
        assert "Failed to remove container" not in caplog.text
