"""
Tests for LocalDockerProvider.
"""

import io
import tarfile
import threading

import docker.errors
import pytest
from unittest.mock import MagicMock, patch

from core.environment import (
    OutputBuffer,
    ProcessError,
    ProviderKind,
    ProvisioningError,
    StagingError,
)
from core.environment.providers.local_docker import LocalDockerProvider, STDIN_PATH


class TestLocalDockerProvider:
    """Test LocalDockerProvider."""

    @pytest.fixture
    def mock_docker_client(self):
        """Create mock Docker client."""
        client = MagicMock()
        client.ping.return_value = True
        client.images.get.return_value = MagicMock()

        container = MagicMock()
        container.id = "test_container_123456789abc"
        container.name = "coderun-abc123"
        container.exec_run.return_value = (0, b"")
        container.put_archive.return_value = True

        client.containers.run.return_value = container

        client.api.exec_create.return_value = {"Id": "exec-1"}
        client.api.exec_start.return_value = iter([
            (b"hello ", None),
            (None, b"warn\n"),
            (b"world\n", None),
        ])
        client.api.exec_inspect.return_value = {"ExitCode": 0}

        return client

    @pytest.fixture
    def provider(self, mock_docker_client):
        """Create LocalDockerProvider with mock client."""
        with patch("docker.from_env", return_value=mock_docker_client):
            return LocalDockerProvider(
                images={"base": "ubuntu:22.04", "python": "python:3.11-slim"},
                workdir="/home/user",
            )

    def test_provider_kind(self, provider):
        assert provider.kind == ProviderKind.LOCAL_DOCKER

    @pytest.mark.asyncio
    async def test_create(self, provider, mock_docker_client):
        environment = await provider.create("python", 60000)

        kwargs = mock_docker_client.containers.run.call_args.kwargs
        assert kwargs["image"] == "python:3.11-slim"
        assert kwargs["command"] == ["sleep", "60"]
        assert kwargs["working_dir"] == "/home/user"
        assert environment.id == "test_container_123456789abc"
        assert environment.hostname == "coderun-abc123"
        assert environment.lifetime_budget_ms == 60000

    @pytest.mark.asyncio
    async def test_create_unknown_selector_uses_base_image(self, provider, mock_docker_client):
        await provider.create("gcc", 1000)

        assert mock_docker_client.containers.run.call_args.kwargs["image"] == "ubuntu:22.04"

    @pytest.mark.asyncio
    async def test_create_pulls_missing_image(self, provider, mock_docker_client):
        mock_docker_client.images.get.side_effect = docker.errors.ImageNotFound("missing")

        await provider.create("python", 1000)

        mock_docker_client.images.pull.assert_called_once_with("python:3.11-slim")

    @pytest.mark.asyncio
    async def test_create_failure(self, provider, mock_docker_client):
        mock_docker_client.containers.run.side_effect = docker.errors.APIError("no space")

        with pytest.raises(ProvisioningError):
            await provider.create("python", 1000)

    @pytest.mark.asyncio
    async def test_write_file_uses_archive(self, provider, mock_docker_client):
        environment = await provider.create("python", 1000)
        container = mock_docker_client.containers.run.return_value

        await provider.write_file(environment, "src/util.py", "x = 1\n")

        container.exec_run.assert_called_with(["mkdir", "-p", "/home/user/src"])
        directory, data = container.put_archive.call_args.args
        assert directory == "/home/user/src"

        with tarfile.open(fileobj=io.BytesIO(data)) as tar:
            member = tar.getmember("util.py")
            assert tar.extractfile(member).read() == b"x = 1\n"

    @pytest.mark.asyncio
    async def test_write_file_failure(self, provider, mock_docker_client):
        environment = await provider.create("python", 1000)
        container = mock_docker_client.containers.run.return_value
        container.put_archive.side_effect = docker.errors.APIError("read-only")

        with pytest.raises(StagingError) as exc_info:
            await provider.write_file(environment, "code.py", "print(1)")

        assert exc_info.value.path == "code.py"

    @pytest.mark.asyncio
    async def test_process_streams_into_sink(self, provider, mock_docker_client):
        environment = await provider.create("python", 1000)
        sink = OutputBuffer()

        process = await provider.start_process(environment, ["python3", "code.py"], sink)
        exit_info = await process.wait()

        assert exit_info.exit_code == 0
        assert sink.stdout == "hello world\n"
        assert sink.stderr == "warn\n"
        args = mock_docker_client.api.exec_create.call_args
        assert args.args[1] == ["python3", "code.py"]
        assert args.kwargs["workdir"] == "/home/user"

    @pytest.mark.asyncio
    async def test_raw_command_runs_through_shell(self, provider, mock_docker_client):
        environment = await provider.create("base", 1000)

        process = await provider.start_process(environment, "ls | wc -l", OutputBuffer(), cwd="/tmp")
        await process.wait()

        args = mock_docker_client.api.exec_create.call_args
        assert args.args[1] == ["sh", "-c", "ls | wc -l"]
        assert args.kwargs["workdir"] == "/tmp"

    @pytest.mark.asyncio
    async def test_stdin_is_redirected_from_file(self, provider, mock_docker_client):
        environment = await provider.create("python", 1000)
        container = mock_docker_client.containers.run.return_value

        process = await provider.start_process(environment, ["python3", "code.py"], OutputBuffer())
        await process.send_stdin("Ada\n")
        await process.wait()

        assert container.put_archive.call_args.args[0] == "/tmp"
        command = mock_docker_client.api.exec_create.call_args.args[1]
        assert command[:2] == ["sh", "-c"]
        assert STDIN_PATH in command[2]
        assert command[-2:] == ["python3", "code.py"]

    @pytest.mark.asyncio
    async def test_non_zero_exit(self, provider, mock_docker_client):
        mock_docker_client.api.exec_inspect.return_value = {"ExitCode": 2}
        environment = await provider.create("python", 1000)

        process = await provider.start_process(environment, ["false"], OutputBuffer())
        exit_info = await process.wait()

        assert exit_info.exit_code == 2
        assert exit_info.timed_out is False

    @pytest.mark.asyncio
    async def test_timeout_kills_container(self, provider, mock_docker_client):
        environment = await provider.create("python", 1000)
        container = mock_docker_client.containers.run.return_value
        killed = threading.Event()
        container.kill.side_effect = killed.set

        def blocking_stream(*args, **kwargs):
            killed.wait(timeout=5)
            yield (b"late", None)

        mock_docker_client.api.exec_start.side_effect = blocking_stream
        sink = OutputBuffer()

        process = await provider.start_process(
            environment, ["sleep", "100"], sink, timeout_ms=200
        )
        exit_info = await process.wait()

        assert exit_info.timed_out is True
        assert exit_info.exit_code == -1
        assert "200ms" in exit_info.stderr
        container.kill.assert_called_once()

    @pytest.mark.asyncio
    async def test_exec_failure(self, provider, mock_docker_client):
        mock_docker_client.api.exec_create.side_effect = docker.errors.APIError("container stopped")
        environment = await provider.create("python", 1000)

        process = await provider.start_process(environment, ["python3", "code.py"], OutputBuffer())
        with pytest.raises(ProcessError):
            await process.wait()

    @pytest.mark.asyncio
    async def test_destroy_removes_container(self, provider, mock_docker_client):
        environment = await provider.create("python", 1000)
        container = mock_docker_client.containers.run.return_value

        await provider.destroy(environment)

        container.remove.assert_called_once_with(force=True)

    @pytest.mark.asyncio
    async def test_destroy_missing_container(self, provider, mock_docker_client):
        environment = await provider.create("python", 1000)
        container = mock_docker_client.containers.run.return_value
        container.remove.side_effect = docker.errors.NotFound("gone")

        await provider.destroy(environment)

    @pytest.mark.asyncio
    async def test_health_check(self, provider):
        status = await provider.health_check()

        assert status.healthy is True
        assert status.checks == {"docker": True}

    @pytest.mark.asyncio
    async def test_health_check_unhealthy(self, provider, mock_docker_client):
        mock_docker_client.ping.side_effect = docker.errors.DockerException("daemon down")

        status = await provider.health_check()

        assert status.healthy is False
        assert "daemon down" in status.message
