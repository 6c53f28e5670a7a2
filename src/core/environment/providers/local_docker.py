"""
Local Docker Provider

One throwaway container per environment, driven through docker-py.
"""

import asyncio
import io
import logging
import math
import posixpath
import tarfile
import threading
import time
import uuid
from typing import Dict, List, Optional

import docker
import docker.errors

from ..interface import BaseEnvironmentProvider, Command, ProcessHandle, ProviderKind
from ..models import Environment, HealthStatus, OutputBuffer, ProcessExit
from ..exceptions import ProcessError, ProvisioningError, StagingError, TeardownError

logger = logging.getLogger(__name__)

STDIN_PATH = "/tmp/.coderun_stdin"


def _build_tar(name: str, content: bytes) -> bytes:
    """Pack a single file into an in-memory tar archive"""
    stream = io.BytesIO()
    with tarfile.open(fileobj=stream, mode="w") as tar:
        info = tarfile.TarInfo(name=name)
        info.size = len(content)
        info.mtime = int(time.time())
        info.mode = 0o644
        tar.addfile(info, io.BytesIO(content))
    return stream.getvalue()


class DockerProcessHandle(ProcessHandle):
    """
    Exec inside a container.

    The exec is created when ``wait`` is called so stdin supplied right after
    start can be redirected from a file; docker exec has no
    write-after-start channel through the plain API.
    """

    def __init__(
        self,
        provider: "LocalDockerProvider",
        environment: Environment,
        argv: List[str],
        sink: OutputBuffer,
        cwd: Optional[str],
        timeout_ms: int,
    ):
        self.provider = provider
        self.environment = environment
        self.argv = argv
        self.sink = sink
        self.cwd = cwd
        self.timeout_ms = timeout_ms
        self._has_stdin = False
        self._stopped = threading.Event()

    async def send_stdin(self, data: str) -> None:
        await self.provider._put_file(self.environment, STDIN_PATH, data.encode("utf-8"))
        self._has_stdin = True

    def _exec_command(self) -> List[str]:
        if self._has_stdin:
            return ["sh", "-c", f'"$@" < {STDIN_PATH}', "sh", *self.argv]
        return self.argv

    def _pump(self, exec_id: str) -> int:
        """Stream exec output into the sink; runs on a worker thread"""
        api = self.provider.docker_client.api
        for stdout, stderr in api.exec_start(exec_id, stream=True, demux=True):
            if self._stopped.is_set():
                break
            if stdout:
                self.sink.write_stdout(stdout.decode("utf-8", errors="replace"))
            if stderr:
                self.sink.write_stderr(stderr.decode("utf-8", errors="replace"))
        return api.exec_inspect(exec_id)["ExitCode"]

    async def wait(self) -> ProcessExit:
        api = self.provider.docker_client.api
        container = self.environment.native

        try:
            exec_info = await asyncio.to_thread(
                api.exec_create,
                container.id,
                self._exec_command(),
                stdout=True,
                stderr=True,
                workdir=self.cwd or self.provider.workdir,
            )
        except docker.errors.DockerException as e:
            raise ProcessError(
                f"Failed to start process: {e}",
                provider=ProviderKind.LOCAL_DOCKER,
                environment_id=self.environment.id,
            ) from e

        try:
            exit_code = await asyncio.wait_for(
                asyncio.to_thread(self._pump, exec_info["Id"]),
                timeout=self.timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            self._stopped.set()
            logger.warning(
                f"Process in {self.environment.id} exceeded {self.timeout_ms}ms, killing container"
            )
            await self.provider._kill(self.environment)
            return ProcessExit(
                exit_code=-1,
                stderr=f"Execution timed out after {self.timeout_ms}ms",
                timed_out=True,
            )
        except docker.errors.DockerException as e:
            raise ProcessError(
                f"Failed waiting for process: {e}",
                provider=ProviderKind.LOCAL_DOCKER,
                environment_id=self.environment.id,
            ) from e

        # Output already went to the sink
        return ProcessExit(exit_code=exit_code if exit_code is not None else -1)


class LocalDockerProvider(BaseEnvironmentProvider):
    """
    Local Docker provider.

    Each environment is a fresh container whose main process sleeps for the
    lifetime budget, so the container stops on its own once the budget is
    spent. Intended for development hosts without E2B access.
    """

    kind = ProviderKind.LOCAL_DOCKER

    def __init__(
        self,
        images: Dict[str, str],
        workdir: str = "/home/user",
        memory_limit: str = "512m",
        cpu_limit: float = 0.5,
    ):
        """
        Initialize provider.

        Args:
            images: Runtime selector -> Docker image
            workdir: Working directory inside containers
            memory_limit: Memory limit per container
            cpu_limit: CPU limit per container

        Raises:
            docker.errors.DockerException: If Docker is not available
        """
        try:
            self.docker_client = docker.from_env()
            # Verify connection
            self.docker_client.ping()
        except docker.errors.DockerException as e:
            logger.error(f"Failed to connect to Docker: {e}")
            raise

        self.images = dict(images)
        self.workdir = workdir
        self.memory_limit = memory_limit
        self.cpu_limit = cpu_limit

    def _image_for(self, runtime_selector: str) -> str:
        image = self.images.get(runtime_selector) or self.images.get("base")
        if not image:
            raise ProvisioningError(
                f"No Docker image configured for runtime {runtime_selector}",
                runtime_selector=runtime_selector,
                provider=self.kind,
            )
        return image

    def _run_container(self, image: str, lifetime_ms: int):
        try:
            self.docker_client.images.get(image)
        except docker.errors.ImageNotFound:
            logger.info(f"Pulling Docker image: {image}")
            self.docker_client.images.pull(image)

        return self.docker_client.containers.run(
            image=image,
            command=["sleep", str(max(1, math.ceil(lifetime_ms / 1000)))],
            name=f"coderun-{uuid.uuid4().hex[:12]}",
            working_dir=self.workdir,
            mem_limit=self.memory_limit,
            nano_cpus=int(self.cpu_limit * 1_000_000_000),
            detach=True,
        )

    async def create(self, runtime_selector: str, lifetime_ms: int) -> Environment:
        image = self._image_for(runtime_selector)
        try:
            container = await asyncio.to_thread(self._run_container, image, lifetime_ms)
        except docker.errors.DockerException as e:
            raise ProvisioningError(
                f"Failed to start container from {image}: {e}",
                runtime_selector=runtime_selector,
                provider=self.kind,
            ) from e

        return Environment(
            id=container.id,
            provider=self.kind,
            runtime_selector=runtime_selector,
            lifetime_budget_ms=lifetime_ms,
            hostname=container.name,
            native=container,
        )

    async def _put_file(self, environment: Environment, path: str, content: bytes) -> None:
        """Copy a file into the container (relative paths resolve under workdir)"""
        full_path = posixpath.join(self.workdir, path)
        directory, name = posixpath.split(full_path)
        container = environment.native

        def _copy() -> None:
            exit_code, output = container.exec_run(["mkdir", "-p", directory])
            if exit_code != 0:
                raise docker.errors.APIError(output.decode("utf-8", errors="replace"))
            if not container.put_archive(directory, _build_tar(name, content)):
                raise docker.errors.APIError(f"put_archive rejected {full_path}")

        try:
            await asyncio.to_thread(_copy)
        except docker.errors.DockerException as e:
            raise StagingError(path, str(e), provider=self.kind, environment_id=environment.id) from e

    async def write_file(self, environment: Environment, path: str, content: str) -> None:
        await self._put_file(environment, path, content.encode("utf-8"))

    async def start_process(
        self,
        environment: Environment,
        command: Command,
        sink: OutputBuffer,
        cwd: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        stdin: bool = False,
    ) -> ProcessHandle:
        # stdin needs no setup here; send_stdin redirects from a file
        if isinstance(command, str):
            argv = ["sh", "-c", command]
        else:
            argv = list(command)

        logger.debug(f"Starting in {environment.id}: {argv}")
        return DockerProcessHandle(
            self,
            environment,
            argv,
            sink,
            cwd,
            timeout_ms or environment.lifetime_budget_ms,
        )

    async def _kill(self, environment: Environment) -> None:
        """Stop everything running in the container"""
        try:
            await asyncio.to_thread(environment.native.kill)
        except docker.errors.DockerException as e:
            logger.warning(f"Failed to kill container {environment.id}: {e}")

    async def destroy(self, environment: Environment) -> None:
        container = environment.native
        if container is None:
            return
        try:
            await asyncio.to_thread(container.remove, force=True)
        except docker.errors.NotFound:
            pass
        except docker.errors.DockerException as e:
            raise TeardownError(
                f"Failed to remove container: {e}",
                provider=self.kind,
                environment_id=environment.id,
            ) from e

    async def health_check(self) -> HealthStatus:
        try:
            self.docker_client.ping()
            return HealthStatus(
                healthy=True,
                provider=self.kind,
                message="OK",
                checks={"docker": True},
            )
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return HealthStatus(
                healthy=False,
                provider=self.kind,
                message=str(e),
                checks={"docker": False},
            )

    async def cleanup(self) -> None:
        self.docker_client.close()
