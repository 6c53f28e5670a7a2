"""
E2B Sandbox Provider

Ephemeral cloud sandboxes from E2B (https://e2b.dev).

Setup:
    export E2B_API_KEY=your_key
"""

import logging
import math
import os
from typing import Dict, Optional

from e2b import AsyncSandbox, CommandExitException, TimeoutException

from ..interface import BaseEnvironmentProvider, Command, ProcessHandle, ProviderKind, render_command
from ..models import Environment, HealthStatus, OutputBuffer, ProcessExit
from ..exceptions import ProcessError, ProvisioningError, StagingError, TeardownError

logger = logging.getLogger(__name__)

API_KEY_ENV = "E2B_API_KEY"


class E2BProcessHandle(ProcessHandle):
    """Background command running in an E2B sandbox"""

    def __init__(self, environment: Environment, handle, timeout_ms: int):
        self.environment = environment
        self.handle = handle
        self.timeout_ms = timeout_ms

    async def send_stdin(self, data: str) -> None:
        sandbox: AsyncSandbox = self.environment.native
        try:
            await sandbox.commands.send_stdin(self.handle.pid, data)
            # Single write; EOF lets programs that read to the end finish
            await sandbox.commands.close_stdin(self.handle.pid)
        except Exception as e:
            raise ProcessError(
                f"Failed to send stdin: {e}",
                provider=ProviderKind.E2B,
                environment_id=self.environment.id,
            ) from e

    async def wait(self) -> ProcessExit:
        try:
            result = await self.handle.wait()
        except CommandExitException as e:
            # Non-zero exit is a normal outcome, not a provider failure
            return ProcessExit(exit_code=e.exit_code, stdout=e.stdout, stderr=e.stderr)
        except TimeoutException:
            logger.warning(
                f"Process in {self.environment.id} exceeded {self.timeout_ms}ms, treating as killed"
            )
            return ProcessExit(
                exit_code=-1,
                stderr=f"Execution timed out after {self.timeout_ms}ms",
                timed_out=True,
            )
        except Exception as e:
            raise ProcessError(
                f"Failed waiting for process: {e}",
                provider=ProviderKind.E2B,
                environment_id=self.environment.id,
            ) from e

        return ProcessExit(exit_code=result.exit_code, stdout=result.stdout, stderr=result.stderr)


class E2BSandboxProvider(BaseEnvironmentProvider):
    """
    E2B cloud sandbox provider.

    The sandbox's own timeout enforces the lifetime budget; E2B kills the
    sandbox when it expires. The API key is read from the process
    environment on every create call.
    """

    kind = ProviderKind.E2B

    def __init__(
        self,
        template: str = "base",
        templates: Optional[Dict[str, str]] = None,
        preview_port: int = 3000,
        request_timeout: float = 30.0,
    ):
        """
        Initialize provider.

        Args:
            template: Default sandbox template
            templates: Runtime selector -> template overrides
            preview_port: Port exposed through the preview hostname
            request_timeout: Timeout for individual API requests (seconds)
        """
        self.template = template
        self.templates = dict(templates or {})
        self.preview_port = preview_port
        self.request_timeout = request_timeout

    def _template_for(self, runtime_selector: str) -> str:
        return self.templates.get(runtime_selector, self.template)

    async def create(self, runtime_selector: str, lifetime_ms: int) -> Environment:
        template = self._template_for(runtime_selector)
        try:
            sandbox = await AsyncSandbox.create(
                template=template,
                timeout=max(1, math.ceil(lifetime_ms / 1000)),
                api_key=os.environ.get(API_KEY_ENV),
                request_timeout=self.request_timeout,
            )
        except Exception as e:
            raise ProvisioningError(
                f"Failed to create E2B sandbox ({template}): {e}",
                runtime_selector=runtime_selector,
                provider=self.kind,
            ) from e

        return Environment(
            id=sandbox.sandbox_id,
            provider=self.kind,
            runtime_selector=runtime_selector,
            lifetime_budget_ms=lifetime_ms,
            hostname=sandbox.get_host(self.preview_port),
            native=sandbox,
        )

    async def write_file(self, environment: Environment, path: str, content: str) -> None:
        sandbox: AsyncSandbox = environment.native
        try:
            await sandbox.files.write(path, content)
        except Exception as e:
            raise StagingError(path, str(e), provider=self.kind, environment_id=environment.id) from e

    async def start_process(
        self,
        environment: Environment,
        command: Command,
        sink: OutputBuffer,
        cwd: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        stdin: bool = False,
    ) -> ProcessHandle:
        sandbox: AsyncSandbox = environment.native
        timeout_ms = timeout_ms or environment.lifetime_budget_ms
        cmd = render_command(command)

        logger.debug(f"Starting in {environment.id}: {cmd}")
        try:
            handle = await sandbox.commands.run(
                cmd,
                background=True,
                cwd=cwd,
                stdin=stdin,
                on_stdout=sink.write_stdout,
                on_stderr=sink.write_stderr,
                timeout=max(1, math.ceil(timeout_ms / 1000)),
            )
        except Exception as e:
            raise ProcessError(
                f"Failed to start process: {e}",
                provider=self.kind,
                environment_id=environment.id,
            ) from e

        return E2BProcessHandle(environment, handle, timeout_ms)

    async def destroy(self, environment: Environment) -> None:
        sandbox: Optional[AsyncSandbox] = environment.native
        if sandbox is None:
            return
        try:
            await sandbox.kill()
        except Exception as e:
            raise TeardownError(
                f"Failed to kill sandbox: {e}",
                provider=self.kind,
                environment_id=environment.id,
            ) from e

    async def health_check(self) -> HealthStatus:
        has_key = bool(os.environ.get(API_KEY_ENV))
        return HealthStatus(
            healthy=has_key,
            provider=self.kind,
            message="OK" if has_key else f"{API_KEY_ENV} environment variable not set",
            checks={"api_key": has_key},
        )
