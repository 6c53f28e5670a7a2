"""
Command runner
"""
import logging
import time
from typing import Optional

from core.environment import BaseEnvironmentProvider, Command, Environment, OutputBuffer
from services.models import CommandOutcome

logger = logging.getLogger(__name__)


class CommandRunner:
    """Runs one process inside an environment and collects its output"""

    def __init__(self, provider: BaseEnvironmentProvider):
        self.provider = provider

    async def run(
        self,
        environment: Environment,
        command: Command,
        cwd: Optional[str] = None,
        stdin_data: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        label: str = "run",
    ) -> CommandOutcome:
        """
        Start ``command``, forward ``stdin_data`` once, and wait for exit.

        Output accumulates in a buffer owned by this call. The provider's
        own copies of stdout/stderr are kept on the outcome as a fallback.
        """
        buffer = OutputBuffer(label=f"{environment.id}:{label}")
        environment.mark_running()

        started = time.monotonic()
        process = await self.provider.start_process(
            environment,
            command,
            sink=buffer,
            cwd=cwd,
            timeout_ms=timeout_ms,
            stdin=bool(stdin_data),
        )

        if stdin_data:
            await process.send_stdin(stdin_data)

        exit_info = await process.wait()
        elapsed_ms = (time.monotonic() - started) * 1000

        logger.info(
            f"[{label}] {environment.id} exited with {exit_info.exit_code} "
            f"in {elapsed_ms:.0f}ms" + (" (timed out)" if exit_info.timed_out else "")
        )

        return CommandOutcome(
            exit_code=exit_info.exit_code,
            stdout=buffer.stdout,
            stderr=buffer.stderr,
            elapsed_ms=elapsed_ms,
            provider_stdout=exit_info.stdout or "",
            provider_stderr=exit_info.stderr or "",
            timed_out=exit_info.timed_out,
        )
