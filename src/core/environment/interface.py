"""
Environment Provider Interface

Abstract boundary to the remote service that supplies isolated execution
environments. New providers should inherit from BaseEnvironmentProvider and
implement all abstract methods.
"""

import shlex
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Optional, Sequence, Union

if TYPE_CHECKING:
    from .models import Environment, HealthStatus, OutputBuffer, ProcessExit


# Raw shell string (command action) or argument vector (everything else)
Command = Union[str, Sequence[str]]


def render_command(command: Command) -> str:
    """Render a command as a single shell string"""
    if isinstance(command, str):
        return command
    return shlex.join(command)


class ProviderKind(str, Enum):
    """Supported environment providers"""

    E2B = "e2b"
    LOCAL_DOCKER = "local_docker"


class ProcessHandle(ABC):
    """A process started inside an environment"""

    @abstractmethod
    async def send_stdin(self, data: str) -> None:
        """Forward data to the process's input channel"""
        pass

    @abstractmethod
    async def wait(self) -> "ProcessExit":
        """
        Wait for the process to terminate.

        A process killed for exceeding its time budget is reported as a
        synthesized exit with ``timed_out`` set, not as an exception.
        """
        pass


class BaseEnvironmentProvider(ABC):
    """
    Abstract base class for environment providers.

    All providers must implement these methods:
    - create(): Provision a new isolated environment
    - write_file(): Write a file relative to the working directory
    - start_process(): Start a process streaming output into a sink
    - destroy(): Release the environment
    - health_check(): Check provider availability

    Example:
        class MyProvider(BaseEnvironmentProvider):
            kind = ProviderKind.E2B

            async def create(self, runtime_selector, lifetime_ms):
                ...
    """

    kind: ProviderKind

    @abstractmethod
    async def create(self, runtime_selector: str, lifetime_ms: int) -> "Environment":
        """
        Provision a new environment.

        Args:
            runtime_selector: Runtime image selector from the language profile
            lifetime_ms: Lifetime budget enforced by the provider

        Raises:
            ProvisioningError: On any provider-side failure
        """
        pass

    @abstractmethod
    async def write_file(self, environment: "Environment", path: str, content: str) -> None:
        """
        Write a file into the environment.

        Raises:
            StagingError: If the write fails
        """
        pass

    @abstractmethod
    async def start_process(
        self,
        environment: "Environment",
        command: Command,
        sink: "OutputBuffer",
        cwd: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        stdin: bool = False,
    ) -> ProcessHandle:
        """
        Start a process inside the environment.

        Output chunks are delivered to ``sink`` as they arrive, in order
        within each stream.

        When ``stdin`` is set the process gets an input channel that accepts
        one ``send_stdin`` write, after which it is closed.

        Raises:
            ProcessError: If the process cannot be started
        """
        pass

    @abstractmethod
    async def destroy(self, environment: "Environment") -> None:
        """
        Destroy the environment.

        Raises:
            TeardownError: If the provider rejects the destroy call
        """
        pass

    @abstractmethod
    async def health_check(self) -> "HealthStatus":
        """Check provider health and availability"""
        pass

    async def cleanup(self) -> None:
        """
        Release client resources held by this provider.

        Called during service shutdown.
        """
        pass
