"""
Environment Abstraction Layer

Provider-agnostic lifecycle for ephemeral execution environments.
Supports E2B cloud sandboxes and local Docker containers.
"""

from .interface import BaseEnvironmentProvider, Command, ProcessHandle, ProviderKind, render_command
from .models import Environment, EnvironmentState, HealthStatus, OutputBuffer, ProcessExit
from .manager import EnvironmentManager
from .exceptions import (
    ProviderError,
    ProvisioningError,
    StagingError,
    ProcessError,
    TeardownError,
)

__all__ = [
    # Interface
    "BaseEnvironmentProvider",
    "Command",
    "ProcessHandle",
    "ProviderKind",
    "render_command",
    # Models
    "Environment",
    "EnvironmentState",
    "HealthStatus",
    "OutputBuffer",
    "ProcessExit",
    # Manager
    "EnvironmentManager",
    # Exceptions
    "ProviderError",
    "ProvisioningError",
    "StagingError",
    "ProcessError",
    "TeardownError",
]
