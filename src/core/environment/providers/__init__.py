"""
Environment Providers

Concrete implementations of BaseEnvironmentProvider for different backends.
"""

from .e2b_sandbox import E2BSandboxProvider
from .local_docker import LocalDockerProvider

__all__ = [
    "E2BSandboxProvider",
    "LocalDockerProvider",
]
