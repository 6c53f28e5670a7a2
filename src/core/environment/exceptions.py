"""
Provider Exceptions

Failures raised while talking to the environment provider.
"""

from typing import Optional

from .interface import ProviderKind


class ProviderError(Exception):
    """Base exception for provider errors"""

    def __init__(
        self,
        message: str,
        provider: Optional[ProviderKind] = None,
        environment_id: Optional[str] = None,
    ):
        self.message = message
        self.provider = provider
        self.environment_id = environment_id
        super().__init__(message)


class ProvisioningError(ProviderError):
    """Raised when an environment cannot be created"""

    def __init__(
        self,
        message: str,
        runtime_selector: Optional[str] = None,
        provider: Optional[ProviderKind] = None,
    ):
        self.runtime_selector = runtime_selector
        super().__init__(message, provider=provider)


class StagingError(ProviderError):
    """Raised when a file cannot be written into an environment"""

    def __init__(
        self,
        path: str,
        reason: str,
        provider: Optional[ProviderKind] = None,
        environment_id: Optional[str] = None,
    ):
        self.path = path
        super().__init__(
            f"Failed to write {path}: {reason}",
            provider=provider,
            environment_id=environment_id,
        )


class ProcessError(ProviderError):
    """Raised when a process cannot be started or awaited"""


class TeardownError(ProviderError):
    """Raised when an environment cannot be destroyed"""
