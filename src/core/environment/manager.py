"""
Environment Manager

Provisions one environment per request and guarantees it is destroyed
exactly once.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from ..metrics import TEARDOWN_FAILURES
from .exceptions import ProviderError, ProvisioningError
from .interface import BaseEnvironmentProvider
from .models import Environment

logger = logging.getLogger(__name__)


class EnvironmentManager:
    """
    Owns the provision/destroy half of the environment lifecycle.

    Example:
        manager = EnvironmentManager(provider)

        async with manager.session("python", lifetime_ms=60000) as env:
            ...  # env is destroyed on every exit path
    """

    def __init__(self, provider: BaseEnvironmentProvider):
        self.provider = provider

    async def provision(self, runtime_selector: str, lifetime_ms: int) -> Environment:
        """
        Request a new environment from the provider.

        Raises:
            ProvisioningError: On any provider-side failure
        """
        logger.info(
            f"Provisioning {self.provider.kind.value} environment "
            f"(runtime={runtime_selector}, lifetime={lifetime_ms}ms)"
        )
        try:
            environment = await self.provider.create(runtime_selector, lifetime_ms)
        except ProviderError:
            raise
        except Exception as e:
            raise ProvisioningError(
                f"Failed to provision environment: {e}",
                runtime_selector=runtime_selector,
                provider=self.provider.kind,
            ) from e

        environment.mark_ready()
        logger.info(f"Environment {environment.id} ready")
        return environment

    async def destroy(self, environment: Environment) -> None:
        """
        Destroy an environment. Safe to call more than once.

        Destroy failures are logged and counted but not raised, so they never
        replace the outcome of the request that owned the environment.
        """
        if environment.is_closed:
            return

        environment.mark_closing()
        try:
            await self.provider.destroy(environment)
            logger.info(f"Environment {environment.id} destroyed")
        except Exception as e:
            TEARDOWN_FAILURES.labels(provider=self.provider.kind.value).inc()
            logger.warning(f"Failed to destroy environment {environment.id}: {e}", exc_info=True)
        finally:
            environment.mark_closed()

    @asynccontextmanager
    async def session(self, runtime_selector: str, lifetime_ms: int) -> AsyncIterator[Environment]:
        """Provision an environment and destroy it when the block exits"""
        environment = await self.provision(runtime_selector, lifetime_ms)
        try:
            yield environment
        finally:
            await self.destroy(environment)
