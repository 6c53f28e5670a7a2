"""
Provider Setup

Create the environment provider selected by settings.
"""

import logging

from .config import Settings, get_settings
from .environment import BaseEnvironmentProvider, ProviderKind
from .environment.providers import E2BSandboxProvider, LocalDockerProvider

logger = logging.getLogger(__name__)


def create_provider(settings: Settings = None) -> BaseEnvironmentProvider:
    """
    Build the configured environment provider.

    Args:
        settings: Settings instance (uses default if None)

    Raises:
        ValueError: If the configured provider is unknown
        docker.errors.DockerException: If local_docker is selected and Docker is unreachable
    """
    settings = settings or get_settings()

    try:
        kind = ProviderKind(settings.provider)
    except ValueError:
        raise ValueError(
            f"Unknown provider '{settings.provider}'. "
            f"Expected one of: {', '.join(p.value for p in ProviderKind)}"
        )

    if kind == ProviderKind.LOCAL_DOCKER:
        logger.info("Setting up Local Docker provider")
        return LocalDockerProvider(
            images=settings.docker_images,
            workdir=settings.default_cwd,
            memory_limit=settings.docker_memory_limit,
            cpu_limit=settings.docker_cpu_limit,
        )

    logger.info(f"Setting up E2B provider (template={settings.e2b_template})")
    return E2BSandboxProvider(
        template=settings.e2b_template,
        templates=settings.e2b_templates,
        preview_port=settings.preview_port,
        request_timeout=settings.e2b_request_timeout,
    )
