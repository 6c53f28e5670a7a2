"""
Code execution service
"""
import time
import logging
from contextlib import contextmanager
from typing import Iterator

from core.config import Settings
from core.environment import BaseEnvironmentProvider, EnvironmentManager
from core.languages import LanguageRegistry
from core.metrics import EXECUTIONS, EXECUTION_DURATION
from core.packages import build_install_command
from services.dependencies import DependencyBootstrapper
from services.models import (
    ExecutionResult,
    InstallPackagesRequest,
    RunCodeRequest,
    RunCommandRequest,
)
from services.results import ResultAssembler
from services.runner import CommandRunner
from services.staging import FileStager

logger = logging.getLogger(__name__)

BASE_RUNTIME = "base"


class ExecutionService:
    """
    Runs each request in its own environment.

    Validation happens before provisioning; everything after provisioning
    runs inside ``EnvironmentManager.session`` so the environment is
    destroyed on every exit path.
    """

    def __init__(
        self,
        provider: BaseEnvironmentProvider,
        languages: LanguageRegistry,
        settings: Settings,
    ):
        self.provider = provider
        self.languages = languages
        self.settings = settings

        self.environments = EnvironmentManager(provider)
        self.stager = FileStager(provider)
        self.runner = CommandRunner(provider)
        self.bootstrapper = DependencyBootstrapper(self.runner)
        self.assembler = ResultAssembler(preview_scheme=settings.preview_scheme)

    @contextmanager
    def _track(self, action: str) -> Iterator[None]:
        """Record outcome and duration metrics for one request"""
        start_time = time.time()
        try:
            yield
        except Exception:
            EXECUTIONS.labels(action=action, outcome="error").inc()
            raise
        else:
            EXECUTIONS.labels(action=action, outcome="completed").inc()
        finally:
            EXECUTION_DURATION.labels(action=action).observe(time.time() - start_time)

    async def run_code(self, request: RunCodeRequest) -> ExecutionResult:
        """Stage and run source code, installing manifest dependencies first"""
        profile = self.languages.resolve(request.language)

        with self._track("run"):
            async with self.environments.session(
                profile.runtime_selector, self.settings.run_lifetime_ms
            ) as environment:
                filename = await self.stager.stage(
                    environment, profile, request.code, request.files
                )
                await self.bootstrapper.maybe_install(environment, profile.id, request.files)

                outcome = await self.runner.run(
                    environment,
                    profile.command_for(filename),
                    stdin_data=request.input or None,
                )

                preview_url = self.assembler.preview_url(environment, profile.id, request.files)
                return self.assembler.build(outcome, preview_url=preview_url)

    async def run_command(self, request: RunCommandRequest) -> ExecutionResult:
        """Run a raw shell command"""
        with self._track("command"):
            async with self.environments.session(BASE_RUNTIME, request.timeout_ms) as environment:
                outcome = await self.runner.run(
                    environment,
                    request.command,
                    cwd=request.cwd,
                    timeout_ms=request.timeout_ms,
                    label="command",
                )
                return self.assembler.build(outcome, cwd=request.cwd)

    async def install_packages(self, request: InstallPackagesRequest) -> ExecutionResult:
        """Install packages with the requested package manager"""
        command = build_install_command(request.package_manager, request.packages)

        with self._track("install"):
            async with self.environments.session(
                BASE_RUNTIME, self.settings.install_lifetime_ms
            ) as environment:
                outcome = await self.runner.run(environment, command, label="install")
                return self.assembler.build(outcome, packages=request.packages)
