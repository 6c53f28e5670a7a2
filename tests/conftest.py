"""
Pytest configuration and fixtures for Coderun Sandbox tests
"""

import os
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from core.config import Settings  # noqa: E402
from core.environment import (  # noqa: E402
    BaseEnvironmentProvider,
    Environment,
    HealthStatus,
    ProcessError,
    ProcessExit,
    ProcessHandle,
    ProviderKind,
    ProvisioningError,
    StagingError,
    TeardownError,
    render_command,
)
from core.languages import build_language_registry  # noqa: E402


@dataclass
class ScriptedProcess:
    """What a fake process emits and how it exits"""

    stdout_chunks: List[str] = field(default_factory=list)
    stderr_chunks: List[str] = field(default_factory=list)
    exit_code: int = 0
    provider_stdout: str = ""
    provider_stderr: str = ""
    timed_out: bool = False


class FakeProcess(ProcessHandle):
    def __init__(self, provider, environment, command, sink, stdin=False):
        self.provider = provider
        self.environment = environment
        self.command = command
        self.sink = sink
        self.stdin = stdin

    async def send_stdin(self, data):
        if not self.stdin:
            raise ProcessError("process has no stdin stream", provider=self.provider.kind)
        self.provider.stdin.append((self.command, data))

    async def wait(self):
        if self.provider.fail_on == "wait":
            raise ProcessError("process lost", provider=self.provider.kind)

        script = self.provider.scripts.get(self.command, ScriptedProcess())
        for chunk in script.stdout_chunks:
            self.sink.write_stdout(chunk)
        for chunk in script.stderr_chunks:
            self.sink.write_stderr(chunk)

        return ProcessExit(
            exit_code=script.exit_code,
            stdout=script.provider_stdout,
            stderr=script.provider_stderr,
            timed_out=script.timed_out,
        )


class FakeProvider(BaseEnvironmentProvider):
    """
    In-memory provider.

    ``scripts`` maps a rendered command string to its ScriptedProcess.
    ``fail_on`` injects a failure at create, write, start, wait or destroy.
    """

    kind = ProviderKind.E2B

    def __init__(self):
        self.scripts: Dict[str, ScriptedProcess] = {}
        self.fail_on: Optional[str] = None
        self.fail_on_path: Optional[str] = None
        self.created: List[Environment] = []
        self.writes: List[tuple] = []
        self.started: List[dict] = []
        self.stdin: List[tuple] = []
        self.stdin_enabled: List[bool] = []
        self.destroyed: List[str] = []

    async def create(self, runtime_selector, lifetime_ms):
        if self.fail_on == "create":
            raise ProvisioningError("quota exceeded", runtime_selector=runtime_selector, provider=self.kind)
        environment = Environment(
            id=f"env-{len(self.created) + 1}",
            provider=self.kind,
            runtime_selector=runtime_selector,
            lifetime_budget_ms=lifetime_ms,
            hostname=f"3000-env-{len(self.created) + 1}.sandbox.test",
        )
        self.created.append(environment)
        return environment

    async def write_file(self, environment, path, content):
        if self.fail_on == "write" and (self.fail_on_path in (None, path)):
            raise StagingError(path, "disk full", provider=self.kind, environment_id=environment.id)
        self.writes.append((path, content))

    async def start_process(self, environment, command, sink, cwd=None, timeout_ms=None, stdin=False):
        if self.fail_on == "start":
            raise ProcessError("cannot start", provider=self.kind, environment_id=environment.id)
        rendered = render_command(command)
        self.started.append({"command": rendered, "cwd": cwd, "timeout_ms": timeout_ms})
        self.stdin_enabled.append(stdin)
        return FakeProcess(self, environment, rendered, sink, stdin)

    async def destroy(self, environment):
        self.destroyed.append(environment.id)
        if self.fail_on == "destroy":
            raise TeardownError("sandbox already gone", provider=self.kind, environment_id=environment.id)

    async def health_check(self):
        return HealthStatus(healthy=True, provider=self.kind, message="OK")


@pytest.fixture
def settings():
    """Settings isolated from the process environment"""
    return Settings(_env_file=None, provider="e2b")


@pytest.fixture
def languages():
    return build_language_registry()


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def script():
    """Factory for ScriptedProcess"""
    return ScriptedProcess


@pytest.fixture
def execution_service(fake_provider, languages, settings):
    from services.execution_service import ExecutionService

    return ExecutionService(fake_provider, languages, settings)


@pytest.fixture
def client(fake_provider, languages, execution_service):
    """FastAPI test client wired to the fake provider"""
    from main import app

    app.state.languages = languages
    app.state.provider = fake_provider
    app.state.execution_service = execution_service

    yield TestClient(app)

    for name in ("languages", "provider", "execution_service"):
        if hasattr(app.state, name):
            delattr(app.state, name)
