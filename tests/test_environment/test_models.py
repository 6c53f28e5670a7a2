"""
Tests for environment models.
"""

from core.environment import (
    Environment,
    EnvironmentState,
    HealthStatus,
    OutputBuffer,
    ProviderKind,
    render_command,
)


class TestEnvironment:
    """Test Environment state transitions."""

    def test_lifecycle(self):
        environment = Environment(
            id="env-1",
            provider=ProviderKind.E2B,
            runtime_selector="base",
            lifetime_budget_ms=1000,
        )
        assert environment.state == EnvironmentState.PROVISIONING
        assert not environment.is_closed

        environment.mark_ready()
        environment.mark_running()
        assert environment.state == EnvironmentState.RUNNING

        environment.mark_closing()
        assert environment.is_closed

        environment.mark_closed()
        assert environment.state == EnvironmentState.CLOSED
        assert environment.is_closed


class TestOutputBuffer:
    """Test OutputBuffer."""

    def test_accumulates_per_stream_in_order(self):
        buffer = OutputBuffer()

        buffer.write_stdout("a")
        buffer.write_stderr("x")
        buffer.write_stdout("b")
        buffer.write_stderr("y")
        buffer.write_stdout("c\n")

        assert buffer.stdout == "abc\n"
        assert buffer.stderr == "xy"

    def test_empty(self):
        buffer = OutputBuffer()
        assert buffer.stdout == ""
        assert buffer.stderr == ""

    def test_buffers_are_independent(self):
        first, second = OutputBuffer(), OutputBuffer()
        first.write_stdout("only first")
        assert second.stdout == ""


class TestRenderCommand:
    """Test command rendering."""

    def test_raw_string_untouched(self):
        assert render_command("ls -la | wc -l") == "ls -la | wc -l"

    def test_argv_is_quoted(self):
        assert render_command(["python3", "code.py"]) == "python3 code.py"
        assert render_command(["npm", "install", "a; rm -rf /"]) == "npm install 'a; rm -rf /'"


class TestHealthStatus:
    """Test HealthStatus."""

    def test_to_dict(self):
        status = HealthStatus(healthy=True, provider=ProviderKind.LOCAL_DOCKER, message="OK")
        data = status.to_dict()

        assert data["healthy"] is True
        assert data["provider"] == "local_docker"
        assert "last_check" in data
