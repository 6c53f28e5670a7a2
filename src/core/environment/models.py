"""
Environment Data Models

Environment handle, output sink, and process exit models.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .interface import ProviderKind

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    """Get current UTC time (timezone-aware)"""
    return datetime.now(timezone.utc)


class EnvironmentState(str, Enum):
    """Lifecycle state of an environment"""

    PROVISIONING = "provisioning"
    READY = "ready"
    RUNNING = "running"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Environment:
    """
    Handle for one ephemeral environment.

    Bound to exactly one request for its whole life. ``native`` holds the
    provider's own object (sandbox, container).
    """

    id: str
    provider: ProviderKind
    runtime_selector: str
    lifetime_budget_ms: int
    hostname: Optional[str] = None
    state: EnvironmentState = EnvironmentState.PROVISIONING
    native: Any = None
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def is_closed(self) -> bool:
        return self.state in (EnvironmentState.CLOSING, EnvironmentState.CLOSED)

    def mark_ready(self) -> None:
        self.state = EnvironmentState.READY

    def mark_running(self) -> None:
        self.state = EnvironmentState.RUNNING

    def mark_closing(self) -> None:
        self.state = EnvironmentState.CLOSING

    def mark_closed(self) -> None:
        self.state = EnvironmentState.CLOSED


class OutputBuffer:
    """
    Append-only accumulator for one process's stdout and stderr.

    Created per CommandRunner invocation and handed to the provider as the
    output sink; the provider's stream callbacks are its only writers.
    """

    def __init__(self, label: str = "process"):
        self.label = label
        self._stdout: List[str] = []
        self._stderr: List[str] = []

    def write_stdout(self, data: str) -> None:
        self._stdout.append(data)
        logger.debug(f"[{self.label}] stdout: {data!r}")

    def write_stderr(self, data: str) -> None:
        self._stderr.append(data)
        logger.debug(f"[{self.label}] stderr: {data!r}")

    @property
    def stdout(self) -> str:
        return "".join(self._stdout)

    @property
    def stderr(self) -> str:
        return "".join(self._stderr)


@dataclass
class ProcessExit:
    """Provider's report of a terminated process"""

    exit_code: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False


@dataclass
class HealthStatus:
    """Provider health status"""

    healthy: bool
    provider: ProviderKind
    message: str = ""
    last_check: datetime = field(default_factory=_utcnow)
    checks: Dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "healthy": self.healthy,
            "provider": self.provider.value,
            "message": self.message,
            "last_check": self.last_check.isoformat(),
            "checks": self.checks,
        }
