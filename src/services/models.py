"""
Execution request and result models
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.exceptions import InvalidRequestError


@dataclass(frozen=True)
class StagedFile:
    """Auxiliary file; path is relative to the environment's working directory"""

    path: str
    content: str


@dataclass
class RunCodeRequest:
    """Run a body of source code"""

    code: str
    language: str = "javascript"
    input: str = ""
    files: List[StagedFile] = field(default_factory=list)

    def __post_init__(self):
        if not self.code:
            raise InvalidRequestError("Code is required")


@dataclass
class RunCommandRequest:
    """Run a raw shell command"""

    command: str
    cwd: str = "/home/user"
    timeout_ms: int = 30000

    def __post_init__(self):
        if not self.command:
            raise InvalidRequestError("Command is required")
        if self.timeout_ms <= 0:
            raise InvalidRequestError("timeout must be positive")


@dataclass
class InstallPackagesRequest:
    """Install packages with a package manager"""

    package_manager: str = "npm"
    packages: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.packages:
            raise InvalidRequestError("Packages array is required")


@dataclass
class CommandOutcome:
    """What CommandRunner observed for one process"""

    exit_code: int
    stdout: str
    stderr: str
    elapsed_ms: float
    provider_stdout: str = ""
    provider_stderr: str = ""
    timed_out: bool = False


@dataclass
class ExecutionResult:
    """Final result of one request"""

    exit_code: int
    stdout: str
    stderr: str
    elapsed_ms: float
    preview_url: Optional[str] = None

    # Action echoes
    cwd: Optional[str] = None
    packages: Optional[List[str]] = None

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "success": self.success,
            "exit_code": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "elapsed_ms": self.elapsed_ms,
            "preview_url": self.preview_url,
            "cwd": self.cwd,
            "packages": self.packages,
        }
