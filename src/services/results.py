"""
Result assembly
"""
from typing import List, Optional, Sequence

from core.environment import Environment
from services.models import CommandOutcome, ExecutionResult, StagedFile

PREVIEW_LANGUAGES = ("javascript", "typescript")


class ResultAssembler:
    """Builds the response payload for a finished command"""

    def __init__(self, preview_scheme: str = "https"):
        self.preview_scheme = preview_scheme

    def preview_url(
        self,
        environment: Environment,
        language_id: str,
        files: Sequence[StagedFile],
    ) -> Optional[str]:
        """URL of the environment's web server for JS/TS projects that stage HTML"""
        if language_id not in PREVIEW_LANGUAGES:
            return None
        if not any(f.path.endswith(".html") for f in files):
            return None
        if not environment.hostname:
            return None
        return f"{self.preview_scheme}://{environment.hostname}"

    def build(
        self,
        outcome: CommandOutcome,
        preview_url: Optional[str] = None,
        cwd: Optional[str] = None,
        packages: Optional[List[str]] = None,
    ) -> ExecutionResult:
        # Local buffers win; the provider's copy only fills an empty one
        return ExecutionResult(
            exit_code=outcome.exit_code,
            stdout=outcome.stdout or outcome.provider_stdout or "",
            stderr=outcome.stderr or outcome.provider_stderr or "",
            elapsed_ms=outcome.elapsed_ms,
            preview_url=preview_url,
            cwd=cwd,
            packages=list(packages) if packages is not None else None,
        )
