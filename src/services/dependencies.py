"""
Dependency bootstrapping
"""
import logging
from typing import Optional, Sequence, Tuple

from core.environment import Environment
from core.metrics import DEPENDENCY_INSTALL_FAILURES
from core.packages import manifest_install_command
from services.models import CommandOutcome, StagedFile
from services.runner import CommandRunner

logger = logging.getLogger(__name__)


class DependencyBootstrapper:
    """
    Runs a manifest-driven install before the main action.

    The install's exit code does not gate the main action: a failed install
    is logged and counted, and the run proceeds.
    """

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def detect(self, language_id: str, files: Sequence[StagedFile]) -> Optional[Tuple[str, ...]]:
        """Install command for the staged files, or None"""
        return manifest_install_command(language_id, [f.path for f in files])

    async def maybe_install(
        self,
        environment: Environment,
        language_id: str,
        files: Sequence[StagedFile],
    ) -> Optional[CommandOutcome]:
        command = self.detect(language_id, files)
        if command is None:
            return None

        logger.info(f"Installing dependencies in {environment.id}: {' '.join(command)}")
        outcome = await self.runner.run(environment, command, label="install")

        if outcome.exit_code != 0:
            DEPENDENCY_INSTALL_FAILURES.labels(language=language_id).inc()
            logger.warning(
                f"Dependency install exited with {outcome.exit_code} in {environment.id}; "
                f"continuing with main command"
            )

        return outcome
