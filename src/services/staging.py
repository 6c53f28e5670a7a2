"""
File staging
"""
import logging
from typing import Sequence

from core.environment import BaseEnvironmentProvider, Environment
from core.languages import LanguageProfile
from services.models import StagedFile

logger = logging.getLogger(__name__)


class FileStager:
    """Writes the primary source file and auxiliary files into an environment"""

    def __init__(self, provider: BaseEnvironmentProvider):
        self.provider = provider

    async def write(self, environment: Environment, path: str, content: str) -> None:
        """Write one file; a failure propagates and aborts the request"""
        logger.debug(f"Writing {path} ({len(content)} chars) to {environment.id}")
        await self.provider.write_file(environment, path, content)

    async def stage(
        self,
        environment: Environment,
        profile: LanguageProfile,
        code: str,
        files: Sequence[StagedFile] = (),
    ) -> str:
        """
        Write ``code.<ext>`` first, then each auxiliary file in caller order.

        Returns:
            The primary source filename
        """
        filename = profile.filename
        await self.write(environment, filename, code)

        for staged in files:
            await self.write(environment, staged.path, staged.content)

        return filename
