"""
Language Registry

Static table of supported languages and how to run a source file for each.
Built once at startup and handed to the services that need it.
"""

import shlex
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Tuple

from .exceptions import UnsupportedLanguageError


@dataclass(frozen=True)
class LanguageProfile:
    """How to realize a language's run command inside an environment"""

    id: str
    invocation: Tuple[str, ...]
    file_extension: str
    runtime_selector: str

    @property
    def filename(self) -> str:
        """Primary source file name"""
        return f"code.{self.file_extension}"

    @property
    def invocation_template(self) -> str:
        """Invocation rendered as a shell string"""
        return shlex.join(self.invocation)

    def command_for(self, filename: str) -> Tuple[str, ...]:
        """Argument vector that runs the given source file"""
        return self.invocation + (filename,)

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary for JSON serialization"""
        return {
            "language": self.id,
            "invocation": self.invocation_template,
            "file_extension": self.file_extension,
            "filename": self.filename,
            "runtime": self.runtime_selector,
        }


# Compiled languages get the filename as $1 of a fixed shell snippet
DEFAULT_PROFILES: Tuple[LanguageProfile, ...] = (
    LanguageProfile("javascript", ("node",), "js", "node"),
    LanguageProfile("typescript", ("npx", "tsx"), "ts", "node"),
    LanguageProfile("python", ("python3",), "py", "python"),
    LanguageProfile("c", ("sh", "-c", 'gcc -o output "$1" && ./output', "sh"), "c", "gcc"),
    LanguageProfile("cpp", ("sh", "-c", 'g++ -o output "$1" && ./output', "sh"), "cpp", "gcc"),
    LanguageProfile("go", ("go", "run"), "go", "go"),
    LanguageProfile("rust", ("sh", "-c", 'rustc "$1" -o output && ./output', "sh"), "rs", "rust"),
    LanguageProfile("java", ("java",), "java", "java"),
    LanguageProfile("php", ("php",), "php", "php"),
    LanguageProfile("ruby", ("ruby",), "rb", "ruby"),
    LanguageProfile("shell", ("bash",), "sh", "base"),
)


class LanguageRegistry:
    """
    Immutable lookup from language identifier to LanguageProfile.

    Example:
        registry = build_language_registry()
        profile = registry.resolve("Python")
        profile.command_for(profile.filename)  # ("python3", "code.py")
    """

    def __init__(self, profiles: Tuple[LanguageProfile, ...]):
        table = {profile.id: profile for profile in profiles}
        if len(table) != len(profiles):
            raise ValueError("duplicate language identifiers")
        self._profiles: Mapping[str, LanguageProfile] = MappingProxyType(table)
        self._identifiers: Tuple[str, ...] = tuple(sorted(table))

    def resolve(self, identifier: str) -> LanguageProfile:
        """
        Resolve a language identifier (case-insensitive).

        Raises:
            UnsupportedLanguageError: carrying every known identifier
        """
        profile = self._profiles.get(identifier.lower())
        if profile is None:
            raise UnsupportedLanguageError(identifier, self.identifiers())
        return profile

    def identifiers(self) -> List[str]:
        """Sorted list of known identifiers"""
        return list(self._identifiers)

    def __contains__(self, identifier: object) -> bool:
        return isinstance(identifier, str) and identifier.lower() in self._profiles

    def __iter__(self) -> Iterator[LanguageProfile]:
        return (self._profiles[key] for key in self._identifiers)

    def __len__(self) -> int:
        return len(self._profiles)


def build_language_registry() -> LanguageRegistry:
    """Build the default registry"""
    return LanguageRegistry(DEFAULT_PROFILES)
