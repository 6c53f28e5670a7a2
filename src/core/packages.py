"""
Package installation commands

Argument vectors for the install action and for manifest-driven dependency
bootstrapping. Package names are passed as discrete arguments, never spliced
into a shell string.
"""

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .exceptions import UnsupportedPackageManagerError


# Ordered: the order is reported back to callers
PACKAGE_MANAGERS: Dict[str, Callable[[Sequence[str]], Tuple[str, ...]]] = {
    "npm": lambda packages: ("npm", "install", *packages),
    "pip": lambda packages: ("pip", "install", *packages),
    "apt": lambda packages: (
        "sh", "-c", 'apt-get update && apt-get install -y "$@"', "sh", *packages,
    ),
    "cargo": lambda packages: ("cargo", "install", *packages),
}

# manifest path -> (languages it applies to, install command)
MANIFEST_INSTALLS: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    "package.json": (("javascript", "typescript"), ("npm", "install")),
    "requirements.txt": (("python",), ("pip", "install", "-r", "requirements.txt")),
}


def supported_package_managers() -> List[str]:
    """Known package managers, in declaration order"""
    return list(PACKAGE_MANAGERS)


def build_install_command(package_manager: str, packages: Sequence[str]) -> Tuple[str, ...]:
    """
    Build the install command for a package manager.

    Raises:
        UnsupportedPackageManagerError: If the manager is not known
    """
    builder = PACKAGE_MANAGERS.get(package_manager)
    if builder is None:
        raise UnsupportedPackageManagerError(package_manager, supported_package_managers())
    return builder(packages)


def manifest_install_command(
    language_id: str,
    paths: Sequence[str],
) -> Optional[Tuple[str, ...]]:
    """Install command triggered by a staged manifest, if any"""
    for manifest, (languages, command) in MANIFEST_INSTALLS.items():
        if language_id in languages and manifest in paths:
            return command
    return None
