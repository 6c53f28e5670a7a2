"""
Request validation errors

Raised before any environment is provisioned and reported to callers as 400.
"""

from typing import Any, Dict, List, Optional


class InvalidRequestError(ValueError):
    """Raised when a request is missing a field or names an unknown identifier"""

    def __init__(self, message: str, supported: Optional[List[str]] = None):
        self.message = message
        self.supported = supported
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to response body"""
        body: Dict[str, Any] = {"error": self.message}
        if self.supported is not None:
            body["supported"] = list(self.supported)
        return body


class UnsupportedLanguageError(InvalidRequestError):
    """Raised when a language identifier is not in the registry"""

    def __init__(self, language: str, supported: List[str]):
        self.language = language
        super().__init__(f"Unsupported language: {language}", supported=supported)


class UnsupportedPackageManagerError(InvalidRequestError):
    """Raised when a package manager is not one of the known installers"""

    def __init__(self, package_manager: str, supported: List[str]):
        self.package_manager = package_manager
        super().__init__(
            f"Unsupported package manager: {package_manager}",
            supported=supported,
        )
