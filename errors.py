"""
Exception taxonomy for the versioned-route registry.

ConfigurationError is raised only while routes and version sets are being
assembled at startup and must stop the process from serving. The remaining
errors are per-request outcomes that the HTTP layer turns into client-facing
responses.
"""

from typing import Dict, Iterable, List, Optional


class ApiVersioningError(Exception):
    """Base class for all API versioning errors"""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.available_versions: List[str] = []
        # Response headers added by the HTTP layer, e.g. api-supported-versions
        self.headers: Optional[Dict[str, str]] = None


class ConfigurationError(ApiVersioningError):
    """Invalid route or version set configuration detected at startup"""
    pass


class MalformedVersionError(ApiVersioningError):
    """The version token in the request path is not a valid API version"""

    status_code = 400

    def __init__(self, token: str, available_versions: Optional[Iterable[str]] = None):
        super().__init__(f"Malformed API version '{token}'")
        self.token = token
        self.available_versions: List[str] = list(available_versions or [])


class UnsupportedVersionError(ApiVersioningError):
    """The requested API version is not supported by the route group"""

    status_code = 400

    def __init__(self, version: str, available_versions: Iterable[str]):
        super().__init__(f"API version '{version}' is not supported")
        self.version = version
        self.available_versions: List[str] = list(available_versions)


class RouteNotFoundError(ApiVersioningError):
    """No route matches the request path and method for the requested version"""

    status_code = 404

    def __init__(self, method: str, path: str, available_versions: Optional[Iterable[str]] = None):
        super().__init__(f"No route matches {method} {path}")
        self.method = method
        self.path = path
        self.available_versions: List[str] = list(available_versions or [])
