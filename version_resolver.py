"""
Version resolver: maps an incoming request path and method to a route entry.

The API version travels in a dedicated URL segment directly after the group
prefix, e.g. ``/api/v1/weatherforecast``. Resolution is synchronous, in-memory
and side-effect free; the route table and version set are read-only.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from api_version import VersionIdentifier, VersionSet
from errors import MalformedVersionError, RouteNotFoundError, UnsupportedVersionError
from route_table import RouteEntry, RouteTable

logger = logging.getLogger(__name__)


def split_path(path: str) -> List[str]:
    return [segment for segment in (path or "").split("/") if segment]


def normalize_prefix(prefix: str) -> str:
    """``api/`` -> ``/api``; an empty prefix becomes ``""``"""
    segments = split_path(prefix)
    return "/" + "/".join(segments) if segments else ""


@dataclass(frozen=True)
class ResolvedRoute:
    """Результат разрешения маршрута"""
    entry: RouteEntry
    version: VersionIdentifier
    path_params: Dict[str, str] = field(default_factory=dict)


class VersionResolver:
    """
    Resolves requests against a frozen route table and version set.

    Resolution steps:
    1. Locate the version token right after the prefix
    2. Parse it (MalformedVersionError on failure)
    3. Reject versions outside the supported set (UnsupportedVersionError)
    4. Match the remaining path, preferring a version-specific entry and
       falling back to an unversioned one (RouteNotFoundError if neither);
       HEAD falls back to the GET entry
    """

    def __init__(self, route_table: RouteTable, version_set: VersionSet, prefix: str = "/api"):
        self.route_table = route_table
        self.version_set = version_set
        self.prefix = normalize_prefix(prefix)
        self._prefix_segments = tuple(split_path(self.prefix))

        # Serving phase starts here
        self.route_table.freeze()

    @property
    def version_segment_index(self) -> int:
        """Zero-based position of the version segment in the request path"""
        return len(self._prefix_segments)

    def extract_version_token(self, path: str) -> Tuple[Optional[str], List[str]]:
        """
        Split a request path into the version token and the remaining segments.

        Returns ``(None, [])`` when the path is outside the prefix or has no
        segment at the version position.
        """
        segments = split_path(path)
        prefix_length = len(self._prefix_segments)

        if len(segments) <= prefix_length:
            return None, []

        head = tuple(segment.lower() for segment in segments[:prefix_length])
        if head != tuple(segment.lower() for segment in self._prefix_segments):
            return None, []

        return segments[prefix_length], segments[prefix_length + 1:]

    def parse_version(self, token: str) -> VersionIdentifier:
        try:
            return VersionIdentifier.parse(token)
        except MalformedVersionError:
            raise MalformedVersionError(token, self.version_set.supported_strings())

    def resolve(self, path: str, method: str) -> ResolvedRoute:
        """
        Resolve a request to a route entry.

        Raises:
            MalformedVersionError: version segment does not parse
            UnsupportedVersionError: version is not in the supported set
            RouteNotFoundError: no entry matches for the version
        """
        method = (method or "").upper()
        available = self.version_set.supported_strings()

        token, remaining = self.extract_version_token(path)
        if token is None:
            raise RouteNotFoundError(method, path, available)

        version = self.parse_version(token)

        if not self.version_set.is_supported(version):
            logger.info(f"Unsupported API version requested: {version}")
            raise UnsupportedVersionError(str(version), available)

        match = self._match(method, remaining, version)
        if match is None and method == "HEAD":
            match = self._match("GET", remaining, version)
        if match is None:
            raise RouteNotFoundError(method, path, available)

        entry, params = match
        return ResolvedRoute(entry=entry, version=version, path_params=params)

    def _match(self, method: str, segments: List[str],
               version: VersionIdentifier) -> Optional[Tuple[RouteEntry, Dict[str, str]]]:
        """First version-specific match, else the first unversioned one"""
        fallback: Optional[Tuple[RouteEntry, Dict[str, str]]] = None
        for entry, params in self.route_table.candidates(method, segments):
            if entry.version == version:
                return entry, params
            if entry.version is None and fallback is None:
                fallback = (entry, params)
        return fallback
