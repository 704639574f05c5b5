"""
API version identifiers and version sets.

VersionIdentifier is a (major, minor) value ordered lexicographically.
VersionSet is the immutable collection of versions a route group supports,
which of them are deprecated, and which is the default.
"""

import re
import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Tuple, Union

from errors import ConfigurationError, MalformedVersionError

logger = logging.getLogger(__name__)

# "1", "1.0", "v2", "V2.1"
VERSION_PATTERN = re.compile(r"^[vV]?(\d+)(?:\.(\d+))?$")


@dataclass(frozen=True, order=True)
class VersionIdentifier:
    """Версия API (major[, minor])"""
    major: int
    minor: int = 0

    def __post_init__(self):
        if isinstance(self.major, bool) or not isinstance(self.major, int):
            raise TypeError(f"major must be an integer, got {type(self.major).__name__}")
        if isinstance(self.minor, bool) or not isinstance(self.minor, int):
            raise TypeError(f"minor must be an integer, got {type(self.minor).__name__}")
        if self.major < 0 or self.minor < 0:
            raise ValueError("API version components must be non-negative")

    @classmethod
    def parse(cls, token: str) -> "VersionIdentifier":
        """
        Parse a version token such as ``"1"``, ``"2.1"`` or ``"v2"``.

        Raises:
            MalformedVersionError: if the token is not a valid version
        """
        if not isinstance(token, str):
            raise MalformedVersionError(str(token))

        match = VERSION_PATTERN.match(token.strip())
        if match is None:
            raise MalformedVersionError(token)

        major, minor = match.groups()
        return cls(int(major), int(minor) if minor is not None else 0)

    @property
    def group_name(self) -> str:
        """Documentation group name: ``v1`` or ``v1.1``"""
        return f"v{self}"

    def __str__(self) -> str:
        if self.minor == 0:
            return str(self.major)
        return f"{self.major}.{self.minor}"


VersionLike = Union[VersionIdentifier, int, str]


def to_version(value: VersionLike) -> VersionIdentifier:
    """Coerce an int, string or VersionIdentifier to a VersionIdentifier"""
    if isinstance(value, VersionIdentifier):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a valid API version")
    if isinstance(value, int):
        return VersionIdentifier(value)
    if isinstance(value, str):
        return VersionIdentifier.parse(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to an API version")


def compare(a: VersionIdentifier, b: VersionIdentifier) -> int:
    """Three-way comparison: -1, 0 or 1"""
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


@dataclass(frozen=True)
class VersionSet:
    """Supported, deprecated and default API versions of a route group"""
    supported: FrozenSet[VersionIdentifier]
    deprecated: FrozenSet[VersionIdentifier]
    default: VersionIdentifier

    @classmethod
    def build(
        cls,
        supported_versions: Iterable[VersionLike],
        deprecated_versions: Iterable[VersionLike] = (),
        default_version: Optional[VersionLike] = None,
    ) -> "VersionSet":
        """
        Build a version set at startup.

        When ``default_version`` is omitted the lowest supported version
        becomes the default.

        Raises:
            ConfigurationError: if no versions are supported, a value is not a
                valid version, or the default is not among the supported ones
        """
        try:
            supported = frozenset(to_version(v) for v in supported_versions)
            deprecated = frozenset(to_version(v) for v in deprecated_versions)
            default = to_version(default_version) if default_version is not None else None
        except (MalformedVersionError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid API version in version set: {e}") from e

        if not supported:
            raise ConfigurationError("Version set must support at least one API version")

        if default is None:
            default = min(supported)

        if default not in supported:
            raise ConfigurationError(
                f"Default API version {default} is not among supported versions "
                f"{', '.join(str(v) for v in sorted(supported))}"
            )

        logger.debug(
            "Version set built: supported=%s deprecated=%s default=%s",
            [str(v) for v in sorted(supported)],
            [str(v) for v in sorted(deprecated)],
            default,
        )
        return cls(supported=supported, deprecated=deprecated, default=default)

    def is_supported(self, version: VersionIdentifier) -> bool:
        return version in self.supported

    def is_deprecated(self, version: VersionIdentifier) -> bool:
        return version in self.deprecated

    def supported_versions(self) -> Tuple[VersionIdentifier, ...]:
        return tuple(sorted(self.supported))

    def deprecated_versions(self) -> Tuple[VersionIdentifier, ...]:
        return tuple(sorted(self.deprecated))

    def supported_strings(self) -> Tuple[str, ...]:
        """Supported versions as client-visible strings, ascending"""
        return tuple(str(v) for v in self.supported_versions())

    def deprecated_strings(self) -> Tuple[str, ...]:
        return tuple(str(v) for v in self.deprecated_versions())

    def __contains__(self, version: object) -> bool:
        return version in self.supported

    def __iter__(self):
        return iter(self.supported_versions())

    def __len__(self) -> int:
        return len(self.supported)
