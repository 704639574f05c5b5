"""
Route table for the versioned-route registry.

Maps (path template, HTTP method, API version) to a handler. ``version=None``
registers an unversioned handler that serves every supported version unless
a version-specific entry exists for the same template and method.

The table is populated once during startup and frozen before serving begins.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from api_version import VersionIdentifier, VersionLike, to_version
from errors import ConfigurationError, MalformedVersionError

logger = logging.getLogger(__name__)

HTTP_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"})

PARAM_PATTERN = re.compile(r"^\{([A-Za-z_][A-Za-z0-9_]*)\}$")

Handler = Callable[..., Any]
RouteKey = Tuple[str, str, Optional[VersionIdentifier]]


def normalize_template(path_template: str) -> str:
    """Strip surrounding slashes and collapse repeated ones: ``/a//b/`` -> ``a/b``"""
    segments = [segment for segment in path_template.strip().split("/") if segment]
    for segment in segments:
        if "{" in segment or "}" in segment:
            if PARAM_PATTERN.match(segment) is None:
                raise ConfigurationError(f"Invalid path parameter segment '{segment}' in '{path_template}'")
    return "/".join(segments)


def canonical_template(path_template: str) -> str:
    """Form used for duplicate detection: ``Items/{id}`` -> ``items/{}``"""
    return "/".join(
        "{}" if PARAM_PATTERN.match(segment) else segment.lower()
        for segment in normalize_template(path_template).split("/")
        if segment
    )


def normalize_method(method: str) -> str:
    normalized = (method or "").strip().upper()
    if normalized not in HTTP_METHODS:
        raise ConfigurationError(f"Unsupported HTTP method '{method}'")
    return normalized


@dataclass(frozen=True)
class RouteEntry:
    """Одна привязка (шаблон пути, метод, версия, обработчик)"""
    path_template: str
    method: str
    version: Optional[VersionIdentifier]
    handler: Handler
    name: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: Tuple[str, ...] = ()
    status_code: int = 200
    response_model: Any = None
    segments: Tuple[str, ...] = field(default=(), compare=False, repr=False)

    @property
    def key(self) -> RouteKey:
        return (canonical_template(self.path_template), self.method, self.version)

    @property
    def operation_id(self) -> str:
        """Stable operation id for documentation"""
        if self.name:
            return self.name
        path_part = re.sub(r"[^A-Za-z0-9]+", "_", self.path_template).strip("_") or "root"
        return f"{self.method.lower()}_{path_part}"

    def applies_to(self, version: VersionIdentifier) -> bool:
        return self.version is None or self.version == version

    def match(self, segments: Sequence[str]) -> Optional[Dict[str, str]]:
        """Match request path segments; returns captured path params or None"""
        if len(segments) != len(self.segments):
            return None

        params: Dict[str, str] = {}
        for template_segment, segment in zip(self.segments, segments):
            param = PARAM_PATTERN.match(template_segment)
            if param is not None:
                params[param.group(1)] = segment
            elif template_segment.lower() != segment.lower():
                return None
        return params


class RouteTable:
    """
    Ordered, freezable collection of RouteEntry.

    Registration order is preserved so duplicate-route errors and generated
    documentation are deterministic.
    """

    def __init__(self):
        self._entries: List[RouteEntry] = []
        self._keys: Dict[RouteKey, RouteEntry] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def entries(self) -> Tuple[RouteEntry, ...]:
        return tuple(self._entries)

    def register(
        self,
        path_template: str,
        method: str,
        version: Optional[VersionLike],
        handler: Handler,
        *,
        name: Optional[str] = None,
        summary: Optional[str] = None,
        description: Optional[str] = None,
        tags: Sequence[str] = (),
        status_code: int = 200,
        response_model: Any = None,
    ) -> RouteEntry:
        """
        Register a handler for a path template, method and version.

        Args:
            path_template: Path relative to the route group, e.g. ``weatherforecast``
            method: HTTP method
            version: API version or None for every supported version
            handler: Callable receiving the request

        Returns:
            RouteEntry: the registered entry

        Raises:
            ConfigurationError: on a duplicate (template, method, version),
                an invalid template, method or version, or a frozen table
        """
        if self._frozen:
            raise ConfigurationError(
                f"Route table is frozen; cannot register {method} {path_template}"
            )
        if not callable(handler):
            raise ConfigurationError(f"Handler for {method} {path_template} is not callable")

        template = normalize_template(path_template)
        normalized_method = normalize_method(method)
        try:
            resolved_version = to_version(version) if version is not None else None
        except (MalformedVersionError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid API version for {method} {path_template}: {e}") from e

        entry = RouteEntry(
            path_template=template,
            method=normalized_method,
            version=resolved_version,
            handler=handler,
            name=name,
            summary=summary,
            description=description,
            tags=tuple(tags),
            status_code=status_code,
            response_model=response_model,
            segments=tuple(template.split("/")) if template else (),
        )

        existing = self._keys.get(entry.key)
        if existing is not None:
            version_label = str(resolved_version) if resolved_version is not None else "unversioned"
            raise ConfigurationError(
                f"Duplicate route {normalized_method} /{template} ({version_label}); "
                f"already registered by {getattr(existing.handler, '__name__', existing.handler)!r}"
            )

        self._entries.append(entry)
        self._keys[entry.key] = entry
        logger.debug(
            f"Registered route {normalized_method} /{template} "
            f"version={resolved_version if resolved_version is not None else '*'}"
        )
        return entry

    def route(self, path_template: str, method: str, version: Optional[VersionLike] = None, **metadata):
        """Decorator form of register()"""
        def decorator(handler: Handler) -> Handler:
            self.register(path_template, method, version, handler, **metadata)
            return handler
        return decorator

    def get(self, path_template: str, version: Optional[VersionLike] = None, **metadata):
        return self.route(path_template, "GET", version, **metadata)

    def post(self, path_template: str, version: Optional[VersionLike] = None, **metadata):
        return self.route(path_template, "POST", version, **metadata)

    def put(self, path_template: str, version: Optional[VersionLike] = None, **metadata):
        return self.route(path_template, "PUT", version, **metadata)

    def patch(self, path_template: str, version: Optional[VersionLike] = None, **metadata):
        return self.route(path_template, "PATCH", version, **metadata)

    def delete(self, path_template: str, version: Optional[VersionLike] = None, **metadata):
        return self.route(path_template, "DELETE", version, **metadata)

    def freeze(self) -> None:
        """End the configuration phase; further registration is an error"""
        if not self._frozen:
            self._frozen = True
            logger.info(f"Route table frozen with {len(self._entries)} routes")

    def find(self, path_template: str, method: str, version: Optional[VersionLike]) -> Optional[RouteEntry]:
        key = (
            canonical_template(path_template),
            normalize_method(method),
            to_version(version) if version is not None else None,
        )
        return self._keys.get(key)

    def entries_for_version(self, version: VersionIdentifier) -> List[RouteEntry]:
        """Entries visible under ``version``: exact matches and unversioned ones"""
        return [entry for entry in self._entries if entry.applies_to(version)]

    def candidates(self, method: str, segments: Sequence[str]) -> Iterator[Tuple[RouteEntry, Dict[str, str]]]:
        """Entries with the given method whose template matches the segments"""
        for entry in self._entries:
            if entry.method != method:
                continue
            params = entry.match(segments)
            if params is not None:
                yield entry, params

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RouteEntry]:
        return iter(tuple(self._entries))
