"""
Documentation generator: one manifest and one OpenAPI document per API version.

The route table is frozen before generation, so every manifest is built
eagerly once and served from memory afterwards.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, TypeAdapter

from api_version import VersionIdentifier, VersionLike, VersionSet, to_version
from errors import MalformedVersionError, UnsupportedVersionError
from route_table import PARAM_PATTERN, RouteEntry, RouteTable
from schemas import DocumentationManifest, ManifestRoute, VersionErrorResponse
from version_resolver import normalize_prefix

logger = logging.getLogger(__name__)

OPENAPI_VERSION = "3.1.0"
REF_TEMPLATE = "#/components/schemas/{model}"


class DocumentationGenerator:
    """
    Builds per-version documentation from a route table.

    The manifest for version ``v`` lists every entry registered for ``v`` and
    every unversioned entry. The OpenAPI rendering keeps only the entry that
    actually serves each (template, method) under ``v``: a version-specific
    entry shadows the unversioned one.
    """

    def __init__(
        self,
        route_table: RouteTable,
        version_set: VersionSet,
        prefix: str = "/api",
        title: str = "ApiVersioning API",
        description: str = "",
    ):
        self.route_table = route_table
        self.version_set = version_set
        self.prefix = normalize_prefix(prefix)
        self.title = title
        self.description = description

        self.route_table.freeze()
        self._manifests: Dict[VersionIdentifier, DocumentationManifest] = {}
        self._openapi: Dict[VersionIdentifier, Dict[str, Any]] = {}

        for version in self.version_set.supported_versions():
            self._manifests[version] = self._build_manifest(version)
            self._openapi[version] = self._build_openapi(version)

        logger.info(f"Documentation generated for groups: {', '.join(self.group_names())}")

    def group_names(self) -> List[str]:
        return [version.group_name for version in self.version_set.supported_versions()]

    def version_for_group(self, group_name: str) -> VersionIdentifier:
        """
        Resolve a group name such as ``v1`` back to a supported version.

        Raises:
            UnsupportedVersionError: unknown or malformed group name
        """
        available = self.version_set.supported_strings()
        try:
            version = VersionIdentifier.parse(group_name)
        except MalformedVersionError:
            raise UnsupportedVersionError(group_name, available)

        if not group_name.lower().startswith("v") or version not in self.version_set:
            raise UnsupportedVersionError(group_name, available)
        return version

    def _require_supported(self, version: VersionLike) -> VersionIdentifier:
        available = self.version_set.supported_strings()
        try:
            resolved = to_version(version)
        except (MalformedVersionError, TypeError, ValueError):
            raise UnsupportedVersionError(str(version), available)
        if resolved not in self.version_set:
            raise UnsupportedVersionError(str(resolved), available)
        return resolved

    def manifest(self, version: VersionLike) -> DocumentationManifest:
        return self._manifests[self._require_supported(version)]

    def manifests(self) -> List[DocumentationManifest]:
        return [self._manifests[v] for v in self.version_set.supported_versions()]

    def openapi(self, version: VersionLike) -> Dict[str, Any]:
        return self._openapi[self._require_supported(version)]

    def versioned_path(self, entry: RouteEntry, version: VersionIdentifier) -> str:
        """Path with the version substituted: ``/api/v1/weatherforecast``"""
        path = f"{self.prefix}/v{version}"
        if entry.path_template:
            path = f"{path}/{entry.path_template}"
        return path

    def _build_manifest(self, version: VersionIdentifier) -> DocumentationManifest:
        routes = [
            ManifestRoute(
                method=entry.method,
                path=self.versioned_path(entry, version),
                path_template=entry.path_template,
                version=str(entry.version) if entry.version is not None else None,
                operation_id=entry.operation_id,
                summary=entry.summary,
                tags=list(entry.tags),
            )
            for entry in self.route_table.entries_for_version(version)
        ]
        return DocumentationManifest(
            group_name=version.group_name,
            version=str(version),
            deprecated=self.version_set.is_deprecated(version),
            routes=routes,
        )

    def effective_entries(self, version: VersionIdentifier) -> List[RouteEntry]:
        """Entries that serve requests under ``version``, one per (template, method)"""
        selected: Dict[Tuple[str, str], RouteEntry] = {}
        for entry in self.route_table.entries_for_version(version):
            key = (entry.path_template, entry.method)
            current = selected.get(key)
            if current is None or (current.version is None and entry.version is not None):
                selected[key] = entry
        return list(selected.values())

    def _build_openapi(self, version: VersionIdentifier) -> Dict[str, Any]:
        deprecated = self.version_set.is_deprecated(version)
        components: Dict[str, Any] = {}
        paths: Dict[str, Dict[str, Any]] = {}

        error_schema = self._schema_for(VersionErrorResponse, components)

        for entry in self.effective_entries(version):
            operation: Dict[str, Any] = {
                "operationId": entry.operation_id,
                "responses": {
                    str(entry.status_code): self._success_response(entry, components),
                    "400": {
                        "description": "Malformed or unsupported API version",
                        "content": {"application/json": {"schema": error_schema}},
                    },
                },
            }
            if entry.summary:
                operation["summary"] = entry.summary
            if entry.description:
                operation["description"] = entry.description
            if entry.tags:
                operation["tags"] = list(entry.tags)
            parameters = self._path_parameters(entry)
            if parameters:
                operation["parameters"] = parameters
            if deprecated:
                operation["deprecated"] = True

            paths.setdefault(self.versioned_path(entry, version), {})[entry.method.lower()] = operation

        info: Dict[str, Any] = {"title": self.title, "version": str(version)}
        if self.description:
            info["description"] = self.description

        document: Dict[str, Any] = {
            "openapi": OPENAPI_VERSION,
            "info": info,
            "paths": paths,
        }
        if components:
            document["components"] = {"schemas": components}
        return document

    def _success_response(self, entry: RouteEntry, components: Dict[str, Any]) -> Dict[str, Any]:
        response: Dict[str, Any] = {"description": "Successful Response"}
        if entry.response_model is not None:
            response["content"] = {
                "application/json": {"schema": self._schema_for(entry.response_model, components)}
            }
        return response

    @staticmethod
    def _path_parameters(entry: RouteEntry) -> List[Dict[str, Any]]:
        parameters = []
        for segment in entry.segments:
            match = PARAM_PATTERN.match(segment)
            if match is not None:
                parameters.append({
                    "name": match.group(1),
                    "in": "path",
                    "required": True,
                    "schema": {"type": "string"},
                })
        return parameters

    @staticmethod
    def _schema_for(model: Any, components: Dict[str, Any]) -> Dict[str, Any]:
        """JSON schema of ``model``; named models are moved into components"""
        schema = TypeAdapter(model).json_schema(ref_template=REF_TEMPLATE, mode="serialization")
        components.update(schema.pop("$defs", {}))

        if isinstance(model, type) and issubclass(model, BaseModel):
            components[model.__name__] = schema
            return {"$ref": REF_TEMPLATE.format(model=model.__name__)}
        return schema

    def describe(self, version: Optional[VersionLike] = None) -> Dict[str, Any]:
        """Short summary used by the service info endpoint"""
        versions = [self._require_supported(version)] if version is not None else self.version_set.supported_versions()
        return {
            v.group_name: {
                "routes": len(self._manifests[v].routes),
                "deprecated": self.version_set.is_deprecated(v),
            }
            for v in versions
        }
