"""
FastAPI binding for the versioned-route registry.

A VersionedRouteGroup collects route registrations for one URL prefix and
version set during startup. ``install()`` freezes the table, mounts a single
dispatch endpoint under ``{prefix}/{version}/...`` and, when enabled, the
per-version documentation endpoints and Swagger UI.
"""

import inspect
import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import TypeAdapter
from starlette.concurrency import run_in_threadpool

from api_version import VersionIdentifier, VersionLike, VersionSet
from docs_generator import DocumentationGenerator
from errors import ApiVersioningError, UnsupportedVersionError
from route_table import HTTP_METHODS, Handler, RouteEntry, RouteTable
from schemas import VersionErrorResponse
from version_resolver import ResolvedRoute, VersionResolver, normalize_prefix

logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS_HEADER = "api-supported-versions"
DEPRECATED_VERSIONS_HEADER = "api-deprecated-versions"


@lru_cache(maxsize=None)
def _type_adapter(model: Any) -> TypeAdapter:
    return TypeAdapter(model)


def _accepts_request(handler: Handler) -> bool:
    try:
        return len(inspect.signature(handler).parameters) > 0
    except (TypeError, ValueError):
        return True


def get_api_version(request: Request) -> Optional[VersionIdentifier]:
    """API version resolved for the current request, if any"""
    return getattr(request.state, "api_version", None)


class VersionedRouteGroup:
    """
    Group of routes sharing a URL prefix and a version set.

    Example::

        group = VersionedRouteGroup("/api", VersionSet.build([1, 2]))

        @group.get("weatherforecast", version=1)
        def forecast_v1(request): ...

        group.install(app)
    """

    def __init__(
        self,
        prefix: str,
        version_set: VersionSet,
        report_api_versions: bool = True,
        title: str = "ApiVersioning API",
        description: str = "",
    ):
        self.prefix = normalize_prefix(prefix)
        self.version_set = version_set
        self.report_api_versions = report_api_versions
        self.title = title
        self.description = description
        self.route_table = RouteTable()
        self.resolver: Optional[VersionResolver] = None
        self.docs: Optional[DocumentationGenerator] = None

    @property
    def installed(self) -> bool:
        return self.resolver is not None

    def map(self, path_template: str, method: str, handler: Handler,
            version: Optional[VersionLike] = None, **metadata) -> RouteEntry:
        return self.route_table.register(path_template, method, version, handler, **metadata)

    def get(self, path_template: str, version: Optional[VersionLike] = None, **metadata):
        return self.route_table.get(path_template, version, **metadata)

    def post(self, path_template: str, version: Optional[VersionLike] = None, **metadata):
        return self.route_table.post(path_template, version, **metadata)

    def put(self, path_template: str, version: Optional[VersionLike] = None, **metadata):
        return self.route_table.put(path_template, version, **metadata)

    def patch(self, path_template: str, version: Optional[VersionLike] = None, **metadata):
        return self.route_table.patch(path_template, version, **metadata)

    def delete(self, path_template: str, version: Optional[VersionLike] = None, **metadata):
        return self.route_table.delete(path_template, version, **metadata)

    def install(self, app: FastAPI, docs_enabled: bool = True, docs_url: str = "/docs") -> None:
        """
        Finish configuration and mount the group on ``app``.

        Must be called after every route is registered and after the
        application's own routes, because the dispatch endpoint captures the
        whole prefix.
        """
        self.resolver = VersionResolver(self.route_table, self.version_set, self.prefix)
        self.docs = DocumentationGenerator(
            self.route_table,
            self.version_set,
            prefix=self.prefix,
            title=self.title,
            description=self.description,
        )

        app.add_api_route(
            f"{self.prefix}/{{api_path:path}}",
            self.dispatch,
            methods=sorted(HTTP_METHODS),
            include_in_schema=False,
        )

        if docs_enabled:
            self._install_docs(app, docs_url.rstrip("/") or "/docs")

        logger.info(
            f"Versioned route group {self.prefix or '/'} installed: "
            f"{len(self.route_table)} routes, versions {', '.join(self.version_set.supported_strings())}"
        )

    def version_headers(self) -> Dict[str, str]:
        if not self.report_api_versions:
            return {}
        headers = {SUPPORTED_VERSIONS_HEADER: ", ".join(self.version_set.supported_strings())}
        deprecated = self.version_set.deprecated_strings()
        if deprecated:
            headers[DEPRECATED_VERSIONS_HEADER] = ", ".join(deprecated)
        return headers

    async def dispatch(self, request: Request) -> Response:
        """Resolve the request and invoke the matching handler"""
        if self.resolver is None:
            raise RuntimeError("Versioned route group is not installed")

        try:
            resolved = self.resolver.resolve(request.scope["path"], request.method)
        except ApiVersioningError as exc:
            exc.headers = self.version_headers() or None
            raise
        logger.debug(
            f"Dispatching {request.method} {request.scope['path']} to "
            f"{resolved.entry.operation_id} (version {resolved.version})"
        )

        result = await self._invoke(resolved, request)
        response = self._render(resolved.entry, result)
        for name, value in self.version_headers().items():
            response.headers[name] = value
        return response

    async def _invoke(self, resolved: ResolvedRoute, request: Request) -> Any:
        scope = dict(request.scope)
        scope["path_params"] = dict(resolved.path_params)
        versioned_request = Request(scope, request.receive)
        versioned_request.state.api_version = resolved.version

        handler = resolved.entry.handler
        args = (versioned_request,) if _accepts_request(handler) else ()

        if inspect.iscoroutinefunction(handler):
            return await handler(*args)
        return await run_in_threadpool(handler, *args)

    @staticmethod
    def _render(entry: RouteEntry, result: Any) -> Response:
        if isinstance(result, Response):
            return result

        if entry.response_model is not None:
            adapter = _type_adapter(entry.response_model)
            content = adapter.dump_python(adapter.validate_python(result), mode="json", by_alias=True)
        else:
            content = jsonable_encoder(result)
        return JSONResponse(content=content, status_code=entry.status_code)

    def _install_docs(self, app: FastAPI, docs_url: str) -> None:
        docs = self.docs
        default_group = self.version_set.default.group_name

        def _version_or_404(group_name: str) -> VersionIdentifier:
            try:
                return docs.version_for_group(group_name)
            except UnsupportedVersionError:
                raise HTTPException(status_code=404, detail=f"Unknown documentation group '{group_name}'")

        def _swagger_urls() -> List[Dict[str, str]]:
            return [
                {"url": f"{docs_url}/{name}/openapi.json", "name": name}
                for name in docs.group_names()
            ]

        async def swagger_ui() -> HTMLResponse:
            return get_swagger_ui_html(
                openapi_url=f"{docs_url}/{default_group}/openapi.json",
                title=f"{self.title} - Swagger UI",
                swagger_ui_parameters={
                    "urls": _swagger_urls(),
                    "urls.primaryName": default_group,
                },
            )

        async def group_swagger_ui(group_name: str) -> HTMLResponse:
            version = _version_or_404(group_name)
            return get_swagger_ui_html(
                openapi_url=f"{docs_url}/{version.group_name}/openapi.json",
                title=f"{self.title} {version.group_name} - Swagger UI",
            )

        async def manifest(group_name: str) -> JSONResponse:
            version = _version_or_404(group_name)
            return JSONResponse(docs.manifest(version).model_dump(mode="json", by_alias=True))

        async def openapi(group_name: str) -> JSONResponse:
            version = _version_or_404(group_name)
            return JSONResponse(docs.openapi(version))

        app.add_api_route(docs_url, swagger_ui, methods=["GET"], include_in_schema=False)
        app.add_api_route(f"{docs_url}/{{group_name}}", group_swagger_ui, methods=["GET"], include_in_schema=False)
        app.add_api_route(f"{docs_url}/{{group_name}}/manifest.json", manifest, methods=["GET"], include_in_schema=False)
        app.add_api_route(f"{docs_url}/{{group_name}}/openapi.json", openapi, methods=["GET"], include_in_schema=False)


async def api_versioning_exception_handler(request: Request, exc: ApiVersioningError) -> JSONResponse:
    """Render per-request versioning errors as ``{error, availableVersions}``"""
    logger.warning(f"API versioning error: {exc.status_code} - {exc.message}")

    error_response = VersionErrorResponse(
        error=exc.message,
        available_versions=exc.available_versions,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(mode="json", by_alias=True),
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI, error_types: Sequence[type] = (ApiVersioningError,)) -> None:
    for error_type in error_types:
        app.add_exception_handler(error_type, api_versioning_exception_handler)
