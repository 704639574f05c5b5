"""
ApiVersioning - Main FastAPI Application

Weather forecast API demonstrating URL segment API versioning with one
Swagger / OpenAPI document per API version.

Интегрирует компоненты системы:
- FastAPI приложение с lifespan управлением
- Группа версионированных маршрутов (/api/v{version}/...)
- Документация по версиям (/docs/{group}/manifest.json, /docs/{group}/openapi.json)
- Логирование запросов и единый формат ошибок
"""

from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.responses import JSONResponse
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware
from contextlib import asynccontextmanager
from typing import Optional
import logging
import uvicorn

from schemas import ErrorResponse, HealthCheckResponse
from middleware import RequestLoggingMiddleware, setup_logging
from versioned_routing import VersionedRouteGroup, register_exception_handlers
from weather_forecast_endpoints import map_weather_forecast_endpoints
from config import config, ConfigManager

SERVICE_NAME = "ApiVersioning API"
SERVICE_VERSION = "1.0.0"

setup_logging(config.server.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Управление жизненным циклом приложения.
    """
    # Startup
    logger.info(f"Starting {SERVICE_NAME}...")
    config.log_configuration()

    yield

    # Shutdown
    logger.info(f"Shutting down {SERVICE_NAME}...")


async def http_exception_handler(request, exc):
    """Обработчик HTTP исключений с форматированием ошибок"""
    logger.warning(f"HTTP exception: {exc.status_code} - {exc.detail}")

    error_response = ErrorResponse(
        code=f"HTTP_{exc.status_code}",
        message=str(exc.detail)
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(mode='json'),
        headers=getattr(exc, "headers", None)
    )


async def general_exception_handler(request, exc):
    """Обработчик общих исключений"""
    logger.error(f"Unhandled exception: {type(exc).__name__}: {exc}")

    error_response = ErrorResponse(
        code="INTERNAL_ERROR",
        message="Internal server error"
    )
    return JSONResponse(
        status_code=500,
        content=error_response.model_dump(mode='json')
    )


def create_app(settings: Optional[ConfigManager] = None) -> FastAPI:
    """
    Build the application: middleware, service endpoints and the versioned
    route group.

    Raises:
        ConfigurationError: if the version set or route registrations are invalid
    """
    settings = settings or config

    application = FastAPI(
        title=SERVICE_NAME,
        description=settings.docs.description,
        version=SERVICE_VERSION,
        # Документация генерируется по версиям группой маршрутов
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan
    )

    application.add_middleware(
        RequestLoggingMiddleware,
        enable_request_logging=settings.server.request_logging_enabled
    )
    if settings.server.https_redirect_enabled:
        application.add_middleware(HTTPSRedirectMiddleware)

    application.add_exception_handler(StarletteHTTPException, http_exception_handler)
    application.add_exception_handler(Exception, general_exception_handler)
    register_exception_handlers(application)

    group = VersionedRouteGroup(
        settings.versioning.prefix,
        settings.versioning.build_version_set(),
        report_api_versions=settings.versioning.report_api_versions,
        title=settings.docs.title,
        description=settings.docs.description,
    )
    map_weather_forecast_endpoints(group)
    application.state.api_group = group

    @application.get("/", include_in_schema=False)
    async def root():
        """Корневой эндпоинт с информацией об API"""
        endpoints = {
            "weatherforecast": f"{group.prefix}/v{{version}}/weatherforecast",
            "health": "/health",
            "version": "/version",
        }
        if settings.docs.enabled:
            endpoints["docs"] = settings.docs.url
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "description": settings.docs.description,
            "endpoints": endpoints
        }

    @application.get("/health", response_model=HealthCheckResponse)
    async def health_check():
        """Проверка состояния сервиса"""
        routing_status = "healthy" if group.installed and len(group.route_table) > 0 else "unhealthy"
        return HealthCheckResponse(
            status=routing_status,
            services={
                "routing": {
                    "status": routing_status,
                    "details": {
                        "routes": len(group.route_table),
                        "frozen": group.route_table.frozen,
                    }
                }
            }
        )

    @application.get("/version", include_in_schema=False)
    async def get_version():
        """Информация о версиях API"""
        version_set = group.version_set
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "api_versions": {
                "supported": list(version_set.supported_strings()),
                "deprecated": list(version_set.deprecated_strings()),
                "default": str(version_set.default),
            },
            "groups": group.docs.describe() if group.docs is not None else {},
        }

    # Группа захватывает весь префикс, поэтому монтируется последней
    group.install(application, docs_enabled=settings.docs.enabled, docs_url=settings.docs.url)

    return application


app = create_app()


if __name__ == "__main__":
    uvicorn_config = config.get_uvicorn_kwargs()

    logger.info(f"Starting {SERVICE_NAME} server...")
    logger.info(f"Server configuration: {uvicorn_config}")

    uvicorn.run(
        "main:app",
        **uvicorn_config
    )
