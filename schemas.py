"""
Pydantic модели для валидации данных ApiVersioning

Defines request/response payloads of the weather forecast endpoints, the
fixed error payloads and the per-version documentation manifest.
"""

from pydantic import BaseModel, Field, ConfigDict, computed_field, field_serializer
from pydantic.alias_generators import to_camel
from typing import Optional, Dict, Any, List
from datetime import date as Date, datetime, timezone


def get_utc_now() -> datetime:
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)


class WeatherForecast(BaseModel):
    """Прогноз погоды на один день"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "date": "2026-10-20",
                "temperatureC": 21,
                "temperatureF": 69,
                "summary": "Mild"
            }
        }
    )

    date: Date = Field(..., description="Дата прогноза")
    temperature_c: int = Field(
        ...,
        ge=-273,
        description="Температура в градусах Цельсия"
    )
    summary: Optional[str] = Field(
        None,
        description="Краткое описание погоды"
    )

    @computed_field(alias="temperatureF")
    @property
    def temperature_f(self) -> int:
        """Температура в градусах Фаренгейта"""
        return 32 + int(self.temperature_c / 0.5556)


class ForecastAcceptedResponse(BaseModel):
    """Ответ на создание прогноза"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {"message": "Weather forecast successfully."}
        }
    )

    message: str = Field(..., description="Сообщение о результате")


class VersionErrorResponse(BaseModel):
    """Fixed payload of API version and routing errors"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "error": "API version '3' is not supported",
                "availableVersions": ["1", "2"]
            }
        }
    )

    error: str = Field(..., description="Описание ошибки")
    available_versions: List[str] = Field(
        default_factory=list,
        description="Поддерживаемые версии API"
    )


class ErrorResponse(BaseModel):
    """Стандартная модель для ошибок API"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "code": "HTTP_404",
                "message": "Not Found",
                "details": None,
                "timestamp": "2026-10-19T12:00:00Z"
            }
        }
    )

    code: str = Field(..., description="Код ошибки")
    message: str = Field(..., description="Сообщение об ошибке")
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Дополнительные детали ошибки"
    )
    timestamp: datetime = Field(
        default_factory=get_utc_now,
        description="Время возникновения ошибки"
    )

    @field_serializer('timestamp')
    def serialize_timestamp(self, dt: datetime) -> str:
        return dt.isoformat()


class HealthCheckResponse(BaseModel):
    """Ответ health check эндпоинта"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "timestamp": "2026-10-19T12:00:00Z",
                "services": {
                    "routing": {"status": "healthy", "details": {"routes": 3}}
                }
            }
        }
    )

    status: str = Field(
        ...,
        description="Общий статус сервиса (healthy/degraded/unhealthy)"
    )
    timestamp: datetime = Field(
        default_factory=get_utc_now,
        description="Время проверки"
    )
    services: Dict[str, Any] = Field(
        ...,
        description="Статус компонентов системы"
    )

    @field_serializer('timestamp')
    def serialize_timestamp(self, dt: datetime) -> str:
        return dt.isoformat()


class ManifestRoute(BaseModel):
    """A route visible in one version's documentation manifest"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    method: str
    path: str = Field(..., description="Path with the API version substituted")
    path_template: str = Field(..., description="Path template relative to the route group")
    version: Optional[str] = Field(None, description="Explicit version or null for every version")
    operation_id: str
    summary: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class DocumentationManifest(BaseModel):
    """Per-version documentation manifest"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "groupName": "v1",
                "version": "1",
                "deprecated": False,
                "routes": [
                    {
                        "method": "GET",
                        "path": "/api/v1/weatherforecast",
                        "pathTemplate": "weatherforecast",
                        "version": "1",
                        "operationId": "GetWeatherForecast",
                        "summary": None,
                        "tags": ["WeatherForecast"]
                    }
                ]
            }
        }
    )

    group_name: str
    version: str
    deprecated: bool = False
    routes: List[ManifestRoute] = Field(default_factory=list)
