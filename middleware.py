"""
Logging middleware для ApiVersioning

Request logging with sensitive header filtering, credential-masking log
formatter and safe JSON error responses for exceptions that escape the
application.
"""

import logging
import re
from typing import Dict, Optional
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from datetime import datetime, timezone

from schemas import ErrorResponse

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

SENSITIVE_HEADERS = [
    'authorization', 'cookie', 'set-cookie', 'x-api-key', 'x-auth-token',
    'x-forwarded-for', 'x-real-ip'
]


class SafeLogFormatter(logging.Formatter):
    """
    Форматтер логов, который маскирует учетные данные в сообщениях.
    """

    SENSITIVE_PATTERNS = [
        r'(authorization["\s]*[:=]["\s]*)(?:bearer\s+|basic\s+)?[^"\s,}]+',
        r'((?:api[_-]?key|token|password|secret)["\s]*[:=]["\s]*)[^"\s,&}]+',
    ]

    def format(self, record):
        message = super().format(record)
        return self.sanitize(message)

    def sanitize(self, message: str) -> str:
        sanitized = message
        for pattern in self.SENSITIVE_PATTERNS:
            sanitized = re.sub(pattern, r'\1[FILTERED]', sanitized, flags=re.IGNORECASE)
        return sanitized


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware для логирования запросов.

    Функции:
    1. Логирование метода, пути и заголовков (без чувствительных данных)
    2. Замер времени обработки
    3. Безопасное логирование ошибок и ответ 500 без деталей
    """

    def __init__(self, app: ASGIApp, enable_request_logging: bool = True):
        super().__init__(app)
        self.enable_request_logging = enable_request_logging
        self.request_logger = logging.getLogger("request_logging")

    async def dispatch(self, request: Request, call_next):
        """Основная логика middleware"""
        start_time = datetime.now(timezone.utc)

        if self.enable_request_logging:
            self._log_request(request)

        try:
            response = await call_next(request)
        except Exception as e:
            self._log_error(request, e)
            return self._create_safe_error_response()

        if self.enable_request_logging:
            processing_time = (datetime.now(timezone.utc) - start_time).total_seconds()
            self.request_logger.info(
                f"Request processed in {processing_time:.3f}s - "
                f"Method: {request.method}, Path: {request.url.path}, "
                f"Status: {response.status_code}"
            )

        return response

    def _log_request(self, request: Request):
        safe_headers = filter_sensitive_headers(dict(request.headers))
        self.request_logger.info(
            f"Incoming request - Method: {request.method}, "
            f"Path: {request.url.path}, "
            f"User-Agent: {safe_headers.get('user-agent', 'Unknown')}"
        )

    def _log_error(self, request: Request, error: Exception):
        self.request_logger.error(
            f"Request failed - Method: {request.method}, "
            f"Path: {request.url.path}, "
            f"Error: {type(error).__name__}: {error}",
            exc_info=error,
        )

    def _create_safe_error_response(self) -> JSONResponse:
        error_response = ErrorResponse(
            code="INTERNAL_ERROR",
            message="Internal server error"
        )
        return JSONResponse(
            content=error_response.model_dump(mode='json'),
            status_code=500
        )


def filter_sensitive_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Фильтрация чувствительных заголовков"""
    safe_headers = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            safe_headers[key] = "[SENSITIVE_HEADER_FILTERED]"
        else:
            safe_headers[key] = value
    return safe_headers


def setup_logging(level: Optional[str] = None):
    """
    Настройка логирования для всего приложения.

    Должна быть вызвана при инициализации приложения.
    """
    root_logger = logging.getLogger()
    formatter = SafeLogFormatter(LOG_FORMAT)

    for handler in root_logger.handlers:
        handler.setFormatter(formatter)

    log_level = getattr(logging, (level or "info").upper(), logging.INFO)

    module_loggers = [
        'main', 'config', 'middleware', 'versioned_routing', 'version_resolver',
        'route_table', 'docs_generator', 'api_version', 'weather_forecast_endpoints',
        'request_logging',
    ]

    for module_name in module_loggers:
        module_logger = logging.getLogger(module_name)
        module_logger.setLevel(log_level)

        # Если у модуля нет обработчиков, добавляем стандартный
        if not module_logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(formatter)
            module_logger.addHandler(handler)
            module_logger.propagate = False
