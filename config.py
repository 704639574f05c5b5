"""
Configuration module for ApiVersioning

Manages environment-based configuration for API versioning, documentation
and server settings. Supports both development and production environments
with appropriate defaults.
"""

import os
from dataclasses import dataclass, field
from typing import List, Dict, Any
import logging

from api_version import VersionSet
from errors import ConfigurationError

logger = logging.getLogger(__name__)


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _is_development_environment(environment: str) -> bool:
    return environment.lower() in ["development", "dev", "local"]


@dataclass
class ApiVersioningConfig:
    """URL segment API versioning settings"""
    prefix: str = field(default_factory=lambda: os.getenv("API_PREFIX", "/api"))
    supported_versions: List[str] = field(default_factory=lambda: _split_csv(os.getenv("API_SUPPORTED_VERSIONS", "1,2")))
    deprecated_versions: List[str] = field(default_factory=lambda: _split_csv(os.getenv("API_DEPRECATED_VERSIONS", "")))
    default_version: str = field(default_factory=lambda: os.getenv("API_DEFAULT_VERSION", "1"))

    # Заголовки api-supported-versions / api-deprecated-versions
    report_api_versions: bool = field(default_factory=lambda: os.getenv("API_REPORT_VERSIONS", "true").lower() == "true")

    def __post_init__(self):
        """Validate and normalize configuration after initialization"""
        self.prefix = "/" + self.prefix.strip().strip("/") if self.prefix.strip().strip("/") else ""

        if not self.supported_versions:
            logger.warning("API_SUPPORTED_VERSIONS is empty, falling back to version 1")
            self.supported_versions = ["1"]

        if not self.default_version.strip():
            self.default_version = self.supported_versions[0]

    def build_version_set(self) -> VersionSet:
        """
        Build the version set shared by every versioned route.

        Raises:
            ConfigurationError: if the configured versions are inconsistent
        """
        return VersionSet.build(
            self.supported_versions,
            self.deprecated_versions,
            self.default_version,
        )


@dataclass
class DocsConfig:
    """Swagger / OpenAPI documentation settings"""
    # Документация включена по умолчанию только в development окружении
    enabled: bool = field(default_factory=lambda: os.getenv(
        "DOCS_ENABLED",
        "true" if _is_development_environment(os.getenv("ENVIRONMENT", "development")) else "false",
    ).lower() == "true")
    title: str = field(default_factory=lambda: os.getenv("DOCS_TITLE", "ApiVersioning API"))
    description: str = field(default_factory=lambda: os.getenv(
        "DOCS_DESCRIPTION", "Weather forecast API with URL segment versioning"
    ))
    url: str = field(default_factory=lambda: os.getenv("DOCS_URL", "/docs"))

    def __post_init__(self):
        if not self.url.startswith("/"):
            self.url = "/" + self.url
        self.url = self.url.rstrip("/") or "/docs"
        if not self.title.strip():
            self.title = "ApiVersioning API"


@dataclass
class ServerConfig:
    """Server and environment settings"""
    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    debug_mode: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "info"))
    https_redirect_enabled: bool = field(default_factory=lambda: os.getenv("HTTPS_REDIRECT_ENABLED", "false").lower() == "true")
    request_logging_enabled: bool = field(default_factory=lambda: os.getenv("REQUEST_LOGGING_ENABLED", "true").lower() == "true")

    def __post_init__(self):
        if self.port <= 0 or self.port > 65535:
            self.port = 8000
        self.log_level = self.log_level.lower()
        if self.log_level not in ["critical", "error", "warning", "info", "debug", "trace"]:
            self.log_level = "info"


class ConfigManager:
    """Central configuration manager for the application"""

    def __init__(self):
        self.versioning = ApiVersioningConfig()
        self.docs = DocsConfig()
        self.server = ServerConfig()
        self._validate_configuration()

    def _validate_configuration(self):
        """Validate the complete configuration"""
        errors = []

        try:
            self.versioning.build_version_set()
        except ConfigurationError as e:
            errors.append(str(e))

        if self.docs.enabled and self.versioning.prefix and self.docs.url.startswith(self.versioning.prefix + "/"):
            errors.append(f"Docs URL {self.docs.url} must not live under API prefix {self.versioning.prefix}")

        if errors:
            error_msg = "Configuration validation failed: " + "; ".join(errors)
            logger.error(error_msg)
            raise ValueError(error_msg)

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return _is_development_environment(self.server.environment)

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.server.environment.lower() in ["production", "prod"]

    def get_uvicorn_kwargs(self) -> Dict[str, Any]:
        """Get uvicorn.run() parameters as kwargs"""
        return {
            "host": self.server.host,
            "port": self.server.port,
            "reload": False,
            "log_level": self.server.log_level,
            "access_log": True,
            "server_header": False,
            "date_header": False,
        }

    def log_configuration(self):
        """Log current configuration"""
        logger.info("Configuration loaded:")
        logger.info(f"  Environment: {self.server.environment}")
        logger.info(f"  API prefix: {self.versioning.prefix or '/'}")
        logger.info(f"  Supported versions: {', '.join(self.versioning.supported_versions)}")
        logger.info(f"  Deprecated versions: {', '.join(self.versioning.deprecated_versions) or 'none'}")
        logger.info(f"  Default version: {self.versioning.default_version}")
        logger.info(f"  Report API versions: {self.versioning.report_api_versions}")
        logger.info(f"  Docs enabled: {self.docs.enabled} ({self.docs.url})")
        logger.info(f"  HTTPS redirect enabled: {self.server.https_redirect_enabled}")


# Global configuration instance
config = ConfigManager()
