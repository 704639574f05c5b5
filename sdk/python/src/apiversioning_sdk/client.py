from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})


@dataclass
class WeatherForecastApiError(Exception):
    message: str
    status_code: int
    payload: Optional[Dict[str, Any]] = None

    @property
    def available_versions(self) -> List[str]:
        if not isinstance(self.payload, dict):
            return []
        return list(self.payload.get("availableVersions") or [])

    def __str__(self) -> str:
        return f"{self.message} (status={self.status_code})"


class WeatherForecastClient:
    def __init__(
        self,
        *,
        base_url: str = "http://localhost:8000",
        api_version: str = "1",
        api_prefix: str = "/api",
        docs_url: str = "/docs",
        timeout: float = 10.0,
        retries: int = 2,
        retry_delay: float = 0.3,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_version = str(api_version).lstrip("vV")
        self.api_prefix = "/" + api_prefix.strip("/") if api_prefix.strip("/") else ""
        self.docs_url = "/" + docs_url.strip("/") if docs_url.strip("/") else "/docs"
        self.timeout = timeout
        self.retries = max(0, retries)
        self.retry_delay = max(0.0, retry_delay)
        self._client = httpx.Client(timeout=self.timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "WeatherForecastClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def versioned_path(self, path: str) -> str:
        return f"{self.api_prefix}/v{self.api_version}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, json: Optional[Any] = None) -> Any:
        url = f"{self.base_url}{path}"
        last_exc: Optional[Exception] = None

        # Only idempotent requests are retried
        retries = self.retries if method.upper() in IDEMPOTENT_METHODS else 0

        for attempt in range(retries + 1):
            try:
                response = self._client.request(method, url, json=json)
                if response.status_code >= 400:
                    payload: Optional[Dict[str, Any]]
                    try:
                        payload = response.json()
                    except ValueError:
                        payload = None
                    raise WeatherForecastApiError("Weather forecast API error", response.status_code, payload)
                return response.json()
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                last_exc = exc
                if attempt == retries:
                    raise
                time.sleep(self.retry_delay)

        if last_exc is not None:
            raise last_exc
        raise RuntimeError("Unexpected SDK request flow")

    def get_health(self) -> Any:
        return self._request("GET", "/health")

    def get_weather_forecast(self) -> Any:
        return self._request("GET", self.versioned_path("weatherforecast"))

    def post_weather_forecast(self) -> Any:
        return self._request("POST", self.versioned_path("weatherforecast"))

    def get_manifest(self, group_name: Optional[str] = None) -> Any:
        group = group_name or f"v{self.api_version}"
        return self._request("GET", f"{self.docs_url}/{group}/manifest.json")
