"""
Pytest configuration and fixtures for ApiVersioning tests.

Содержит общие фикстуры и настройки для unit и property-based тестов.
"""

import pytest
from typing import AsyncGenerator
from fastapi.testclient import TestClient
import httpx

from main import app
from api_version import VersionSet
from route_table import RouteTable


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client fixture."""
    return TestClient(app)


@pytest.fixture
async def async_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Async HTTP client for testing async endpoints."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def version_set() -> VersionSet:
    """Versions 1 and 2, default 1."""
    return VersionSet.build([1, 2], default_version=1)


def forecast_v1(request):
    return {"handler": "forecast_v1"}


def forecast_v2(request):
    return {"handler": "forecast_v2"}


def health(request):
    return {"handler": "health"}


@pytest.fixture
def sample_route_table() -> RouteTable:
    """Routes [(GET forecast, v1), (GET forecast, v2), (GET health, unversioned)]."""
    table = RouteTable()
    table.register("forecast", "GET", 1, forecast_v1)
    table.register("forecast", "GET", 2, forecast_v2)
    table.register("health", "GET", None, health)
    return table


# Hypothesis settings for property-based tests
from hypothesis import settings, Verbosity

# Configure Hypothesis for consistent test runs
settings.register_profile("default", max_examples=100, verbosity=Verbosity.normal)
settings.register_profile("ci", max_examples=1000, verbosity=Verbosity.verbose)
settings.load_profile("default")
