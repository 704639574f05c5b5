"""
Tests for request resolution by URL segment API version.
"""

import pytest
from hypothesis import given, strategies as st

from api_version import VersionIdentifier, VersionSet
from errors import MalformedVersionError, RouteNotFoundError, UnsupportedVersionError
from route_table import RouteTable
from version_resolver import VersionResolver, normalize_prefix


def handler(request):
    return {}


class TestResolution:
    """Разрешение маршрутов по версии"""

    def test_dispatches_to_version_specific_handler(self, sample_route_table, version_set):
        resolver = VersionResolver(sample_route_table, version_set)

        resolved = resolver.resolve("/api/v1/forecast", "GET")
        assert resolved.entry.handler.__name__ == "forecast_v1"
        assert resolved.version == VersionIdentifier(1)

        resolved = resolver.resolve("/api/v2/forecast", "GET")
        assert resolved.entry.handler.__name__ == "forecast_v2"

    def test_unsupported_version_lists_available_versions(self, sample_route_table, version_set):
        resolver = VersionResolver(sample_route_table, version_set)

        with pytest.raises(UnsupportedVersionError) as exc_info:
            resolver.resolve("/api/v3/forecast", "GET")

        assert exc_info.value.available_versions == ["1", "2"]
        assert exc_info.value.status_code == 400

    def test_unversioned_route_matches_every_supported_version(self, sample_route_table, version_set):
        resolver = VersionResolver(sample_route_table, version_set)
        for token in ("v1", "v2"):
            resolved = resolver.resolve(f"/api/{token}/health", "GET")
            assert resolved.entry.handler.__name__ == "health"

    def test_version_one_only_route_invisible_to_version_two(self, version_set):
        table = RouteTable()
        table.register("forecast", "GET", 1, handler)
        resolver = VersionResolver(table, version_set)

        assert resolver.resolve("/api/v1/forecast", "GET").entry.version == VersionIdentifier(1)
        with pytest.raises(RouteNotFoundError):
            resolver.resolve("/api/v2/forecast", "GET")

    def test_unversioned_fallback_serves_other_versions(self, version_set):
        table = RouteTable()
        table.register("forecast", "GET", 1, handler, name="v1")
        table.register("forecast", "GET", None, handler, name="fallback")
        resolver = VersionResolver(table, version_set)

        assert resolver.resolve("/api/v1/forecast", "GET").entry.name == "v1"
        assert resolver.resolve("/api/v2/forecast", "GET").entry.name == "fallback"

    def test_exact_entry_preferred_over_earlier_unversioned(self, version_set):
        table = RouteTable()
        table.register("forecast", "GET", None, handler, name="fallback")
        table.register("forecast", "GET", 2, handler, name="v2")
        resolver = VersionResolver(table, version_set)

        assert resolver.resolve("/api/v2/forecast", "GET").entry.name == "v2"
        assert resolver.resolve("/api/v1/forecast", "GET").entry.name == "fallback"

    @pytest.mark.parametrize("token", ["vx", "v1.2.3", "latest", "v-1", "1a"])
    def test_malformed_version_never_routes(self, sample_route_table, version_set, token):
        resolver = VersionResolver(sample_route_table, version_set)
        with pytest.raises(MalformedVersionError) as exc_info:
            resolver.resolve(f"/api/{token}/health", "GET")
        assert exc_info.value.available_versions == ["1", "2"]

    def test_deprecated_versions_not_reported_unless_supported(self):
        table = RouteTable()
        table.register("health", "GET", None, handler)
        version_set = VersionSet.build([1, 2], deprecated_versions=[1, 3])
        resolver = VersionResolver(table, version_set)

        with pytest.raises(UnsupportedVersionError) as exc_info:
            resolver.resolve("/api/v3/health", "GET")
        assert exc_info.value.available_versions == ["1", "2"]

        # Deprecated but supported versions still resolve
        assert resolver.resolve("/api/v1/health", "GET").version == VersionIdentifier(1)

    def test_unsupported_version_short_circuits_before_route_matching(self, sample_route_table, version_set):
        resolver = VersionResolver(sample_route_table, version_set)
        with pytest.raises(UnsupportedVersionError):
            resolver.resolve("/api/v9/does-not-exist", "GET")

    def test_method_mismatch_is_not_found(self, sample_route_table, version_set):
        resolver = VersionResolver(sample_route_table, version_set)
        with pytest.raises(RouteNotFoundError) as exc_info:
            resolver.resolve("/api/v1/forecast", "DELETE")
        assert exc_info.value.status_code == 404

    def test_head_falls_back_to_get(self, sample_route_table, version_set):
        resolver = VersionResolver(sample_route_table, version_set)

        resolved = resolver.resolve("/api/v2/forecast", "HEAD")
        assert resolved.entry.handler.__name__ == "forecast_v2"
        assert resolved.entry.method == "GET"

    def test_explicit_head_entry_preferred(self, version_set):
        table = RouteTable()
        table.register("forecast", "GET", 1, handler)
        head_entry = table.register("forecast", "HEAD", None, handler)

        resolver = VersionResolver(table, version_set)
        assert resolver.resolve("/api/v1/forecast", "HEAD").entry is head_entry

    def test_path_outside_prefix_is_not_found(self, sample_route_table, version_set):
        resolver = VersionResolver(sample_route_table, version_set)
        for path in ("/other/v1/forecast", "/api", "/api/", "/"):
            with pytest.raises(RouteNotFoundError):
                resolver.resolve(path, "GET")

    def test_minor_versions_and_case_insensitive_segments(self):
        table = RouteTable()
        table.register("forecast", "GET", "1.1", handler, name="v1.1")
        resolver = VersionResolver(table, VersionSet.build(["1.0", "1.1"]))

        assert resolver.resolve("/API/V1.1/Forecast", "get").entry.name == "v1.1"
        with pytest.raises(RouteNotFoundError):
            resolver.resolve("/api/v1/forecast", "GET")

    def test_path_parameters_are_captured(self, version_set):
        table = RouteTable()
        table.register("forecast/{day}", "GET", None, handler)
        resolver = VersionResolver(table, version_set)

        resolved = resolver.resolve("/api/v2/forecast/monday", "GET")
        assert resolved.path_params == {"day": "monday"}

    def test_custom_prefix_moves_version_segment(self, sample_route_table, version_set):
        resolver = VersionResolver(sample_route_table, version_set, prefix="services/weather/")
        assert resolver.prefix == "/services/weather"
        assert resolver.version_segment_index == 2
        assert resolver.resolve("/services/weather/v2/forecast", "GET").entry.handler.__name__ == "forecast_v2"

    def test_empty_prefix_uses_first_segment(self, sample_route_table, version_set):
        resolver = VersionResolver(sample_route_table, version_set, prefix="")
        assert resolver.version_segment_index == 0
        assert resolver.resolve("/v1/forecast", "GET").entry.handler.__name__ == "forecast_v1"

    def test_resolver_freezes_route_table(self, sample_route_table, version_set):
        VersionResolver(sample_route_table, version_set)
        assert sample_route_table.frozen

    @given(
        supported=st.sets(st.integers(min_value=0, max_value=30), min_size=1, max_size=6),
        requested=st.integers(min_value=0, max_value=40),
    )
    def test_unversioned_route_resolution_property(self, supported, requested):
        """
        For a route registered with version=None, a request for any
        supported version resolves to it, and any other version yields
        UnsupportedVersionError listing exactly the supported versions.
        """
        table = RouteTable()
        table.register("health", "GET", None, handler)
        version_set = VersionSet.build(supported)
        resolver = VersionResolver(table, version_set)

        if requested in supported:
            resolved = resolver.resolve(f"/api/v{requested}/health", "GET")
            assert resolved.entry.version is None
            assert resolved.version == VersionIdentifier(requested)
        else:
            with pytest.raises(UnsupportedVersionError) as exc_info:
                resolver.resolve(f"/api/v{requested}/health", "GET")
            assert exc_info.value.available_versions == [str(v) for v in sorted(supported)]


def test_normalize_prefix():
    assert normalize_prefix("api") == "/api"
    assert normalize_prefix("/api/") == "/api"
    assert normalize_prefix("") == ""
    assert normalize_prefix("/") == ""
