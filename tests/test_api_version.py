"""
Unit and property-based tests for API version identifiers and version sets.
"""

import pytest
from hypothesis import given, strategies as st

from api_version import VersionIdentifier, VersionSet, compare, to_version
from errors import ConfigurationError, MalformedVersionError


class TestVersionIdentifier:
    """Тесты для VersionIdentifier"""

    @pytest.mark.parametrize("token,expected", [
        ("1", VersionIdentifier(1, 0)),
        ("1.0", VersionIdentifier(1)),
        ("2.1", VersionIdentifier(2, 1)),
        ("v2", VersionIdentifier(2)),
        ("V3.5", VersionIdentifier(3, 5)),
    ])
    def test_parse_valid_tokens(self, token, expected):
        assert VersionIdentifier.parse(token) == expected

    @pytest.mark.parametrize("token", ["", "v", "vx", "abc", "1.", ".1", "1.2.3", "v-1", "-1", "1a", "vv1"])
    def test_parse_malformed_tokens(self, token):
        with pytest.raises(MalformedVersionError) as exc_info:
            VersionIdentifier.parse(token)
        assert exc_info.value.token == token
        assert exc_info.value.status_code == 400

    def test_text_form_omits_zero_minor(self):
        assert str(VersionIdentifier(1)) == "1"
        assert str(VersionIdentifier(1, 0)) == "1"
        assert str(VersionIdentifier(2, 1)) == "2.1"

    def test_group_name(self):
        assert VersionIdentifier(1).group_name == "v1"
        assert VersionIdentifier(1, 1).group_name == "v1.1"

    def test_equality_and_hash(self):
        assert VersionIdentifier(1, 0) == VersionIdentifier(1)
        assert VersionIdentifier(1, 0) != VersionIdentifier(1, 1)
        assert len({VersionIdentifier(1), VersionIdentifier(1, 0), VersionIdentifier(2)}) == 2

    def test_immutable(self):
        version = VersionIdentifier(1)
        with pytest.raises(Exception):
            version.major = 2

    def test_rejects_negative_and_non_integer_components(self):
        with pytest.raises(ValueError):
            VersionIdentifier(-1)
        with pytest.raises(TypeError):
            VersionIdentifier("1")
        with pytest.raises(TypeError):
            VersionIdentifier(True)

    def test_to_version(self):
        assert to_version(2) == VersionIdentifier(2)
        assert to_version("v1.1") == VersionIdentifier(1, 1)
        assert to_version(VersionIdentifier(3)) == VersionIdentifier(3)
        with pytest.raises(TypeError):
            to_version(1.5)

    @given(
        a=st.tuples(st.integers(min_value=0, max_value=1000), st.integers(min_value=0, max_value=1000)),
        b=st.tuples(st.integers(min_value=0, max_value=1000), st.integers(min_value=0, max_value=1000)),
    )
    def test_ordering_is_lexicographic(self, a, b):
        """
        For any two identifiers, ordering and compare() agree with
        lexicographic (major, minor) ordering.
        """
        va, vb = VersionIdentifier(*a), VersionIdentifier(*b)
        assert (va < vb) == (a < b)
        assert (va == vb) == (a == b)
        expected = -1 if a < b else (1 if a > b else 0)
        assert compare(va, vb) == expected


class TestVersionSet:
    """Тесты для VersionSet"""

    def test_build_with_explicit_default(self):
        version_set = VersionSet.build([1, 2], [1], 2)
        assert version_set.default == VersionIdentifier(2)
        assert version_set.supported_versions() == (VersionIdentifier(1), VersionIdentifier(2))
        assert version_set.is_deprecated(VersionIdentifier(1))
        assert not version_set.is_deprecated(VersionIdentifier(2))

    def test_default_falls_back_to_lowest_supported(self):
        version_set = VersionSet.build(["2", "1.1", "3"])
        assert version_set.default == VersionIdentifier(1, 1)

    def test_supported_and_deprecated_may_overlap(self):
        version_set = VersionSet.build([1, 2], deprecated_versions=[1], default_version=1)
        assert VersionIdentifier(1) in version_set
        assert version_set.is_deprecated(VersionIdentifier(1))

    def test_deprecated_only_version_is_not_supported(self):
        version_set = VersionSet.build([2], deprecated_versions=[1])
        assert not version_set.is_supported(VersionIdentifier(1))
        assert version_set.deprecated_strings() == ("1",)

    def test_supported_strings_sorted(self):
        version_set = VersionSet.build([10, 2, "1.5"])
        assert version_set.supported_strings() == ("1.5", "2", "10")
        assert list(version_set) == [VersionIdentifier(1, 5), VersionIdentifier(2), VersionIdentifier(10)]
        assert len(version_set) == 3

    def test_empty_supported_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            VersionSet.build([])

    def test_invalid_version_value_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            VersionSet.build(["one", 2])

    def test_default_not_supported_is_configuration_error(self):
        with pytest.raises(ConfigurationError) as exc_info:
            VersionSet.build([1, 2], default_version=3)
        assert "3" in str(exc_info.value)

    @given(
        supported=st.sets(st.integers(min_value=0, max_value=50), min_size=1, max_size=10),
        default=st.integers(min_value=0, max_value=100),
    )
    def test_default_outside_supported_always_fails(self, supported, default):
        """
        For any version set whose default is not among the supported
        versions, build() raises ConfigurationError; otherwise it succeeds.
        """
        if default in supported:
            version_set = VersionSet.build(supported, default_version=default)
            assert version_set.default == VersionIdentifier(default)
        else:
            with pytest.raises(ConfigurationError):
                VersionSet.build(supported, default_version=default)
