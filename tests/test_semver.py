"""Version compatibility matcher tests.

Range table:
    1.2.3          exactly 1.2.3
    *              any version
    1.2.x          1.2.0 <= v < 1.3.0
    1.2.3 - 1.2.7  inclusive on both ends
    >=1.2.3 <1.2.7 exclusive upper bound
    ~1.2.3         >=1.2.3 <1.3.0
    ^1.2.3         >=1.2.3 <2.0.0
"""

from __future__ import annotations

import pytest

from bundlerelay.services.resolution.semver import (
    coerce_version,
    filter_compatible_app_versions,
    semver_satisfies,
)


class TestSemverSatisfies:
    """Stored range vs device version."""

    @pytest.mark.parametrize(
        ("target", "current", "expected"),
        [
            ("1.2.3", "1.2.3", True),
            ("1.2.3", "1.2.4", False),
            ("1.x.x", "1.0", True),
            ("1.x.x", "1.12", True),
            ("1.x.x", "1.0.0", True),
            ("1.x.x", "1.2.3", True),
            ("1.x.x", "2.0.0", False),
            ("1.2.x", "1.2.5", True),
            ("1.2.x", "1.3.0", False),
            ("1.2.3 - 1.2.7", "1.2.5", True),
            ("1.2.3 - 1.2.7", "1.2.7", True),
            ("1.2.3 - 1.2.7", "1.3.0", False),
            (">=1.2.3 <1.2.7", "1.2.5", True),
            (">=1.2.3 <1.2.7", "1.2.7", False),
            ("~1.2.3", "1.2.3", True),
            ("~1.2.3", "1.2.4", True),
            ("~1.2.3", "1.3.0", False),
            ("^1.2.3", "1.3.0", True),
            ("^1.2.3", "2.0.0", False),
            ("*", "3.4.5", True),
        ],
    )
    def test_range_table(self, target: str, current: str, expected: bool) -> None:
        assert semver_satisfies(target, current) is expected

    def test_device_range_matches_stored_exact_version(self) -> None:
        """A device reporting "1.2" is compatible with a bundle for exactly 1.2.3."""
        assert semver_satisfies("1.2.3", "1.2") is True
        assert semver_satisfies("1.3.0", "1.2") is False

    def test_device_exact_version_does_not_match_wider_device_side(self) -> None:
        """Reverse matching only applies when the device value is not a concrete version."""
        assert semver_satisfies("1.2.4", "1.2.3") is False


class TestMalformedVersions:
    """Unparsable strings are compatible only with each other."""

    def test_two_malformed_strings_are_compatible(self) -> None:
        assert semver_satisfies("not-a-version", "garbage") is True

    def test_malformed_target_never_matches_valid_version(self) -> None:
        assert semver_satisfies("not-a-version", "1.0.0") is False

    def test_malformed_device_never_matches_valid_range(self) -> None:
        assert semver_satisfies("1.x.x", "garbage") is False


class TestCoerce:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1", "1.0.0"),
            ("1.2", "1.2.0"),
            ("1.2.3", "1.2.3"),
            ("v2.3.4-beta", "2.3.4"),
            ("build 42", "42.0.0"),
            ("garbage", None),
        ],
    )
    def test_coerce_version(self, raw: str, expected: str | None) -> None:
        assert coerce_version(raw) == expected

    @pytest.mark.parametrize(
        ("target", "current", "expected"),
        [
            ("1.x.x", "1.0.0-beta", True),
            ("1.0.0", "1.0.0-beta.3", True),
            ("^1.0.0", "1.0.0-rc.1+build.5", True),
            ("2.x.x", "1.0.0-beta", False),
        ],
    )
    def test_prerelease_device_is_matched_as_release(
        self, target: str, current: str, expected: bool
    ) -> None:
        assert semver_satisfies(target, current) is expected


class TestFilterCompatibleAppVersions:
    def test_returns_distinct_matches_sorted_descending(self) -> None:
        result = filter_compatible_app_versions(
            ["1.0.0", "1.x.x", "2.0.0", "1.x.x", "~1.0.0"], "1.0.0"
        )
        assert result == ["~1.0.0", "1.x.x", "1.0.0"]

    def test_no_matches_returns_empty_list(self) -> None:
        assert filter_compatible_app_versions(["2.x.x", "3.0.0"], "1.0.0") == []

    def test_skips_none_entries(self) -> None:
        assert filter_compatible_app_versions([None, "1.0.0"], "1.0.0") == ["1.0.0"]
