"""
Tests for automodsync.versioning module.

Tests version comparison including:
- Numeric release ordering
- Trailing zero equivalence
- Prerelease ordering
- Non-numeric fallbacks
"""

from __future__ import annotations

import pytest

from automodsync.versioning import compare_versions, is_newer, version_key


class TestCompareVersions:
    """Tests for compare_versions()."""

    @pytest.mark.parametrize(
        "a,b,expected",
        [
            ("2.12.1", "2.12.0", 1),
            ("2.9.0", "2.12.0", -1),
            ("1.10", "1.9.9", 1),
            ("4.2.0.1", "4.2.0", 1),
            ("1.0.0", "1.0.0", 0),
        ],
    )
    def test_numeric_releases(self, a, b, expected):
        """Test that release components compare as integers, not text."""
        assert compare_versions(a, b) == expected

    def test_trailing_zeros_are_equal(self):
        """Test that 1.2, 1.2.0 and 1.2.0.0 are the same version."""
        assert compare_versions("1.2", "1.2.0") == 0
        assert compare_versions("1.2.0.0", "1.2") == 0

    def test_leading_v_is_ignored(self):
        """Test that a 'v' prefix does not change ordering."""
        assert compare_versions("v2.0.0", "2.0.0") == 0

    def test_prerelease_sorts_before_final(self):
        """Test that 1.0.0-preview1 is older than 1.0.0."""
        assert compare_versions("1.0.0-preview1", "1.0.0") == -1
        assert compare_versions("1.0.0", "1.0.0-rc1") == 1

    def test_prerelease_tag_order(self):
        """Test alpha < beta < rc for the same release."""
        ordered = sorted(["1.0.0-rc1", "1.0.0-alpha", "1.0.0-beta2"], key=version_key)
        assert ordered == ["1.0.0-alpha", "1.0.0-beta2", "1.0.0-rc1"]

    def test_prerelease_numbers_compare_numerically(self):
        """Test that preview10 is newer than preview2."""
        assert compare_versions("1.0.0-preview10", "1.0.0-preview2") == 1

    def test_build_metadata_is_ignored(self):
        assert compare_versions("1.2.3+build.5", "1.2.3") == 0

    def test_non_numeric_sorts_after_numeric(self):
        """Test that strings without a numeric prefix sort last."""
        assert compare_versions("latest", "99.0") == 1


class TestIsNewer:
    """Tests for is_newer()."""

    def test_newer(self):
        assert is_newer("2.12.1", "2.12.0") is True

    def test_same_is_not_newer(self):
        assert is_newer("2.12.0", "2.12.0") is False

    def test_older_is_not_newer(self):
        assert is_newer("2.11.0", "2.12.0") is False

    def test_missing_current_is_always_newer(self):
        """Test that anything is newer than an absent version."""
        assert is_newer("0.0.1", None) is True
