"""
Tests for the command-line entry point's cache flag handling.
"""

import pytest

from main import resolve_cache_settings


class TestResolveCacheSettings:
    """Test precedence between --disable-cache, --no-cache and config."""

    def test_disable_cache_wins(self):
        assert resolve_cache_settings(True, "statistics_report", False) == (True, None)

    def test_no_cache_all_disables(self):
        assert resolve_cache_settings(False, "all", False) == (True, None)

    def test_no_cache_names_recompute(self):
        """Test that a comma-separated list keeps the cache and recomputes those nodes."""
        disable_cache, recompute = resolve_cache_settings(False, "statistics_report, population_estimate,", True)

        assert disable_cache is False
        assert recompute == ["statistics_report", "population_estimate"]

    @pytest.mark.parametrize("config_disable_cache", [True, False])
    def test_falls_back_to_config(self, config_disable_cache):
        assert resolve_cache_settings(False, None, config_disable_cache) == (config_disable_cache, None)
