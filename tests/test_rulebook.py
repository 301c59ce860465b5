"""
Unit tests for gridagg/rulebook.py

Verifies the packaged rulebook, lookup order and section validation.
"""

import pytest

from gridagg import constants, rulebook
from gridagg.core.grid.models import ZoneStatus
from gridagg.utils.error_handling import ConfigurationError


def _write_rulebook(tmp_path, text):
    p = tmp_path / "rulebook.yml"
    p.write_text(text, encoding="utf-8")
    return p


class TestPackagedRulebook:

    def test_defaults_match_constants(self):
        settings = rulebook.load_settings()
        assert settings.grid_size_m == constants.DEFAULT_GRID_SIZE_M
        assert settings.capacity_factor == constants.DEFAULT_CAPACITY_FACTOR
        assert settings.min_activity_threshold == constants.DEFAULT_MIN_ACTIVITY_THRESHOLD
        assert settings.max_workers is None

    def test_version(self):
        assert rulebook.version() == "1.0"

    def test_reporting_has_every_status(self):
        reporting = rulebook.load_reporting()
        for status in ZoneStatus:
            assert reporting.color_for(status).startswith("#")
            assert reporting.label_for(status)

    def test_synthetic_section(self):
        synthetic = rulebook.load_synthetic()
        assert synthetic.n_events == constants.DEFAULT_SYNTHETIC_EVENTS
        assert synthetic.seed == constants.DEFAULT_SYNTHETIC_SEED
        assert synthetic.bounds == constants.DEFAULT_SYNTHETIC_BOUNDS


class TestLookupOrder:

    def test_explicit_path(self, tmp_path):
        p = _write_rulebook(tmp_path, "aggregation:\n  grid_size_m: 250\n")
        settings = rulebook.load_settings(str(p))
        assert settings.grid_size_m == 250.0
        # absent keys fall back to defaults
        assert settings.capacity_factor == constants.DEFAULT_CAPACITY_FACTOR

    def test_env_var(self, tmp_path, monkeypatch):
        p = _write_rulebook(tmp_path, "aggregation:\n  min_activity_threshold: 9\n")
        monkeypatch.setenv(rulebook.RULEBOOK_ENV_VAR, str(p))
        assert rulebook.resolve_rulebook_path() == p
        assert rulebook.load_settings().min_activity_threshold == 9

    def test_explicit_path_beats_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv(rulebook.RULEBOOK_ENV_VAR, str(tmp_path / "ignored.yml"))
        p = _write_rulebook(tmp_path, "aggregation:\n  capacity_factor: 1.5\n")
        assert rulebook.load_settings(str(p)).capacity_factor == 1.5

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            rulebook.load_rulebook(str(tmp_path / "missing.yml"))

    def test_cache_cleared(self, tmp_path):
        p = _write_rulebook(tmp_path, "aggregation:\n  grid_size_m: 100\n")
        assert rulebook.load_settings(str(p)).grid_size_m == 100.0
        p.write_text("aggregation:\n  grid_size_m: 200\n", encoding="utf-8")
        assert rulebook.load_settings(str(p)).grid_size_m == 100.0
        rulebook.clear_cache()
        assert rulebook.load_settings(str(p)).grid_size_m == 200.0


class TestValidation:

    @pytest.mark.parametrize("body", [
        "aggregation:\n  grid_size_m: 0\n",
        "aggregation:\n  capacity_factor: -1\n",
        "aggregation:\n  min_activity_threshold: -3\n",
        "aggregation:\n  max_workers: 0\n",
    ])
    def test_invalid_aggregation_values(self, tmp_path, body):
        p = _write_rulebook(tmp_path, body)
        with pytest.raises(ConfigurationError):
            rulebook.load_settings(str(p))

    def test_non_mapping_rulebook(self, tmp_path):
        p = _write_rulebook(tmp_path, "- just\n- a list\n")
        with pytest.raises(ConfigurationError):
            rulebook.load_rulebook(str(p))

    def test_inverted_synthetic_bounds(self, tmp_path):
        p = _write_rulebook(
            tmp_path,
            "synthetic:\n  bounds:\n    lon_min: 1\n    lon_max: 0\n    lat_min: 0\n    lat_max: 1\n",
        )
        with pytest.raises(ConfigurationError):
            rulebook.load_synthetic(str(p))

    def test_custom_colour_and_label_fallback(self, tmp_path):
        p = _write_rulebook(tmp_path, "reporting:\n  status_colors:\n    NetDemand: '#000000'\n")
        reporting = rulebook.load_reporting(str(p))
        assert reporting.color_for(ZoneStatus.NET_DEMAND) == "#000000"
        assert reporting.color_for(ZoneStatus.BALANCED) == constants.STATUS_COLORS["Balanced"]
        assert reporting.label_for(ZoneStatus.BALANCED) == "Balanced"
