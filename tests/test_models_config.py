"""Tests for configuration models."""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from goldcheck.models.comparison import PixelComparison
from goldcheck.models.config import GoldCheckConfig


class TestGoldCheckConfig:
    """Tests for GoldCheckConfig model."""

    def test_default_values(self):
        """Test GoldCheckConfig has correct default values."""
        config = GoldCheckConfig()
        assert config.goldens_dir == "./goldens"
        assert config.results_dir == "./test-results"
        assert config.skia_gold_dir == "./.goldcheck/skia-gold"
        assert config.max_diff_rate_failure == 0.0
        assert config.pixel_comparison is PixelComparison.PRECISE
        assert config.fuzzy_threshold == 0.1
        assert config.gold_instance == "engine"
        assert config.gold_dimensions == {}
        assert config.goldctl is None

    def test_path_properties(self):
        config = GoldCheckConfig(goldens_dir="/g", results_dir="/r", skia_gold_dir="/s")
        assert config.goldens_path == Path("/g")
        assert config.results_path == Path("/r")
        assert config.skia_gold_path == Path("/s")

    def test_pixel_comparison_from_string(self):
        """Test pixel_comparison accepts its string value."""
        config = GoldCheckConfig(pixel_comparison="fuzzy")
        assert config.pixel_comparison is PixelComparison.FUZZY

    def test_rejects_unknown_pixel_comparison(self):
        with pytest.raises(ValidationError):
            GoldCheckConfig(pixel_comparison="perceptual")

    @pytest.mark.parametrize("field", ["max_diff_rate_failure", "fuzzy_threshold"])
    @pytest.mark.parametrize("value", [-0.1, 1.5])
    def test_rates_must_be_fractions(self, field, value):
        with pytest.raises(ValidationError):
            GoldCheckConfig(**{field: value})

    def test_env_goldctl_resolution(self):
        """Test goldctl path can be resolved from an environment variable."""
        with patch.dict(os.environ, {"MY_GOLDCTL": "/opt/bin/goldctl"}):
            config = GoldCheckConfig(goldctl="env:MY_GOLDCTL")
        assert config.goldctl == "/opt/bin/goldctl"

    def test_env_goldctl_missing(self):
        """Test error when environment variable is not set."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValidationError, match="Environment variable.*not set"):
                GoldCheckConfig(goldctl="env:NONEXISTENT_VAR")


class TestGoldCheckConfigFileOperations:
    """Tests for GoldCheckConfig file load/save operations."""

    def test_load_valid_config(self, tmp_path: Path):
        config_file = tmp_path / "goldcheck.json"
        config_file.write_text(json.dumps({
            "goldens_dir": "/goldens",
            "pixel_comparison": "fuzzy",
            "gold_dimensions": {"Browser": "chrome"},
        }))
        config = GoldCheckConfig.load(config_file)
        assert config.goldens_dir == "/goldens"
        assert config.pixel_comparison is PixelComparison.FUZZY
        assert config.gold_dimensions == {"Browser": "chrome"}

    def test_load_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            GoldCheckConfig.load(tmp_path / "missing.json")

    def test_save_and_reload(self, tmp_path: Path):
        config = GoldCheckConfig(max_diff_rate_failure=0.02, pixel_comparison=PixelComparison.FUZZY)
        path = tmp_path / "nested" / "goldcheck.json"
        config.save(path)
        data = json.loads(path.read_text())
        assert data["pixel_comparison"] == "fuzzy"
        assert GoldCheckConfig.load(path) == config

    def test_from_env_uses_explicit_path(self, tmp_path: Path):
        path = tmp_path / "custom.json"
        GoldCheckConfig(goldens_dir="/custom").save(path)
        with patch.dict(os.environ, {"GOLDCHECK_CONFIG": str(path)}):
            assert GoldCheckConfig.from_env().goldens_dir == "/custom"

    def test_from_env_defaults(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("GOLDCHECK_CONFIG", raising=False)
        assert GoldCheckConfig.from_env() == GoldCheckConfig()

    def test_from_env_reads_default_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("GOLDCHECK_CONFIG", raising=False)
        GoldCheckConfig(results_dir="/out").save(tmp_path / "goldcheck.json")
        assert GoldCheckConfig.from_env().results_dir == "/out"
