"""Tests for configuration loading and validation logic in main.py."""

from __future__ import annotations

from pathlib import Path

import pytest

from trackimport.main import load_config, validate_config
from trackimport.models.config import ImportConfig, PatternSet, SourceOptions
from trackimport.utils.constants import DEFAULT_MAX_TIME_DIFFERENCE


class TestValidateConfig:
    def test_valid_config_produces_no_warnings(self):
        config = {
            "max_time_difference": 5,
            "allow_growth": False,
            "log_level": "debug",
            "pattern_sets": [{"name": "Mine", "header": "", "track": r"%{title}(.+)"}],
            "tags_pattern_sets": [
                {"name": "Mine", "source": "%{title}", "extraction": r"%{artist}(.+)"}
            ],
            "source_options": {"amazon": {"cover_art": True}},
        }
        assert validate_config(config) == []

    def test_negative_tolerance(self):
        config = {"max_time_difference": -1}
        warnings = validate_config(config)
        assert any("max_time_difference" in w for w in warnings)
        assert config["max_time_difference"] == DEFAULT_MAX_TIME_DIFFERENCE

    def test_non_numeric_tolerance(self):
        config = {"max_time_difference": "three"}
        validate_config(config)
        assert config["max_time_difference"] == DEFAULT_MAX_TIME_DIFFERENCE

    def test_non_boolean_switch_removed(self):
        config = {"allow_growth": "yes"}
        warnings = validate_config(config)
        assert any("allow_growth" in w for w in warnings)
        assert "allow_growth" not in config

    def test_unknown_log_level(self):
        config = {"log_level": "LOUD"}
        validate_config(config)
        assert config["log_level"] == "INFO"

    def test_bad_pattern_dropped(self):
        config = {
            "pattern_sets": [
                {"name": "Broken", "track": "%{title}"},
                {"name": "Fine", "track": r"%{title}(.+)"},
            ]
        }
        warnings = validate_config(config)
        assert any("Broken" in w for w in warnings)
        assert [p["name"] for p in config["pattern_sets"]] == ["Fine"]

    def test_pattern_set_without_name(self):
        config = {"pattern_sets": [{"track": r"%{title}(.+)"}]}
        validate_config(config)
        assert config["pattern_sets"] == []

    def test_pattern_set_with_unknown_key(self):
        config = {"pattern_sets": [{"name": "X", "trak": r"%{title}(.+)"}]}
        warnings = validate_config(config)
        assert any("unknown keys" in w for w in warnings)

    def test_bad_source_options(self):
        config = {"source_options": {"amazon": {"covers": True}, "gnudb": None}}
        warnings = validate_config(config)
        assert any("amazon" in w for w in warnings)
        assert config["source_options"] == {"gnudb": None}

    def test_empty_config(self):
        """Empty config should produce no warnings (uses defaults)."""
        assert validate_config({}) == []


class TestLoadConfig:
    def test_load_yaml(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("max_time_difference: 7\nselected_pattern: Title\n", encoding="utf-8")
        assert load_config(path) == {"max_time_difference": 7, "selected_pattern": "Title"}

    def test_missing_file(self, tmp_path: Path):
        assert load_config(tmp_path / "nope.yaml") == {}

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == {}

    def test_example_config_is_valid(self):
        example = Path(__file__).parent.parent / "config" / "config.example.yaml"
        raw = load_config(example)
        assert validate_config(raw) == []
        config = ImportConfig.from_dict(raw)
        assert config.get_pattern_set("Discogs paste").name == "Discogs paste"


class TestImportConfig:
    def test_defaults(self):
        config = ImportConfig()
        assert config.max_time_difference == DEFAULT_MAX_TIME_DIFFERENCE
        assert config.get_pattern_set("CSV unquoted").track
        assert config.options_for("amazon") == SourceOptions()

    def test_unknown_keys_ignored(self):
        config = ImportConfig.from_dict({"nonsense": 1, "allow_growth": False})
        assert config.allow_growth is False

    def test_user_sets_override_by_name_and_append(self):
        config = ImportConfig.from_dict({
            "pattern_sets": [
                {"name": "Title", "track": r"%{title}([^\n]+)"},
                {"name": "New", "track": r"%{artist}(.+)"},
            ]
        })
        names = [p.name for p in config.pattern_sets]
        assert names.count("Title") == 1
        assert names[-1] == "New"
        assert config.get_pattern_set("Title") == PatternSet("Title", "", r"%{title}([^\n]+)")

    def test_source_options(self):
        config = ImportConfig.from_dict({"source_options": {"amazon": {"additional_tags": True}}})
        assert config.options_for("amazon").additional_tags is True
        assert config.options_for("gnudb").additional_tags is False

    def test_unknown_pattern_set(self):
        with pytest.raises(KeyError):
            ImportConfig().get_pattern_set("Missing")

    def test_to_dict(self):
        data = ImportConfig().to_dict()
        assert data["selected_pattern"] == "CSV unquoted"
        assert isinstance(data["pattern_sets"], list)
