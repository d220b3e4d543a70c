"""Tests for settings files and match presets."""

import pytest

from volleyscore.config_loader import (
    PRESETS,
    ConfigError,
    get_preset,
    load_and_validate_settings,
    load_config,
    validate_match_config,
    validate_settings,
)
from volleyscore.models import DeuceType


@pytest.fixture(autouse=True)
def no_lang_env(monkeypatch):
    monkeypatch.delenv("VOLLEYSCORE_LANG", raising=False)


class TestPresets:
    """Test built-in presets."""

    def test_official(self):
        config = get_preset("official")
        assert config.points_per_set == 25
        assert config.tie_break_points == 15
        assert config.has_tie_break
        assert config.max_sets == 5
        assert config.sets_to_win_match == 3
        assert config.deuce_type == DeuceType.STANDARD

    def test_monday(self):
        config = get_preset("monday")
        assert config.points_per_set == 15
        assert not config.has_tie_break
        assert config.max_sets == 1
        assert config.deuce_type == DeuceType.SUDDEN_DEATH_3

    def test_short_set(self):
        config = get_preset("short_set")
        assert config.points_per_set == 21
        assert config.max_sets == 3

    def test_unknown_preset(self):
        with pytest.raises(ConfigError, match="Unknown preset"):
            get_preset("beach")


class TestLoadConfig:
    """Test YAML loading."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(str(tmp_path / "missing.yaml"))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        with pytest.raises(ConfigError, match="empty"):
            load_config(str(path))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("match: [1, 2\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(str(path))

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- official\n- monday\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(str(path))


class TestValidateSettings:
    """Test settings validation."""

    def test_defaults(self):
        settings = validate_settings({})
        assert settings["lang"] == "pt"
        assert settings["undo_depth"] == 10
        assert settings["db_path"] is None
        assert settings["preset"] == "official"
        assert settings["match"] == PRESETS["official"]

    def test_lang_from_env(self, monkeypatch):
        monkeypatch.setenv("VOLLEYSCORE_LANG", "en")
        assert validate_settings({})["lang"] == "en"

    def test_preset_with_overrides(self):
        settings = validate_settings({"preset": "monday", "match": {"points_per_set": 21}})
        assert settings["match"].points_per_set == 21
        assert settings["match"].deuce_type == DeuceType.SUDDEN_DEATH_3

    @pytest.mark.parametrize(
        "config, message",
        [
            ({"lang": "fr"}, "lang"),
            ({"undo_depth": 5}, "undo_depth"),
            ({"undo_depth": 51}, "undo_depth"),
            ({"db_path": 3}, "db_path"),
            ({"preset": "beach"}, "Unknown preset"),
            ({"match": "fast"}, "dictionary"),
            ({"match": {"max_sets": 4}}, "max_sets"),
            ({"match": {"points_per_set": 0}}, "points_per_set"),
            ({"match": {"tie_break_points": "15"}}, "tie_break_points"),
            ({"match": {"has_tie_break": "yes"}}, "has_tie_break"),
            ({"match": {"deuce_type": "golden"}}, "deuce_type"),
        ],
    )
    def test_invalid_values(self, config, message):
        with pytest.raises(ConfigError, match=message):
            validate_settings(config)

    def test_match_config_from_base(self):
        config = validate_match_config({"max_sets": 3}, base=PRESETS["monday"])
        assert config.max_sets == 3
        assert config.points_per_set == 15

    def test_load_and_validate(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(
            "lang: en\n"
            "undo_depth: 20\n"
            "preset: short_set\n"
            "match:\n"
            "  deuce_type: sudden_death_3pt\n"
        )
        settings = load_and_validate_settings(str(path))
        assert settings["lang"] == "en"
        assert settings["undo_depth"] == 20
        assert settings["match"].points_per_set == 21
        assert settings["match"].deuce_type == DeuceType.SUDDEN_DEATH_3
