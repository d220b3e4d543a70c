"""Tests for internationalization (i18n) module."""

import os
import pytest

from volleyscore.i18n import (
    load_strings,
    get_string,
    clear_cache,
    get_language_from_env,
    SUPPORTED_LANGUAGES,
    DEFAULT_LANGUAGE,
)


class TestI18n:
    """Test i18n functionality."""

    def setup_method(self):
        """Clear cache before each test."""
        clear_cache()
        # Clear VOLLEYSCORE_LANG env var if set
        if "VOLLEYSCORE_LANG" in os.environ:
            del os.environ["VOLLEYSCORE_LANG"]

    def teardown_method(self):
        """Clean up after each test."""
        clear_cache()
        if "VOLLEYSCORE_LANG" in os.environ:
            del os.environ["VOLLEYSCORE_LANG"]

    def test_load_strings_portuguese(self):
        """Test loading Portuguese strings."""
        strings = load_strings("pt")
        assert isinstance(strings, dict)
        assert "app" in strings
        assert strings["app"]["title"] == "Placar de Vôlei"

    def test_load_strings_english(self):
        """Test loading English strings."""
        strings = load_strings("en")
        assert isinstance(strings, dict)
        assert strings["app"]["title"] == "Volleyball Scoreboard"

    def test_load_strings_invalid_language(self):
        """Test loading strings with invalid language raises error."""
        with pytest.raises(ValueError, match="not supported"):
            load_strings("fr")

    def test_load_strings_caching(self):
        """Test that strings are cached after first load."""
        strings1 = load_strings("pt")
        strings2 = load_strings("pt")
        assert strings1 is strings2

    def test_get_string_nested_key(self):
        """Test getting a nested string using dot notation."""
        assert get_string("report.entering", "pt") == "Entrando"
        assert get_string("report.entering", "en") == "Entering"

    def test_get_string_with_formatting(self):
        """Test getting a string with format variables."""
        assert get_string("team.default_name", "pt", letter="C") == "Time C"
        assert get_string("team.default_name", "en", letter="C") == "Team C"

        result = get_string("cli.teams_generated", "en", count=14, teams=3)
        assert "14" in result
        assert "3" in result

    def test_get_string_missing_format_argument(self):
        """Test that a missing format variable returns the raw string."""
        assert get_string("team.default_name", "en", other="x") == "Team {letter}"

    def test_get_string_missing_key(self):
        """Test getting a non-existent key returns the key itself."""
        assert get_string("nonexistent.key", "pt") == "nonexistent.key"

    def test_get_string_non_leaf_key(self):
        """Test that a section key is not returned as a string."""
        assert get_string("report", "en") == "report"

    def test_get_string_unsupported_language_uses_default(self):
        """Test that an unsupported language falls back to the default."""
        assert get_string("report.entering", "fr") == "Entrando"

    def test_all_languages_have_same_keys(self):
        """Test that every language defines the same string keys."""
        def keys(tree, prefix=""):
            for key, value in tree.items():
                if isinstance(value, dict):
                    yield from keys(value, f"{prefix}{key}.")
                else:
                    yield f"{prefix}{key}"

        key_sets = [set(keys(load_strings(lang))) for lang in SUPPORTED_LANGUAGES]
        assert all(k == key_sets[0] for k in key_sets)

    def test_get_language_from_env_default(self):
        """Test getting language from env when not set."""
        assert get_language_from_env() == DEFAULT_LANGUAGE

    def test_get_language_from_env_set(self):
        """Test getting language from env when set."""
        os.environ["VOLLEYSCORE_LANG"] = "en"
        assert get_language_from_env() == "en"

        os.environ["VOLLEYSCORE_LANG"] = "pt"
        assert get_language_from_env() == "pt"

    def test_get_language_from_env_invalid(self):
        """Test getting language from env with invalid value."""
        os.environ["VOLLEYSCORE_LANG"] = "fr"
        assert get_language_from_env() == DEFAULT_LANGUAGE
