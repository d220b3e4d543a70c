"""Configuration loader and validator."""

from pathlib import Path
from typing import Any

import yaml

from volleyscore.history import DEFAULT_UNDO_DEPTH, MAX_UNDO_DEPTH
from volleyscore.i18n import SUPPORTED_LANGUAGES, get_language_from_env
from volleyscore.models import DeuceType, MatchConfig

MIN_UNDO_DEPTH = 10

PRESETS: dict[str, MatchConfig] = {
    # Indoor rules: 25 points, tie-break to 15 in the fifth set
    "official": MatchConfig(
        points_per_set=25,
        tie_break_points=15,
        has_tie_break=True,
        max_sets=5,
        deuce_type=DeuceType.STANDARD,
    ),
    # Pickup games: single set to 15, 14-14 goes to first-to-3
    "monday": MatchConfig(
        points_per_set=15,
        tie_break_points=11,
        has_tie_break=False,
        max_sets=1,
        deuce_type=DeuceType.SUDDEN_DEATH_3,
    ),
    "short_set": MatchConfig(
        points_per_set=21,
        tie_break_points=15,
        has_tie_break=True,
        max_sets=3,
        deuce_type=DeuceType.STANDARD,
    ),
}


class ConfigError(Exception):
    """Configuration validation error."""

    pass


def load_config(path: str) -> dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        path: Path to YAML config file

    Returns:
        Dictionary with configuration values

    Raises:
        ConfigError: If file not found or invalid YAML
    """
    config_file = Path(path)

    if not config_file.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}")

    if config is None:
        raise ConfigError("Config file is empty")

    if not isinstance(config, dict):
        raise ConfigError("Config file must contain a mapping")

    return config


def get_preset(name: str) -> MatchConfig:
    """Return the named match preset.

    Raises:
        ConfigError: If the preset does not exist
    """
    try:
        return PRESETS[name]
    except KeyError:
        raise ConfigError(f"Unknown preset '{name}'. Available presets: {sorted(PRESETS)}")


def validate_match_config(config: dict[str, Any], base: MatchConfig = None) -> MatchConfig:
    """Validate match rules.

    Missing fields are taken from ``base`` (default: the official preset).

    Args:
        config: Dictionary with any of points_per_set, tie_break_points,
            has_tie_break, max_sets, deuce_type

    Returns:
        Validated MatchConfig

    Raises:
        ConfigError: If validation fails
    """
    base = base or PRESETS["official"]

    points_per_set = config.get("points_per_set", base.points_per_set)
    if not isinstance(points_per_set, int) or points_per_set <= 0:
        raise ConfigError(f"points_per_set must be a positive integer, got {points_per_set}")

    tie_break_points = config.get("tie_break_points", base.tie_break_points)
    if not isinstance(tie_break_points, int) or tie_break_points <= 0:
        raise ConfigError(f"tie_break_points must be a positive integer, got {tie_break_points}")

    has_tie_break = config.get("has_tie_break", base.has_tie_break)
    if not isinstance(has_tie_break, bool):
        raise ConfigError("has_tie_break must be true or false")

    max_sets = config.get("max_sets", base.max_sets)
    if not isinstance(max_sets, int) or max_sets < 1 or max_sets % 2 == 0:
        raise ConfigError(f"max_sets must be an odd positive integer, got {max_sets}")

    deuce_type = config.get("deuce_type", base.deuce_type.value)
    try:
        deuce_type = DeuceType(deuce_type)
    except ValueError:
        allowed = [d.value for d in DeuceType]
        raise ConfigError(f"deuce_type must be one of {allowed}, got '{deuce_type}'")

    return MatchConfig(
        points_per_set=points_per_set,
        tie_break_points=tie_break_points,
        has_tie_break=has_tie_break,
        max_sets=max_sets,
        deuce_type=deuce_type,
    )


def validate_settings(config: dict[str, Any]) -> dict[str, Any]:
    """Validate application settings.

    Args:
        config: Settings dictionary (lang, undo_depth, db_path, preset, match)

    Returns:
        Validated settings; ``match`` holds a MatchConfig

    Raises:
        ConfigError: If validation fails
    """
    validated = {}

    lang = config.get("lang", get_language_from_env())
    if lang not in SUPPORTED_LANGUAGES:
        raise ConfigError(f"lang must be one of {SUPPORTED_LANGUAGES}, got '{lang}'")
    validated["lang"] = lang

    undo_depth = config.get("undo_depth", DEFAULT_UNDO_DEPTH)
    if not isinstance(undo_depth, int) or not MIN_UNDO_DEPTH <= undo_depth <= MAX_UNDO_DEPTH:
        raise ConfigError(
            f"undo_depth must be between {MIN_UNDO_DEPTH} and {MAX_UNDO_DEPTH}, got {undo_depth}"
        )
    validated["undo_depth"] = undo_depth

    db_path = config.get("db_path")
    if db_path is not None and not isinstance(db_path, str):
        raise ConfigError("db_path must be a string")
    validated["db_path"] = db_path

    preset = config.get("preset", "official")
    base = get_preset(preset)
    validated["preset"] = preset

    match = config.get("match") or {}
    if not isinstance(match, dict):
        raise ConfigError("match must be a dictionary")
    validated["match"] = validate_match_config(match, base=base)

    return validated


def load_and_validate_settings(path: str) -> dict[str, Any]:
    """Load and validate settings in one step.

    Raises:
        ConfigError: If loading or validation fails
    """
    config = load_config(path)
    return validate_settings(config)
