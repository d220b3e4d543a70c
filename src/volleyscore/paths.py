"""
Path utilities for volleyscore - handles both development and PyInstaller frozen modes.
"""

import os
import platform
import sys
from pathlib import Path


def is_frozen() -> bool:
    """Check if running as a PyInstaller frozen executable."""
    return getattr(sys, 'frozen', False)


def get_base_path() -> Path:
    """
    Get the base path of the installed package.

    Returns:
        - When frozen (exe): The temporary _MEIPASS directory where PyInstaller extracts files
        - Otherwise: The volleyscore package directory
    """
    if is_frozen():
        return Path(sys._MEIPASS) / "volleyscore"
    return Path(__file__).parent


def get_i18n_dir() -> Path:
    """Get the i18n directory path."""
    return get_base_path() / "i18n"


def get_data_dir() -> Path:
    """
    Get the user data directory for storing the database.

    Returns:
        - Frozen macOS: ~/Library/Application Support/VolleyScore/
        - Anything else: .volleyscore/ in current working directory
    """
    if is_frozen() and platform.system() == "Darwin":
        data_dir = Path.home() / "Library" / "Application Support" / "VolleyScore"
    else:
        data_dir = Path.cwd() / ".volleyscore"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_default_db_path() -> Path:
    """Database file, overridable with the VOLLEYSCORE_DB environment variable."""
    env_path = os.environ.get("VOLLEYSCORE_DB")
    if env_path:
        return Path(env_path)
    return get_data_dir() / "volleyscore.sqlite"
