"""File path resolution using platformdirs.

In a source checkout (pyproject.toml next to src/), paths resolve relative
to the project root. In an installed deployment, paths use the platform's
user data directory:
  macOS: ~/Library/Application Support/printpalooza/
  Linux: ~/.local/share/printpalooza/
Either can be overridden with PRINTPALOOZA_DATA_DIR.
"""

import os
from pathlib import Path

import platformdirs

APP_NAME = "printpalooza"

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def is_source_checkout() -> bool:
    """Return True when running from a source tree rather than an install."""
    return (_PROJECT_ROOT / "pyproject.toml").exists()


def get_data_dir() -> Path:
    """Return the directory for persistent data (the SQLite database)."""
    override = os.environ.get("PRINTPALOOZA_DATA_DIR", "").strip()
    if override:
        return Path(override).expanduser()
    if is_source_checkout():
        return _PROJECT_ROOT
    return Path(platformdirs.user_data_dir(APP_NAME, appauthor=False))


def get_default_db_path() -> Path:
    """Return the default SQLite database file path."""
    return get_data_dir() / "printpalooza.db"


def ensure_dirs_exist() -> None:
    """Create the data directory if it doesn't exist."""
    get_data_dir().mkdir(parents=True, exist_ok=True)
