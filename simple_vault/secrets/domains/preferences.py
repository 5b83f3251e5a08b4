"""Persistent user preferences for the vault client.

Stored as JSON under the XDG config directory:
~/.config/simple-vault/preferences.json
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

PREFERENCES_DIR = Path.home() / ".config" / "simple-vault"
PREFERENCES_FILE = PREFERENCES_DIR / "preferences.json"


def _read() -> Dict[str, Any]:
    """Read the preferences file; a missing or corrupt file reads as empty."""
    if not PREFERENCES_FILE.exists():
        return {}
    try:
        content = json.loads(PREFERENCES_FILE.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Ignoring unreadable preferences file {PREFERENCES_FILE}: {e}")
        return {}
    if not isinstance(content, dict):
        logger.error(f"Ignoring preferences file {PREFERENCES_FILE}: expected a JSON object")
        return {}
    return content


def _write(preferences: Dict[str, Any]) -> None:
    PREFERENCES_DIR.mkdir(parents=True, exist_ok=True)
    PREFERENCES_FILE.write_text(json.dumps(preferences, indent=2))


def get_preference(key: str) -> Optional[str]:
    """
    Look up a stored preference.

    Args:
        key: Preference key

    Returns:
        Stored value, or None if unset
    """
    return _read().get(key)


def set_preference(key: str, value: str) -> None:
    """Store a preference value, replacing any previous one."""
    preferences = _read()
    preferences[key] = value
    _write(preferences)
    logger.info(f"Preference '{key}' set to: {value}")


def clear_preference(key: str) -> None:
    """Remove a preference; unknown keys are ignored."""
    preferences = _read()
    if preferences.pop(key, None) is None:
        logger.debug(f"Preference '{key}' not set, nothing to clear")
        return
    _write(preferences)
    logger.info(f"Preference '{key}' cleared")


def get_all_preferences() -> Dict[str, Any]:
    return _read()
