"""Configuration loader for Emotional Support.

Handles loading, saving, and default creation of config.json.
Resolves platform-appropriate data directories:
  - macOS:   ~/Library/Application Support/EmotionalSupport
  - Windows: %APPDATA%/EmotionalSupport
  - Other:   $XDG_CONFIG_HOME/emotional-support (~/.config/emotional-support)
"""

import copy
import json
import logging
import os
import sys
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def get_data_directory() -> Path:
    """Return the platform-appropriate data directory for Emotional Support.

    Raises ``RuntimeError`` when the home directory cannot be determined.
    """
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "EmotionalSupport"
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
        return base / "EmotionalSupport"
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "emotional-support"


_DEFAULT_NOTIFICATIONS: dict[str, Any] = {
    "title": "Emotional Support",
    "timeout_seconds": 15,
    "time_based": {
        "intervals_minutes": [30, 60, 120, 180, 240],
        "cooldown_seconds": 60,
        "min_duration_seconds": 120,
        "require_programming": False,
    },
    "language": {
        "cooldown_seconds": 180,
    },
    "health": {
        "interval_seconds": 120,
    },
}


def get_default_config() -> dict[str, Any]:
    """Return the default configuration dictionary.

    When the data directory cannot be determined, ``state_path`` and
    ``database_path`` are ``None`` and nothing is persisted.
    """
    try:
        data_dir: Path | None = get_data_directory()
    except RuntimeError as exc:
        logger.warning("Cannot determine data directory (%s); running in memory only", exc)
        data_dir = None
    return {
        "poll_interval_seconds": 5,
        "notifications": copy.deepcopy(_DEFAULT_NOTIFICATIONS),
        "welcome_message": True,
        "log_window_checks": True,
        "dashboard_port": 5555,
        "state_path": str(data_dir / "state.json") if data_dir else None,
        "database_path": str(data_dir / "activity.db") if data_dir else None,
    }


def get_default_config_path() -> Path:
    """Return the default path for config.json."""
    return get_data_directory() / "config.json"


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration from a JSON file.

    If *path* is ``None``, the platform default location is used.
    When the file does not exist, a default configuration is created,
    written to disk, and returned.  If the file exists but is invalid
    JSON, the error is logged and defaults are returned.
    """
    if path is None:
        try:
            path = get_default_config_path()
        except RuntimeError:
            return get_default_config()
    config_path = Path(path)

    if not config_path.exists():
        logger.info("Config file not found at %s, creating defaults.", config_path)
        defaults = get_default_config()
        try:
            save_config(defaults, config_path)
        except OSError as exc:
            logger.warning("Could not write default config to %s: %s", config_path, exc)
        return defaults

    try:
        with open(config_path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError("Top-level JSON value must be an object")
        return data
    except (json.JSONDecodeError, ValueError, OSError) as exc:
        logger.error("Failed to load config from %s: %s; using defaults.", config_path, exc)
        return get_default_config()


def save_config(config: dict[str, Any], path: str | Path | None = None) -> None:
    """Write *config* to a JSON file.

    If *path* is ``None``, the platform default location is used.
    Parent directories are created automatically.
    """
    config_path = Path(path) if path is not None else get_default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w", encoding="utf-8") as fh:
        json.dump(config, fh, indent=2, ensure_ascii=False)
        fh.write("\n")


@dataclass
class NotificationTiming:
    """All timing configuration for the poll loop and notification policies."""

    poll_interval: timedelta = timedelta(seconds=5)
    milestones: list[timedelta] = field(
        default_factory=lambda: [timedelta(minutes=m) for m in (30, 60, 120, 180, 240)]
    )
    time_cooldown: timedelta = timedelta(minutes=1)
    min_duration: timedelta = timedelta(minutes=2)
    require_programming: bool = False
    language_cooldown: timedelta = timedelta(minutes=3)
    health_interval: timedelta = timedelta(minutes=2)

    def __post_init__(self) -> None:
        self.milestones = sorted(self.milestones)

    @property
    def tolerance(self) -> timedelta:
        """Width of the window after a milestone in which it may still fire."""
        return 2 * self.poll_interval

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "NotificationTiming":
        """Build timing from a config dict, falling back to defaults per key."""
        notifications = config.get("notifications", {})
        time_cfg = {**_DEFAULT_NOTIFICATIONS["time_based"], **notifications.get("time_based", {})}
        lang_cfg = {**_DEFAULT_NOTIFICATIONS["language"], **notifications.get("language", {})}
        health_cfg = {**_DEFAULT_NOTIFICATIONS["health"], **notifications.get("health", {})}
        return cls(
            poll_interval=timedelta(seconds=config.get("poll_interval_seconds", 5)),
            milestones=[timedelta(minutes=m) for m in time_cfg["intervals_minutes"]],
            time_cooldown=timedelta(seconds=time_cfg["cooldown_seconds"]),
            min_duration=timedelta(seconds=time_cfg["min_duration_seconds"]),
            require_programming=bool(time_cfg["require_programming"]),
            language_cooldown=timedelta(seconds=lang_cfg["cooldown_seconds"]),
            health_interval=timedelta(seconds=health_cfg["interval_seconds"]),
        )
