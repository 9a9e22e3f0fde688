"""
Configuration and path management for studymode.

This is the tool's own configuration (timing, paths, browser selection), not
the user's suppression settings, which live in the settings store.
"""

import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path


@dataclass
class StudyModeConfig:
    """Main configuration."""

    # Suppression engine
    throttle_window_ms: int = 250
    max_ancestor_steps: int = 3

    # Storage
    storage_path: str | None = None  # None = <data dir>/storage.json

    # Browser selection
    browser_executable_path: str | None = None  # Override to use a custom Chromium
    navigation_timeout_ms: int = 30000

    # Logging
    log_level: str = "WARNING"

    @property
    def throttle_window(self) -> float:
        """Throttle window in event-loop time units (seconds)."""
        return self.throttle_window_ms / 1000

    @classmethod
    def load(cls, path: Path | None = None) -> "StudyModeConfig":
        """Load configuration from file."""
        if path is None:
            path = get_config_dir() / "config.json"

        if not path.exists():
            return cls()

        with open(path) as f:
            data = json.load(f)

        return cls(
            throttle_window_ms=data.get("throttle_window_ms", 250),
            max_ancestor_steps=data.get("max_ancestor_steps", 3),
            storage_path=data.get("storage_path"),
            browser_executable_path=data.get("browser_executable_path"),
            navigation_timeout_ms=data.get("navigation_timeout_ms", 30000),
            log_level=data.get("log_level", "WARNING"),
        )

    def save(self, path: Path | None = None) -> None:
        """Save configuration to file."""
        if path is None:
            path = get_config_dir() / "config.json"

        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "throttle_window_ms": self.throttle_window_ms,
            "max_ancestor_steps": self.max_ancestor_steps,
            "storage_path": self.storage_path,
            "browser_executable_path": self.browser_executable_path,
            "navigation_timeout_ms": self.navigation_timeout_ms,
            "log_level": self.log_level,
        }

        with open(path, "w") as f:
            json.dump(data, f, indent=2)


def get_config_dir() -> Path:
    """Get config directory following platform conventions."""
    if sys.platform == "win32":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))

    return base / "studymode"


def get_data_dir() -> Path:
    """Get data directory for stored settings."""
    if sys.platform == "win32":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))

    return base / "studymode"


def get_storage_path(cfg: StudyModeConfig | None = None) -> Path:
    """Get the settings storage file."""
    if cfg is not None and cfg.storage_path:
        return Path(cfg.storage_path).expanduser()
    return get_data_dir() / "storage.json"


def resolve_browser_path(cfg: StudyModeConfig | None = None) -> Path | None:
    """Resolve the browser executable.

    Priority:
    1. STUDYMODE_BROWSER_PATH environment variable
    2. browser_executable_path from config
    3. None (default managed Playwright browser)
    """
    env_path = os.environ.get("STUDYMODE_BROWSER_PATH")
    if env_path:
        return Path(env_path).expanduser()

    if cfg is None:
        cfg = StudyModeConfig.load()

    if cfg.browser_executable_path:
        return Path(cfg.browser_executable_path).expanduser()

    return None
