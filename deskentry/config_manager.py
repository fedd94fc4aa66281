"""
Config Manager: Plugin configuration state with JSON I/O

Holds the plugin-wide config dict and provides:
- JSON load/save to disk
- Default backfill for missing keys
- Validation of loaded values

Per-key settings (which app a key launches) are owned by the host and
arrive with each event as a LaunchSettings payload.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# Default config paths
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "deskentry"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.json"

DEFAULT_ICON_SIZE = 256
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def get_default_config() -> Dict[str, Any]:
    """Default plugin configuration."""
    return {
        "log_level": "INFO",
        "icon_size": DEFAULT_ICON_SIZE,
        "icon_theme": "",          # empty: detect active GTK theme
        "terminal": {"name": "", "flag": "-e"},  # empty name: auto-detect
        "extra_search_dirs": [],
    }


@dataclass
class LaunchSettings:
    """Per-key settings saved by the host: selected app and extra args."""
    app: Optional[str] = None
    args: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> "LaunchSettings":
        """Build from an event's settings dict. Missing or non-string values are unset."""
        if not isinstance(payload, dict):
            return cls()
        app = payload.get("app")
        args = payload.get("args")
        return cls(
            app=app if isinstance(app, str) else None,
            args=args if isinstance(args, str) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"app": self.app, "args": self.args}


class ConfigManager:
    """Manages in-memory plugin config with JSON I/O and validation"""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else DEFAULT_CONFIG_PATH
        self.config = get_default_config()

    def load(self) -> bool:
        """Load config from self.path. Keeps defaults when the file is missing or invalid."""
        if not self.path.is_file():
            logger.debug("No config at %s, using defaults", self.path)
            return False
        if not self.load_json_file(str(self.path)):
            logger.warning("Could not read config %s, using defaults", self.path)
            return False
        ok, error = self.validate()
        if not ok:
            logger.warning("Invalid config %s (%s), using defaults", self.path, error)
            self.config = get_default_config()
            return False
        return True

    def load_json_file(self, path: str) -> bool:
        """Load config from JSON file, backfilling defaults. Returns True on success."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                return False

            config = get_default_config()
            config.update(data)
            # Ensure terminal section has both keys
            if isinstance(config["terminal"], dict):
                terminal = {"name": "", "flag": "-e"}
                terminal.update(config["terminal"])
                config["terminal"] = terminal
            self.config = config
            return True
        except (json.JSONDecodeError, UnicodeDecodeError, FileNotFoundError, IOError):
            return False

    def save_json_file(self, path: Optional[str] = None) -> bool:
        """Save config to JSON file. Returns True on success."""
        target = Path(path) if path else self.path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "w") as f:
                json.dump(self.config, f, indent=2)
            return True
        except IOError:
            return False

    def validate(self) -> tuple[bool, str]:
        """Check value types and ranges. Returns (ok, error message)."""
        level = self.config.get("log_level")
        if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
            return False, f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}"

        size = self.config.get("icon_size")
        if not isinstance(size, int) or isinstance(size, bool) or size <= 0:
            return False, f"icon_size {size!r} must be a positive integer"

        if not isinstance(self.config.get("icon_theme"), str):
            return False, "icon_theme must be a string"

        terminal = self.config.get("terminal")
        if not isinstance(terminal, dict):
            return False, "terminal must be an object"
        if not isinstance(terminal.get("name"), str) or not isinstance(terminal.get("flag"), str):
            return False, "terminal name/flag must be strings"

        dirs = self.config.get("extra_search_dirs")
        if not isinstance(dirs, list) or not all(isinstance(d, str) for d in dirs):
            return False, "extra_search_dirs must be a list of strings"
        if any(not d.strip() for d in dirs):
            return False, "extra_search_dirs must not contain empty paths"

        return True, ""

    def to_json(self) -> str:
        return json.dumps(self.config, indent=2)

    # ------------------------------------------------------------------
    # Typed accessors
    # ------------------------------------------------------------------

    @property
    def log_level(self) -> str:
        return self.config["log_level"].upper()

    @property
    def icon_size(self) -> int:
        return self.config["icon_size"]

    @property
    def icon_theme(self) -> str:
        return self.config["icon_theme"]

    @property
    def preferred_terminal(self) -> Optional[tuple[str, str]]:
        """(name, flag) of the user's terminal, or None to auto-detect."""
        terminal = self.config["terminal"]
        name = terminal["name"].strip()
        if not name:
            return None
        return (name, terminal["flag"].strip())

    @property
    def extra_search_dirs(self) -> list[str]:
        return [str(Path(d).expanduser()) for d in self.config["extra_search_dirs"]]


# Singleton instance
_manager = None


def get_config_manager() -> ConfigManager:
    """Get or create singleton ConfigManager instance"""
    global _manager
    if _manager is None:
        _manager = ConfigManager()
        _manager.load()
    return _manager
