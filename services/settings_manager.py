"""
Settings Manager.

Handles editor settings with JSON file storage.
"""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from typing import Optional
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class GridSettings:
    """Grid snapping settings."""
    pitch: float = 96.0
    snap_to_grid: bool = True
    show_grid: bool = True


@dataclass
class HitTestSettings:
    """Pointer tolerances, in world units."""
    edge_tolerance: float = 10.0
    connection_tolerance: float = 10.0
    endpoint_exclusion: float = 15.0   # No connector picking this close to an anchor
    connection_padding: float = 20.0   # Edge zones reach this far outside a shape
    handle_padding: float = 12.0
    handle_radius: float = 6.0


@dataclass
class ShapeDefaults:
    """Default sizes and colors of new shapes."""
    box_size: float = 80.0
    ellipse_radius: float = 40.0
    font_size: float = 20.0
    min_size: float = 20.0
    min_font_size: float = 10.0
    color: str = "#667eea"
    text_color: str = "#000000"


@dataclass
class UISettings:
    """User interface settings."""
    theme: str = "light"
    canvas_height: int = 600
    zoom_step: float = 1.15


@dataclass
class AppSettings:
    """Complete application settings."""
    grid: GridSettings = field(default_factory=GridSettings)
    hit_test: HitTestSettings = field(default_factory=HitTestSettings)
    shapes: ShapeDefaults = field(default_factory=ShapeDefaults)
    ui: UISettings = field(default_factory=UISettings)
    window_geometry: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "grid": asdict(self.grid),
            "hit_test": asdict(self.hit_test),
            "shapes": asdict(self.shapes),
            "ui": asdict(self.ui),
            "window_geometry": self.window_geometry,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AppSettings":
        """Create from dictionary. Unknown keys are ignored."""
        settings = cls()

        if "grid" in data:
            settings.grid = GridSettings(**_known_fields(GridSettings, data["grid"]))
        if "hit_test" in data:
            settings.hit_test = HitTestSettings(**_known_fields(HitTestSettings, data["hit_test"]))
        if "shapes" in data:
            settings.shapes = ShapeDefaults(**_known_fields(ShapeDefaults, data["shapes"]))
        if "ui" in data:
            settings.ui = UISettings(**_known_fields(UISettings, data["ui"]))
        if "window_geometry" in data:
            settings.window_geometry = data["window_geometry"]

        return settings


def _known_fields(cls, values: dict) -> dict:
    names = set(cls.__dataclass_fields__)
    return {k: v for k, v in values.items() if k in names}


class SettingsManager:
    """
    Manages editor settings with JSON file storage.

    Settings file location:
    - Windows: %APPDATA%/DiagramEditor/settings.json
    - Linux: ~/.config/DiagramEditor/settings.json
    - macOS: ~/Library/Application Support/DiagramEditor/settings.json
    """

    APP_NAME = "DiagramEditor"
    SETTINGS_FILE = "settings.json"

    def __init__(self, config_override: Optional[str] = None):
        """
        Initialize settings manager.

        Args:
            config_override: Optional path to override config file location.
                            Useful for testing.
        """
        self._settings = AppSettings()
        self._config_override = config_override
        self._settings_path = self._get_settings_path()
        self._ensure_settings_dir()
        self.load()

    @property
    def settings(self) -> AppSettings:
        """Get current settings."""
        return self._settings

    @property
    def settings_path(self) -> str:
        """Get the settings file path."""
        return str(self._settings_path)

    # Convenience properties for common settings
    @property
    def snap_to_grid(self) -> bool:
        return self._settings.grid.snap_to_grid

    @snap_to_grid.setter
    def snap_to_grid(self, value: bool):
        self._settings.grid.snap_to_grid = value
        self.save()

    @property
    def grid_pitch(self) -> float:
        return self._settings.grid.pitch

    @grid_pitch.setter
    def grid_pitch(self, value: float):
        self._settings.grid.pitch = value
        self.save()

    def _get_settings_path(self) -> Path:
        """Get platform-specific settings directory."""
        if self._config_override:
            return Path(self._config_override)

        import platform
        system = platform.system()

        if system == "Windows":
            base = os.environ.get("APPDATA", os.path.expanduser("~"))
            config_dir = Path(base) / self.APP_NAME
        elif system == "Darwin":  # macOS
            config_dir = Path.home() / "Library" / "Application Support" / self.APP_NAME
        else:  # Linux and others
            xdg_config = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
            config_dir = Path(xdg_config) / self.APP_NAME

        return config_dir / self.SETTINGS_FILE

    def _ensure_settings_dir(self):
        """Create settings directory if it doesn't exist."""
        self._settings_path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> bool:
        """Load settings from file."""
        if not self._settings_path.exists():
            return False

        try:
            with open(self._settings_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            self._settings = AppSettings.from_dict(data)
            return True
        except (OSError, json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Error loading settings from {self._settings_path}: {e}")
            return False

    def save(self) -> bool:
        """Save settings to file."""
        try:
            self._ensure_settings_dir()
            with open(self._settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings.to_dict(), f, indent=2)
            return True
        except (OSError, TypeError) as e:
            logger.warning(f"Error saving settings to {self._settings_path}: {e}")
            return False

    def reset(self):
        """Reset settings to defaults."""
        self._settings = AppSettings()
        self.save()

    def save_window_geometry(self, geometry: bytes, state: bytes):
        """Save window geometry and state."""
        import base64
        self._settings.window_geometry = {
            "geometry": base64.b64encode(geometry).decode("ascii"),
            "state": base64.b64encode(state).decode("ascii"),
        }
        self.save()

    def get_window_geometry(self) -> tuple:
        """Get saved window geometry and state."""
        import base64
        import binascii
        geo = self._settings.window_geometry
        if not geo:
            return None, None

        try:
            geometry = base64.b64decode(geo.get("geometry", ""))
            state = base64.b64decode(geo.get("state", ""))
            return geometry, state
        except (binascii.Error, ValueError):
            return None, None


# Global settings instance
_settings_manager: Optional[SettingsManager] = None


def get_settings(config_override: Optional[str] = None) -> SettingsManager:
    """
    Get the global settings manager instance.

    Args:
        config_override: Optional path to override config location.
                        Only used on first call to initialize.
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager(config_override)
    return _settings_manager


def reset_settings_manager():
    """Reset the global settings manager (useful for testing)."""
    global _settings_manager
    _settings_manager = None
