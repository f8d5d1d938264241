"""
Editor settings for PhotoVault.

Settings live in ~/.config/photovault/config.json (XDG layout). The file only
needs to hold overrides: whatever it contains is merged over DEFAULT_CONFIG,
and the merged result is written back so new keys show up for the user to
edit. A file that is not a JSON object is replaced with the defaults.
"""

import copy
import json
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from photovault.editor.annotations import MAX_STROKE_WIDTH, MIN_STROKE_WIDTH
from photovault.services.logging_service import get_logger

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "photovault"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"

DEFAULT_CONFIG: Dict[str, Any] = {
    "editor": {
        # Marker/arrow/text colors offered to the user
        "palette": ["#00ff00", "#00ffff", "#ffff00", "#ff00ff", "#ff0000", "#ffffff"],
        "default_color": "#00ff00",
        "default_stroke_width": 3,
        # Working resolution envelope for the base photo
        "canvas_max_width": 1200,
        "canvas_max_height": 800,
        # Narrow viewports (phones) get a smaller envelope
        "compact_breakpoint": 768,
        "compact_canvas_max_width": 800,
        "compact_canvas_max_height": 600,
        "compact_margin": 32,
        "compact_height_ratio": 0.4,
        # Gesture tuning
        "simplify_tolerance": 2.0,
        "min_point_distance": 1.0,
        "arrow_head_length": 15.0,
        "history_limit": 50,
        # Flattened output
        "export_format": "PNG",
    },
}


HEX_COLOR = re.compile(r"^#[0-9a-f]{6}$")


def _bounded(cast: Callable[[Any], Any], low: Optional[float] = None, high: Optional[float] = None):
    """Cast, then reject values outside [low, high] with ValueError."""
    def convert(value: Any) -> Any:
        result = cast(value)
        if (low is not None and result < low) or (high is not None and result > high):
            raise ValueError(f"{result!r} is outside [{low}, {high}]")
        return result
    return convert


def _color_list(value: Any) -> List[str]:
    colors = [c.strip().lower() for c in value]
    if not colors or not all(HEX_COLOR.match(c) for c in colors):
        raise ValueError(f"Palette must be a non-empty list of #rrggbb colors, got {value!r}")
    return colors


def _merge_into(target: Dict, overrides: Dict) -> None:
    """Nested dicts merge key by key; anything else replaces."""
    for key, value in overrides.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _merge_into(current, value)
        else:
            target[key] = value


class ConfigService:
    """
    Editor settings with typed accessors.

    Every accessor falls back to the default when the stored value is
    missing, of the wrong type or out of range, so a hand-edited file can never stop the
    editor from opening.
    """

    def __init__(self, config_path: Optional[Path] = None, persist: bool = True) -> None:
        """
        Args:
            config_path: JSON file to use; defaults to
                ~/.config/photovault/config.json
            persist: When False nothing is read from or written to disk.
        """
        self._logger = get_logger(__name__)
        self._config_path = config_path or DEFAULT_CONFIG_FILE
        self._persist = persist
        self._config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)

        if persist:
            self._load()

    @classmethod
    def defaults(cls) -> "ConfigService":
        """In-memory configuration with default values only."""
        return cls(persist=False)

    @property
    def path(self) -> Path:
        return self._config_path

    # ─── Persistence ──────────────────────────────────────────────────────

    def _load(self) -> None:
        try:
            stored = self._read_stored()
        except OSError as e:
            self._logger.warning(f"Could not read {self._config_path}: {e}. Using defaults.")
            return

        if stored is not None:
            _merge_into(self._config, stored)
            self._logger.info(f"Configuration loaded from {self._config_path}")
        self._write()

    def _read_stored(self) -> Optional[Dict[str, Any]]:
        """Overrides from disk, or None when there are none worth keeping."""
        if not self._config_path.exists():
            self._logger.info(f"No config at {self._config_path}; writing defaults")
            return None

        with open(self._config_path, "r", encoding="utf-8") as f:
            try:
                stored = json.load(f)
            except json.JSONDecodeError as e:
                self._logger.warning(f"Config file is not valid JSON ({e}); recreating it")
                return None

        if not isinstance(stored, dict):
            self._logger.warning("Config file does not hold a JSON object; recreating it")
            return None
        return stored

    def _write(self) -> None:
        if not self._persist:
            return

        try:
            self._config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._config_path, "w", encoding="utf-8") as f:
                json.dump(self._config, f, indent=2)
        except OSError as e:
            self._logger.error(f"Could not save config file: {e}")
            return
        self._logger.debug(f"Configuration saved to {self._config_path}")

    def get(self, key: str, default: Any = None) -> Any:
        """Top-level section or value."""
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Replace a top-level section in memory; call save() to persist."""
        self._config[key] = value
        self._logger.debug(f"Config key '{key}' set to '{value}'")

    def save(self) -> None:
        self._write()

    # ─── Lookup ───────────────────────────────────────────────────────────

    def _editor(self, key: str, cast: Callable[[Any], Any] = lambda v: v) -> Any:
        default = DEFAULT_CONFIG["editor"][key]
        section = self.get("editor", {})
        if not isinstance(section, dict) or key not in section:
            return cast(default)
        try:
            return cast(section[key])
        except (AttributeError, TypeError, ValueError):
            self._logger.warning(
                f"Ignoring invalid editor.{key}={section[key]!r}; using {default!r}"
            )
            return cast(default)

    # ─── Style Settings ───────────────────────────────────────────────────

    @property
    def palette(self) -> List[str]:
        """Colors the user may draw with, as lowercase #rrggbb strings."""
        return self._editor("palette", _color_list)

    @property
    def default_color(self) -> str:
        """Initial drawing color; always a member of ``palette``."""
        palette = self.palette
        color = self._editor("default_color", lambda v: v.strip().lower())
        if color in palette:
            return color
        fallback = DEFAULT_CONFIG["editor"]["default_color"]
        if fallback not in palette:
            fallback = palette[0]
        self._logger.warning(f"Default color {color!r} is not in the palette; using {fallback!r}")
        return fallback

    @property
    def default_stroke_width(self) -> int:
        return self._editor("default_stroke_width", _bounded(int, MIN_STROKE_WIDTH, MAX_STROKE_WIDTH))

    # ─── Canvas Settings ──────────────────────────────────────────────────

    @property
    def canvas_max_width(self) -> int:
        return self._editor("canvas_max_width", _bounded(int, 1))

    @property
    def canvas_max_height(self) -> int:
        return self._editor("canvas_max_height", _bounded(int, 1))

    @property
    def compact_breakpoint(self) -> int:
        return self._editor("compact_breakpoint", _bounded(int, 0))

    @property
    def compact_canvas_max_width(self) -> int:
        return self._editor("compact_canvas_max_width", _bounded(int, 1))

    @property
    def compact_canvas_max_height(self) -> int:
        return self._editor("compact_canvas_max_height", _bounded(int, 1))

    @property
    def compact_margin(self) -> int:
        return self._editor("compact_margin", _bounded(int, 0))

    @property
    def compact_height_ratio(self) -> float:
        return self._editor("compact_height_ratio", _bounded(float, 0.05, 1.0))

    # ─── Gesture Settings ─────────────────────────────────────────────────

    @property
    def simplify_tolerance(self) -> float:
        return self._editor("simplify_tolerance", _bounded(float, 0.0))

    @property
    def min_point_distance(self) -> float:
        return self._editor("min_point_distance", _bounded(float, 0.0))

    @property
    def arrow_head_length(self) -> float:
        return self._editor("arrow_head_length", _bounded(float, 0.0))

    @property
    def history_limit(self) -> int:
        return self._editor("history_limit", _bounded(int, 1))

    # ─── Export Settings ──────────────────────────────────────────────────

    @property
    def export_format(self) -> str:
        return self._editor("export_format", lambda v: v.upper())
