"""Settings loaded from archviz.toml."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

CONFIG_FILENAME = "archviz.toml"


@dataclass
class VisualizationStyles:
    """Style values the settings menu may change at runtime."""

    node_font_size: int = 10
    circle_padding: int = 1

    def get_node_font_size(self) -> int:
        return self.node_font_size

    def set_node_font_size(self, size: int) -> None:
        if size <= 0:
            raise ValueError("node_font_size must be a positive integer")
        self.node_font_size = size

    def get_circle_padding(self) -> int:
        return self.circle_padding

    def set_circle_padding(self, padding: int) -> None:
        if padding < 0:
            raise ValueError("circle_padding must not be negative")
        self.circle_padding = padding


@dataclass
class Settings:
    debounce_seconds: float = 0.0
    styles: VisualizationStyles = field(default_factory=VisualizationStyles)
    source: Path | None = None


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def load_settings(path: Path) -> Settings:
    """Load settings from a TOML file.

    Unknown keys are ignored; wrong types or out-of-range values raise
    ValueError.
    """
    import tomllib

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"{path}: {e}") from e

    relayout = _coerce_dict(data.get("relayout"))
    debounce = relayout.get("debounce_seconds", 0.0)
    if isinstance(debounce, bool) or not isinstance(debounce, (int, float)) or debounce < 0:
        raise ValueError("relayout.debounce_seconds must be a non-negative number")

    styles_raw = _coerce_dict(data.get("styles"))
    styles = VisualizationStyles()
    font_size = styles_raw.get("node_font_size", styles.node_font_size)
    padding = styles_raw.get("circle_padding", styles.circle_padding)
    if not isinstance(font_size, int) or not isinstance(padding, int):
        raise ValueError("styles.node_font_size and styles.circle_padding must be integers")
    styles.set_node_font_size(font_size)
    styles.set_circle_padding(padding)

    return Settings(debounce_seconds=float(debounce), styles=styles, source=path)


def find_settings_file(start: Path) -> Path | None:
    """Find archviz.toml by walking up from `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        candidate = p / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def resolve_settings(explicit: Path | None = None, start: Path | None = None) -> Settings:
    """Explicit file, else the nearest archviz.toml, else defaults."""
    if explicit is not None:
        return load_settings(explicit)
    found = find_settings_file(start or Path.cwd())
    return load_settings(found) if found else Settings()
