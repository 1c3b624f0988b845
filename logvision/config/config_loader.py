"""YAML loader for display settings and pattern lists."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from logvision.models import NavigationMode, Pattern
from .settings import DisplaySettings

_INT_KEYS = (
    "max_display_points",
    "window_size_hours",
    "segment_duration_minutes",
    "format_batch_size",
    "fallback_sample_size",
)


def _read_yaml(path: str | Path) -> dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f)

    if cfg is None:
        return {}
    if not isinstance(cfg, dict):
        raise ValueError(f"Top level of {path} must be a mapping")
    return cfg


def parse_patterns(entries: list[Any]) -> list[Pattern]:
    """Build Pattern objects from `[{name, regex|pattern, description?}, ...]`."""
    if not isinstance(entries, list):
        raise ValueError("'patterns' must be a list")

    patterns: list[Pattern] = []
    seen: set[str] = set()
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValueError(f"Pattern #{index + 1} must be a mapping")
        name = entry.get("name")
        regex = entry.get("regex", entry.get("pattern"))
        if not name or regex is None:
            raise ValueError(f"Pattern #{index + 1} needs 'name' and 'regex'")
        name = str(name)
        if name in seen:
            raise ValueError(f"Duplicate pattern name: {name}")
        seen.add(name)
        patterns.append(Pattern(
            name=name,
            regex=str(regex),
            description=str(entry.get("description", "")),
        ))
    return patterns


def load_patterns(yaml_path: str | Path) -> list[Pattern]:
    """Load just the `patterns:` list of a settings file."""
    cfg = _read_yaml(yaml_path)
    return parse_patterns(cfg.get("patterns", []))


def load_settings(yaml_path: str | Path) -> DisplaySettings:
    """Load DisplaySettings from YAML; missing keys keep their defaults.

    Example:
        display:
          max_display_points: 10000
          navigation_mode: segmented
          segment_duration_minutes: 15
        patterns:
          - name: CPU
            regex: 'CPU=(\\d+)'

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If a value has the wrong shape.
        yaml.YAMLError: If YAML is malformed.
    """
    cfg = _read_yaml(yaml_path)
    display = cfg.get("display", {}) or {}
    if not isinstance(display, dict):
        raise ValueError("'display' must be a mapping")

    settings = DisplaySettings()

    for key in _INT_KEYS:
        if key in display:
            value = int(display[key])
            if value <= 0:
                raise ValueError(f"'{key}' must be positive")
            setattr(settings, key, value)

    if "zoom_budget_ratio" in display:
        ratio = float(display["zoom_budget_ratio"])
        if not 0 < ratio <= 1:
            raise ValueError("'zoom_budget_ratio' must be in (0, 1]")
        settings.zoom_budget_ratio = ratio

    if display.get("chunk_size") is not None:
        chunk_size = int(display["chunk_size"])
        if chunk_size <= 0:
            raise ValueError("'chunk_size' must be positive (or null for adaptive)")
        settings.chunk_size = chunk_size

    if "navigation_mode" in display:
        try:
            settings.navigation_mode = NavigationMode(str(display["navigation_mode"]).lower())
        except ValueError:
            valid = ", ".join(m.value for m in NavigationMode)
            raise ValueError(
                f"Unknown navigation_mode {display['navigation_mode']!r} (expected one of: {valid})"
            ) from None

    if "time_range_preset" in display:
        settings.time_range_preset = str(display["time_range_preset"])

    settings.patterns = parse_patterns(cfg.get("patterns", []))
    return settings
