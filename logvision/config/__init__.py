"""Settings and pattern list loading."""

from .settings import DisplaySettings, adaptive_chunk_size
from .config_loader import load_patterns, load_settings, parse_patterns

__all__ = [
    "DisplaySettings",
    "adaptive_chunk_size",
    "load_patterns",
    "load_settings",
    "parse_patterns",
]
