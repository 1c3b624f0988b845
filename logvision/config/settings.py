"""Display and ingestion settings with their defaults."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from logvision.models import NavigationMode, Pattern

# Adaptive chunk sizes: (max total lines, lines per chunk)
CHUNK_SIZE_TIERS = (
    (100_000, 5_000),
    (500_000, 4_000),
    (1_000_000, 2_500),
)
MIN_CHUNK_SIZE = 2_000


def adaptive_chunk_size(total_lines: int) -> int:
    """Lines per chunk; larger inputs get smaller chunks to bound per-step work."""
    for limit, size in CHUNK_SIZE_TIERS:
        if total_lines <= limit:
            return size
    return MIN_CHUNK_SIZE


@dataclass
class DisplaySettings:
    """Tunable knobs of the extraction and display pipeline.

    Attributes:
        max_display_points: Point budget / page size
        zoom_budget_ratio: Fraction of the budget rendered while zoomed
        navigation_mode: Initial navigation mode
        time_range_preset: Initial preset ("all", "1h", ...)
        window_size_hours: Initial sliding window width
        segment_duration_minutes: Bucket width for the segmented mode
        chunk_size: Lines per ingestion chunk; None chooses adaptively
        format_batch_size: Samples formatted per cooperative step
        fallback_sample_size: Target size of the degraded re-format
        patterns: Optional pattern list shipped with the settings file
    """
    max_display_points: int = 5_000
    zoom_budget_ratio: float = 0.25
    navigation_mode: NavigationMode = NavigationMode.PRESET
    time_range_preset: str = "all"
    window_size_hours: int = 1
    segment_duration_minutes: int = 30
    chunk_size: Optional[int] = None
    format_batch_size: int = 10_000
    fallback_sample_size: int = 100_000
    patterns: list[Pattern] = field(default_factory=list)

    def chunk_size_for(self, total_lines: int) -> int:
        if self.chunk_size is not None:
            if self.chunk_size <= 0:
                raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
            return self.chunk_size
        return adaptive_chunk_size(total_lines)
