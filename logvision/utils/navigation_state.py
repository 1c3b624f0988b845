"""Navigation state management for display modes, time ranges and zoom."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from PySide6.QtCore import QObject, Signal

from logvision.models import FormattedRecord, NavigationMode
from .sampling import count_in_range

logger = logging.getLogger(__name__)

HOUR_MS = 60 * 60 * 1000
MINUTE_MS = 60 * 1000


@dataclass(frozen=True)
class ZoomDomain:
    """Timestamp bounds of a user brush selection (epoch ms)."""
    start: Optional[int] = None
    end: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.start is not None and self.end is not None


class NavigationState(QObject):
    """Holds the active navigation mode, its parameters and the zoom domain.

    Exactly one mode is active at a time. Any change to the mode, its
    parameters or the point budget clears the zoom domain.

    Signals:
        changed: Emitted whenever the rendered subset must be recomputed
        zoom_changed: Emitted with the new ZoomDomain
        mode_changed: Emitted with the new NavigationMode
    """

    changed = Signal()
    zoom_changed = Signal(object)
    mode_changed = Signal(object)

    # Point budget constraints
    MIN_DISPLAY_POINTS = 1_000
    MAX_DISPLAY_POINTS = 50_000
    DEFAULT_DISPLAY_POINTS = 5_000

    # A brush must cover at least this many records
    MIN_ZOOM_POINTS = 2

    PRESETS: dict[str, Optional[int]] = {
        "all": None,
        "1h": 1 * HOUR_MS,
        "6h": 6 * HOUR_MS,
        "12h": 12 * HOUR_MS,
        "24h": 24 * HOUR_MS,
        "3d": 72 * HOUR_MS,
        "7d": 168 * HOUR_MS,
    }
    WINDOW_SIZES_HOURS = (1, 2, 4, 6, 12, 24, 48, 72)
    DEFAULT_WINDOW_HOURS = 1
    DEFAULT_SEGMENT_MINUTES = 30

    def __init__(self, parent=None):
        super().__init__(parent)

        # Full data range (epoch ms) and record count
        self._data_start: Optional[int] = None
        self._data_end: Optional[int] = None
        self._record_count: int = 0

        self._mode = NavigationMode.PRESET
        self._preset = "all"
        self._custom_range: Optional[Tuple[int, int]] = None
        self._current_page = 1
        self._window_hours = self.DEFAULT_WINDOW_HOURS
        self._window_start: Optional[int] = None
        self._segment_minutes = self.DEFAULT_SEGMENT_MINUTES
        self._max_display_points = self.DEFAULT_DISPLAY_POINTS
        self._zoom = ZoomDomain()

    # ------------------------------------------------------------------ Data
    def set_data_range(self, start_ms: int, end_ms: int, record_count: int):
        """Attach the state to a freshly formatted series.

        Args:
            start_ms: First record timestamp
            end_ms: Last record timestamp
            record_count: Number of records in the full series
        """
        if start_ms > end_ms:
            raise ValueError("Start time must not be after end time")

        self._data_start = start_ms
        self._data_end = end_ms
        self._record_count = record_count
        self._custom_range = None
        self._current_page = 1
        self._window_start = start_ms
        self._clear_zoom()
        self.changed.emit()

    def clear_data(self):
        self._data_start = None
        self._data_end = None
        self._record_count = 0
        self._custom_range = None
        self._current_page = 1
        self._window_start = None
        self._clear_zoom()

    @property
    def data_range(self) -> Optional[Tuple[int, int]]:
        if self._data_start is None or self._data_end is None:
            return None
        return (self._data_start, self._data_end)

    @property
    def record_count(self) -> int:
        return self._record_count

    # ------------------------------------------------------------------ Mode
    @property
    def mode(self) -> NavigationMode:
        return self._mode

    def set_mode(self, mode: NavigationMode):
        if mode == self._mode:
            return
        self._mode = mode
        self._clear_zoom()
        self.mode_changed.emit(mode)
        self.changed.emit()

    # ------------------------------------------------------------------ Budget
    @property
    def max_display_points(self) -> int:
        return self._max_display_points

    def set_max_display_points(self, points: int):
        """Set the point budget (page size in pagination mode).

        The budget is clamped to [MIN_DISPLAY_POINTS, MAX_DISPLAY_POINTS] and
        the current page is clamped to the new page count.
        """
        points = max(self.MIN_DISPLAY_POINTS, min(int(points), self.MAX_DISPLAY_POINTS))
        if points == self._max_display_points:
            return
        self._max_display_points = points
        self._current_page = min(self._current_page, self.total_pages)
        self._clear_zoom()
        self.changed.emit()

    def zoom_budget(self, ratio: float) -> int:
        """Smaller budget used while a zoom sub-range is shown."""
        return max(1, int(self._max_display_points * ratio))

    # ------------------------------------------------------------------ Preset ranges
    @property
    def preset(self) -> str:
        return self._preset

    @property
    def custom_range(self) -> Optional[Tuple[int, int]]:
        return self._custom_range

    def set_time_range_preset(self, preset: str):
        """Select a preset range; "pagination" and "window" switch modes instead."""
        if preset == NavigationMode.PAGINATION.value:
            self.set_mode(NavigationMode.PAGINATION)
            return
        if preset == NavigationMode.WINDOW.value:
            self.set_mode(NavigationMode.WINDOW)
            return
        if preset not in self.PRESETS:
            raise ValueError(f"Unknown time range preset: {preset}")

        self._preset = preset
        self._custom_range = None
        self._mode = NavigationMode.PRESET
        self._clear_zoom()
        self.mode_changed.emit(self._mode)
        self.changed.emit()

    def set_custom_range(self, start_ms: Optional[int], end_ms: Optional[int]):
        """Explicit [start, end] filter in preset mode; either bound may be open."""
        if start_ms is not None and end_ms is not None and start_ms > end_ms:
            start_ms, end_ms = end_ms, start_ms
        self._custom_range = (start_ms, end_ms)
        self._mode = NavigationMode.PRESET
        self._clear_zoom()
        self.changed.emit()

    def _preset_range(self) -> Tuple[Optional[int], Optional[int]]:
        if self._custom_range is not None:
            return self._custom_range
        width = self.PRESETS.get(self._preset)
        if width is None or self._data_end is None:
            return (None, None)
        return (self._data_end - width, self._data_end)

    def navigate_time(self, direction: str) -> bool:
        """Shift the preset range by its own width ("forward" or "backward")."""
        start, end = self._preset_range()
        if start is None or end is None or self.data_range is None:
            return False

        width = end - start
        delta = width if direction == "forward" else -width
        new_start, new_end = start + delta, end + delta
        if new_start > self._data_end or new_end < self._data_start:
            return False

        self._custom_range = (new_start, new_end)
        self._clear_zoom()
        self.changed.emit()
        return True

    # ------------------------------------------------------------------ Sliding window
    @property
    def window_size_hours(self) -> int:
        return self._window_hours

    @property
    def window_start(self) -> Optional[int]:
        return self._window_start

    def set_window_size(self, hours: int):
        if hours <= 0:
            raise ValueError("Window size must be positive")
        if hours == self._window_hours:
            return
        self._window_hours = hours
        self._window_start = self._clamp_window_start(self._window_start)
        self._clear_zoom()
        self.changed.emit()

    def _clamp_window_start(self, start: Optional[int]) -> Optional[int]:
        if self._data_start is None or self._data_end is None:
            return start
        if start is None:
            return self._data_start
        # Latest start whose half-open window still reaches the last record
        latest = max(self._data_start, self._data_end - self._window_hours * HOUR_MS + 1)
        return max(self._data_start, min(start, latest))

    def navigate_window(self, direction: str) -> bool:
        """Move the sliding window one width forward or backward within the data."""
        if self._window_start is None:
            return False
        width = self._window_hours * HOUR_MS
        delta = width if direction == "forward" else -width
        new_start = self._clamp_window_start(self._window_start + delta)
        if new_start == self._window_start:
            return False
        self._window_start = new_start
        self._clear_zoom()
        self.changed.emit()
        return True

    def time_range(self) -> Tuple[Optional[int], Optional[int]]:
        """Inclusive filter bounds for the preset and window modes.

        Windows cover `[start, start + width)` so adjacent windows never
        share a record.
        """
        if self._mode == NavigationMode.WINDOW:
            if self._window_start is None:
                return (None, None)
            return (self._window_start, self._window_start + self._window_hours * HOUR_MS - 1)
        if self._mode == NavigationMode.PRESET:
            return self._preset_range()
        return (None, None)

    # ------------------------------------------------------------------ Pagination
    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self._record_count / self._max_display_points))

    def set_page(self, page: int) -> bool:
        page = max(1, min(int(page), self.total_pages))
        if page == self._current_page:
            return False
        self._current_page = page
        self._clear_zoom()
        self.changed.emit()
        return True

    def next_page(self) -> bool:
        return self.set_page(self._current_page + 1)

    def prev_page(self) -> bool:
        return self.set_page(self._current_page - 1)

    # ------------------------------------------------------------------ Segmentation
    @property
    def segment_duration_minutes(self) -> int:
        return self._segment_minutes

    @property
    def segment_duration_ms(self) -> int:
        return self._segment_minutes * MINUTE_MS

    def set_segment_duration(self, minutes: int):
        if minutes <= 0:
            raise ValueError("Segment duration must be positive")
        if minutes == self._segment_minutes:
            return
        self._segment_minutes = minutes
        self._clear_zoom()
        self.changed.emit()

    # ------------------------------------------------------------------ Zoom
    @property
    def zoom(self) -> ZoomDomain:
        return self._zoom

    @property
    def is_zoomed(self) -> bool:
        return self._zoom.is_active

    def apply_brush(
        self,
        start_ms: int,
        end_ms: int,
        candidates: Sequence[FormattedRecord],
    ) -> bool:
        """Zoom into [start_ms, end_ms] if it covers enough records.

        The selection is rejected (state unchanged) unless start < end and
        at least MIN_ZOOM_POINTS candidate records fall inside the range.

        Args:
            start_ms: Brush start timestamp
            end_ms: Brush end timestamp
            candidates: Full-fidelity records the brush was drawn over

        Returns:
            True if the zoom domain changed
        """
        if start_ms >= end_ms:
            logger.debug("Brush rejected: empty range %s..%s", start_ms, end_ms)
            return False
        if count_in_range(candidates, start_ms, end_ms) < self.MIN_ZOOM_POINTS:
            logger.debug("Brush rejected: fewer than %d points selected", self.MIN_ZOOM_POINTS)
            return False

        self._zoom = ZoomDomain(start_ms, end_ms)
        self.zoom_changed.emit(self._zoom)
        self.changed.emit()
        return True

    def apply_brush_indices(
        self,
        start_index: int,
        end_index: int,
        displayed: Sequence[FormattedRecord],
        candidates: Optional[Sequence[FormattedRecord]] = None,
    ) -> bool:
        """Brush given as indices into the displayed series."""
        if not displayed:
            return False
        start_index = max(0, start_index)
        end_index = min(len(displayed) - 1, end_index)
        if end_index - start_index < self.MIN_ZOOM_POINTS - 1:
            return False
        return self.apply_brush(
            displayed[start_index].timestamp_ms,
            displayed[end_index].timestamp_ms,
            candidates if candidates is not None else displayed,
        )

    def reset_zoom(self):
        if not self._zoom.is_active:
            return
        self._clear_zoom()
        self.changed.emit()

    def _clear_zoom(self):
        if self._zoom.is_active:
            self._zoom = ZoomDomain()
            self.zoom_changed.emit(self._zoom)
