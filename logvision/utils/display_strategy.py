"""Selection of the record subset to render for the active navigation mode."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence, Tuple

from logvision.models import DisplayStats, FormattedRecord, NavigationMode, TimeSegment
from .navigation_state import NavigationState
from .sampling import filter_time_range, stride_decimate
from .segmentation import segment_records

logger = logging.getLogger(__name__)

DEFAULT_ZOOM_BUDGET_RATIO = 0.25


@dataclass(frozen=True)
class DisplayResult:
    """What to render, plus the stats describing how it was chosen.

    Attributes:
        mode: Navigation mode that produced this result
        records: Records to plot (all segments concatenated in segmented mode)
        stats: DisplayStats for the status bar
        candidates: Full-fidelity records before zoom and decimation; brush
            selections are validated against these
        segments: Per-bucket series (segmented mode only)
        time_range: Filter bounds used by the preset and window modes
    """
    mode: NavigationMode
    records: tuple[FormattedRecord, ...]
    stats: DisplayStats
    candidates: tuple[FormattedRecord, ...] = ()
    segments: tuple[TimeSegment, ...] = ()
    time_range: Tuple[Optional[int], Optional[int]] = (None, None)

    @property
    def is_empty(self) -> bool:
        return not self.records


def page_count(total: int, page_size: int) -> int:
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    return max(1, math.ceil(total / page_size))


def paginate(
    records: Sequence[FormattedRecord],
    page_size: int,
    page: int,
) -> tuple[list[FormattedRecord], int, int]:
    """Slice one page out of *records*.

    Pages are contiguous and non-overlapping; the last one may be shorter.

    Args:
        records: Chronologically sorted records
        page_size: Records per page (>= 1)
        page: 1-based page number, clamped to the valid range

    Returns:
        (page records, clamped page number, total pages)
    """
    total_pages = page_count(len(records), page_size)
    page = max(1, min(page, total_pages))
    start = (page - 1) * page_size
    return list(records[start:start + page_size]), page, total_pages


def iter_pages(records: Sequence[FormattedRecord], page_size: int) -> Iterator[list[FormattedRecord]]:
    """Every page in order."""
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    for start in range(0, len(records), page_size):
        yield list(records[start:start + page_size])


def select_display(
    records: Sequence[FormattedRecord],
    state: NavigationState,
    zoom_budget_ratio: float = DEFAULT_ZOOM_BUDGET_RATIO,
) -> DisplayResult:
    """Run the strategy for the state's mode over the full formatted series."""
    mode = state.mode
    if mode == NavigationMode.PAGINATION:
        return _select_page(records, state)
    if mode == NavigationMode.SEGMENTED:
        return _select_segments(records, state)
    return _select_time_window(records, state, zoom_budget_ratio)


def _select_time_window(
    records: Sequence[FormattedRecord],
    state: NavigationState,
    zoom_budget_ratio: float,
) -> DisplayResult:
    start, end = state.time_range()
    candidates = filter_time_range(records, start, end)

    zoom = state.zoom
    if zoom.is_active:
        visible = filter_time_range(candidates, zoom.start, zoom.end)
        budget = state.zoom_budget(zoom_budget_ratio)
    else:
        visible = candidates
        budget = state.max_display_points

    displayed, stride = stride_decimate(visible, budget)
    if stride > 1:
        logger.info(
            "Sampled data from %d to %d points (rate: 1/%d)", len(visible), len(displayed), stride
        )

    return DisplayResult(
        mode=state.mode,
        records=tuple(displayed),
        stats=DisplayStats(total=len(records), displayed=len(displayed), sampling_rate=stride),
        candidates=tuple(candidates),
        time_range=(start, end),
    )


def _select_page(records: Sequence[FormattedRecord], state: NavigationState) -> DisplayResult:
    page_records, page, total_pages = paginate(records, state.max_display_points, state.current_page)

    zoom = state.zoom
    visible = filter_time_range(page_records, zoom.start, zoom.end) if zoom.is_active else page_records

    return DisplayResult(
        mode=NavigationMode.PAGINATION,
        records=tuple(visible),
        stats=DisplayStats(
            total=len(records),
            displayed=len(visible),
            sampling_rate=1,
            current_page=page,
            total_pages=total_pages,
        ),
        candidates=tuple(page_records),
    )


def _select_segments(records: Sequence[FormattedRecord], state: NavigationState) -> DisplayResult:
    segments = segment_records(records, state.segment_duration_ms)

    zoom = state.zoom
    if zoom.is_active:
        zoomed = []
        for segment in segments:
            kept = filter_time_range(segment.records, zoom.start, zoom.end)
            if kept:
                zoomed.append(TimeSegment(segment.start_ms, segment.end_ms, tuple(kept)))
        segments = zoomed

    flattened = tuple(r for segment in segments for r in segment.records)
    return DisplayResult(
        mode=NavigationMode.SEGMENTED,
        records=flattened,
        stats=DisplayStats(total=len(records), displayed=len(flattened), sampling_rate=1),
        candidates=tuple(records),
        segments=tuple(segments),
    )
