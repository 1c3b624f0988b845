"""Formatting, sampling and display selection helpers."""

from .formatter import (
    FormatReport,
    SampleFormatter,
    format_samples,
    format_sampled,
    format_with_fallback,
    to_epoch_ms,
)
from .sampling import (
    count_in_range,
    distributed_sample,
    filter_time_range,
    stride_decimate,
)
from .segmentation import segment_key, segment_records
from .navigation_state import NavigationState, ZoomDomain
from .display_strategy import (
    DisplayResult,
    iter_pages,
    page_count,
    paginate,
    select_display,
)

__all__ = [
    'FormatReport',
    'SampleFormatter',
    'format_samples',
    'format_sampled',
    'format_with_fallback',
    'to_epoch_ms',
    'count_in_range',
    'distributed_sample',
    'filter_time_range',
    'stride_decimate',
    'segment_key',
    'segment_records',
    'NavigationState',
    'ZoomDomain',
    'DisplayResult',
    'iter_pages',
    'page_count',
    'paginate',
    'select_display',
]
