"""Point reduction and time filtering over chronologically sorted sequences."""

from __future__ import annotations

import math
from bisect import bisect_left, bisect_right
from typing import Optional, Sequence, TypeVar

from logvision.models import FormattedRecord

T = TypeVar("T")


def stride_decimate(items: Sequence[T], budget: int) -> tuple[list[T], int]:
    """Keep every Nth item so the result fits *budget*.

    The last item is always appended when the stride skips it, so the
    output spans the same first and last timestamp as the input.

    Returns:
        (kept items, stride). A stride of 1 means nothing was dropped.
    """
    if budget < 1:
        raise ValueError("budget must be >= 1")

    count = len(items)
    if count <= budget:
        return list(items), 1

    stride = math.ceil(count / budget)
    kept = list(items[::stride])
    if (count - 1) % stride != 0:
        kept.append(items[-1])
    return kept, stride


def distributed_sample(items: Sequence[T], target_size: int) -> list[T]:
    """Evenly distributed sample that always includes the first and last item.

    Returns at most *target_size* items (never fewer than two for a
    non-trivial input).
    """
    count = len(items)
    if count <= target_size:
        return list(items)
    if target_size < 2:
        return [items[0], items[-1]]

    # step > 1 here, so rounded indices are strictly increasing
    step = (count - 1) / (target_size - 1)
    return [items[round(i * step)] for i in range(target_size)]


def filter_time_range(
    records: Sequence[FormattedRecord],
    start_ms: Optional[int] = None,
    end_ms: Optional[int] = None,
) -> list[FormattedRecord]:
    """Records with start_ms <= timestamp <= end_ms; a missing bound is open.

    Relies on *records* being sorted by timestamp.
    """
    if start_ms is None and end_ms is None:
        return list(records)

    keys = [r.timestamp_ms for r in records]
    lo = 0 if start_ms is None else bisect_left(keys, start_ms)
    hi = len(keys) if end_ms is None else bisect_right(keys, end_ms)
    if hi <= lo:
        return []
    return list(records[lo:hi])


def count_in_range(records: Sequence[FormattedRecord], start_ms: int, end_ms: int) -> int:
    """Number of records inside the inclusive range."""
    keys = [r.timestamp_ms for r in records]
    return max(0, bisect_right(keys, end_ms) - bisect_left(keys, start_ms))
