"""Fixed-duration segmentation of a formatted series."""

from __future__ import annotations

import logging
from typing import Sequence

from logvision.models import FormattedRecord, TimeSegment

logger = logging.getLogger(__name__)

MINUTE_MS = 60 * 1000


def segment_key(timestamp_ms: int, duration_ms: int) -> int:
    """Start of the epoch-aligned bucket that contains *timestamp_ms*."""
    return (timestamp_ms // duration_ms) * duration_ms


def segment_records(
    records: Sequence[FormattedRecord],
    duration_ms: int,
) -> list[TimeSegment]:
    """Partition *records* into consecutive [start, start + duration) buckets.

    Buckets are aligned to multiples of the duration since the epoch.
    Every record is kept; buckets without records are dropped.

    Args:
        records: Chronologically sorted records
        duration_ms: Bucket width in milliseconds

    Returns:
        Non-empty TimeSegments in chronological order
    """
    if duration_ms <= 0:
        raise ValueError("Segment duration must be positive")
    if not records:
        return []

    segments: list[TimeSegment] = []
    current_key = segment_key(records[0].timestamp_ms, duration_ms)
    bucket: list[FormattedRecord] = []

    for record in records:
        key = segment_key(record.timestamp_ms, duration_ms)
        if key != current_key:
            if bucket:
                segments.append(TimeSegment(current_key, current_key + duration_ms, tuple(bucket)))
            current_key = key
            bucket = []
        bucket.append(record)

    if bucket:
        segments.append(TimeSegment(current_key, current_key + duration_ms, tuple(bucket)))

    logger.debug(
        "Created %d segments of %d min from %d points",
        len(segments), duration_ms // MINUTE_MS, len(records),
    )
    return segments
