"""Fixed-duration time segment produced by the segmented display mode."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .data_types import FormattedRecord


@dataclass(frozen=True)
class TimeSegment:
    """A non-empty bucket of records covering [start_ms, end_ms)."""
    start_ms: int
    end_ms: int
    records: tuple[FormattedRecord, ...] = field(default_factory=tuple)

    @property
    def record_count(self) -> int:
        return len(self.records)

    @property
    def duration(self) -> timedelta:
        return timedelta(milliseconds=self.end_ms - self.start_ms)

    @property
    def start_time(self) -> datetime:
        return datetime.fromtimestamp(self.start_ms / 1000, tz=timezone.utc)

    def contains(self, timestamp_ms: int) -> bool:
        return self.start_ms <= timestamp_ms < self.end_ms

    def __str__(self) -> str:
        start = self.start_time.strftime("%Y-%m-%d %H:%M")
        return f"Segment {start} ({self.record_count} points)"
