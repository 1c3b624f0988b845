"""Conversion of typed samples into flat, ordinal-encoded records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterator, Mapping, Sequence

from logvision.models import FormattedRecord, TypedSample
from .sampling import distributed_sample

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1)
_ONE_MS = timedelta(milliseconds=1)

DEFAULT_BATCH_SIZE = 10_000
DEFAULT_FALLBACK_SAMPLE_SIZE = 100_000


def to_epoch_ms(timestamp: datetime) -> int:
    """Epoch milliseconds; naive timestamps are read as UTC."""
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc).replace(tzinfo=None)
    return (timestamp - _EPOCH) // _ONE_MS


@dataclass
class FormatReport:
    """Outcome of formatting a full sample sequence."""
    records: tuple[FormattedRecord, ...]
    source_count: int
    unmapped: int = 0
    degraded: bool = False
    unmapped_signals: set[str] = field(default_factory=set)

    @property
    def record_count(self) -> int:
        return len(self.records)


class SampleFormatter:
    """Formats samples against a finalized StringOrdinalMap."""

    def __init__(self, string_value_map: Mapping[str, Mapping[str, int]]):
        self.string_value_map = string_value_map
        self.unmapped = 0
        self.unmapped_signals: set[str] = set()

    def format_sample(self, sample: TypedSample) -> FormattedRecord:
        values: dict = {}
        originals: dict = {}
        for name, value in sample.values.items():
            if isinstance(value, str):
                ordinal = self.string_value_map.get(name, {}).get(value)
                if ordinal is None:
                    # Interner and formatter disagree; should never happen.
                    self.unmapped += 1
                    self.unmapped_signals.add(name)
                    logger.error(
                        "String value %r of signal %r missing from ordinal map", value, name
                    )
                    ordinal = 0
                values[name] = ordinal
                originals[name] = value
            else:
                values[name] = value
        return FormattedRecord(
            timestamp_ms=to_epoch_ms(sample.timestamp),
            values=values,
            originals=originals,
        )

    def report(self, records: Sequence[FormattedRecord], source_count: int) -> FormatReport:
        return FormatReport(
            records=tuple(records),
            source_count=source_count,
            unmapped=self.unmapped,
            unmapped_signals=set(self.unmapped_signals),
        )

    def iter_batches(
        self,
        samples: Sequence[TypedSample],
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> Iterator[list[FormattedRecord]]:
        """Yield formatted records one batch at a time, preserving order."""
        for start in range(0, len(samples), batch_size):
            yield [self.format_sample(s) for s in samples[start:start + batch_size]]


def format_samples(
    samples: Sequence[TypedSample],
    string_value_map: Mapping[str, Mapping[str, int]],
) -> tuple[FormattedRecord, ...]:
    """Single-pass formatting of the whole (sorted) sequence."""
    formatter = SampleFormatter(string_value_map)
    return tuple(formatter.format_sample(s) for s in samples)


def format_with_fallback(
    samples: Sequence[TypedSample],
    string_value_map: Mapping[str, Mapping[str, int]],
    batch_size: int = DEFAULT_BATCH_SIZE,
    fallback_sample_size: int = DEFAULT_FALLBACK_SAMPLE_SIZE,
    formatter_cls: type = SampleFormatter,
) -> FormatReport:
    """Format everything, or an evenly distributed sub-sample if memory runs out.

    Raises:
        MemoryError: if the sampled second pass fails as well
    """
    try:
        return _format_all(samples, string_value_map, batch_size, formatter_cls)
    except MemoryError:
        return format_sampled(samples, string_value_map, batch_size, fallback_sample_size, formatter_cls)


def format_sampled(
    samples: Sequence[TypedSample],
    string_value_map: Mapping[str, Mapping[str, int]],
    batch_size: int = DEFAULT_BATCH_SIZE,
    fallback_sample_size: int = DEFAULT_FALLBACK_SAMPLE_SIZE,
    formatter_cls: type = SampleFormatter,
) -> FormatReport:
    """Degraded pass: format an evenly distributed sub-sample of `samples`."""
    sampled = distributed_sample(samples, fallback_sample_size)
    logger.warning(
        "Out of memory formatting %d samples; retrying with %d distributed samples",
        len(samples), len(sampled),
    )
    report = _format_all(sampled, string_value_map, batch_size, formatter_cls)
    report.source_count = len(samples)
    report.degraded = True
    return report


def _format_all(
    samples: Sequence[TypedSample],
    string_value_map: Mapping[str, Mapping[str, int]],
    batch_size: int,
    formatter_cls: type,
) -> FormatReport:
    formatter = formatter_cls(string_value_map)
    records: list[FormattedRecord] = []
    for batch in formatter.iter_batches(samples, batch_size):
        records.extend(batch)
    return formatter.report(records, len(samples))
