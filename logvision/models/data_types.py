"""Core data types for log signal extraction and display."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Union

Value = Union[int, float, str]

CHART_COLORS = (
    "#4f46e5",  # indigo-600
    "#0891b2",  # cyan-600
    "#16a34a",  # green-600
    "#ca8a04",  # yellow-600
    "#dc2626",  # red-600
    "#d946ef",  # fuchsia-500
    "#6366f1",  # indigo-500
    "#0d9488",  # teal-600
    "#c026d3",  # purple-600
    "#ea580c",  # orange-600
    "#4338ca",  # indigo-700
    "#64748b",  # slate-500
)


class NavigationMode(Enum):
    """Ways of choosing which records get rendered."""
    PRESET = "preset"
    PAGINATION = "pagination"
    WINDOW = "window"
    SEGMENTED = "segmented"


@dataclass(frozen=True)
class Pattern:
    """A named regular expression whose first capture group is a signal value."""
    name: str
    regex: str
    description: str = ""


@dataclass
class Signal:
    """A named time series derived from one pattern."""
    id: str
    name: str
    pattern: Pattern
    color: str
    visible: bool = True

    @classmethod
    def from_patterns(cls, patterns: list[Pattern]) -> list["Signal"]:
        """Create one signal per pattern, preserving order."""
        return [
            cls(
                id=f"signal-{index}",
                name=pattern.name,
                pattern=pattern,
                color=CHART_COLORS[index % len(CHART_COLORS)],
            )
            for index, pattern in enumerate(patterns)
        ]


@dataclass(frozen=True)
class TypedSample:
    """Values observed (fresh or carried forward) at one timestamp."""
    timestamp: datetime
    values: Mapping[str, Value]
    fresh: frozenset = frozenset()

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))
        object.__setattr__(self, "fresh", frozenset(self.fresh))

    def __repr__(self) -> str:
        return (
            f"TypedSample(time={self.timestamp.strftime('%H:%M:%S.%f')}, "
            f"values={dict(self.values)}, fresh={sorted(self.fresh)})"
        )


@dataclass(frozen=True)
class FormattedRecord:
    """A flat numeric record ready to be plotted."""
    timestamp_ms: int
    values: Mapping[str, Union[int, float]] = field(default_factory=dict)
    originals: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))
        object.__setattr__(self, "originals", MappingProxyType(dict(self.originals)))

    def to_row(self) -> dict:
        """Flat mapping as consumed by chart widgets."""
        row: dict = {"timestamp": self.timestamp_ms}
        for name, value in self.values.items():
            row[name] = value
            if name in self.originals:
                row[f"{name}_original"] = self.originals[name]
        return row


@dataclass
class ParseError:
    """A configuration-quality problem found during a parse run."""
    line: int
    content: str
    reason: str

    def __repr__(self) -> str:
        return f"ParseError(line={self.line}, reason={self.reason})"


@dataclass
class ExtractionResult:
    """Complete result of one parse run, including aggregate diagnostics."""
    samples: list[TypedSample]
    string_value_map: dict[str, dict[str, int]] = field(default_factory=dict)
    signals: list[Signal] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)
    unmatched_patterns: list[str] = field(default_factory=list)
    invalid_patterns: list[str] = field(default_factory=list)
    sample_lines: list[str] = field(default_factory=list)
    line_count: int = 0
    processing_time: Optional[float] = None

    @property
    def sample_count(self) -> int:
        return len(self.samples)

    @property
    def is_empty(self) -> bool:
        """Parsing finished but nothing matched."""
        return not self.samples

    @property
    def success(self) -> bool:
        return not self.is_empty

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def time_range(self) -> Optional[tuple[datetime, datetime]]:
        if not self.samples:
            return None
        return (self.samples[0].timestamp, self.samples[-1].timestamp)


@dataclass(frozen=True)
class DisplayStats:
    """Summary of what the current display strategy rendered."""
    total: int
    displayed: int
    sampling_rate: int = 1
    current_page: Optional[int] = None
    total_pages: Optional[int] = None

    @property
    def is_sampled(self) -> bool:
        return self.sampling_rate > 1
