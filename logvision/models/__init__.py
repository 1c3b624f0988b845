"""Data models for extracted signals and display results."""

from .data_types import (
    CHART_COLORS,
    NavigationMode,
    Pattern,
    Signal,
    TypedSample,
    FormattedRecord,
    ParseError,
    ExtractionResult,
    DisplayStats,
)
from .segment import TimeSegment

__all__ = [
    "CHART_COLORS",
    "NavigationMode",
    "Pattern",
    "Signal",
    "TypedSample",
    "FormattedRecord",
    "ParseError",
    "ExtractionResult",
    "DisplayStats",
    "TimeSegment",
]
