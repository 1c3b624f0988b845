"""Line parsing and per-run extraction state."""

from .line_parser import LineParser, TIMESTAMP_RE, coerce_value, parse_timestamp
from .run_context import (
    CarryForwardAccumulator,
    CompiledPattern,
    RunContext,
    StringInterner,
)

__all__ = [
    "LineParser",
    "TIMESTAMP_RE",
    "coerce_value",
    "parse_timestamp",
    "CarryForwardAccumulator",
    "CompiledPattern",
    "RunContext",
    "StringInterner",
]
