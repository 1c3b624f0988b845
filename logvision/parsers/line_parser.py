"""
Line parser for timestamped, free-form log text.

Highlights:
- Fixed leading timestamp grammar "YYYY/MM/DD HH:mm:ss.ffffff", compiled once.
- Fast timestamp construction from the matched fields (no strptime).
- Exception-free numeric detection (regex checks first, then convert).
- Every pattern is applied independently; one failing pattern never
  prevents the others from matching the same line.
- Carry-forward fill from the run's accumulator; a sample is emitted only
  when the line produced at least one fresh value.
"""

from __future__ import annotations

import re
import sys
from datetime import datetime
from typing import Iterable, Iterator, Optional

from logvision.models import TypedSample
from logvision.models.data_types import Value
from .run_context import RunContext

# ---------------------- Small fast utilities (shared) ----------------------

TIMESTAMP_RE = re.compile(
    r"^(\d{4})/(\d{2})/(\d{2}) (\d{2}):(\d{2}):(\d{2})\.(\d{6})",
    re.ASCII,
)

# Numeric literal detection (avoid exceptions in hot path)
_INT_RE = re.compile(
    r"^[+-]?(?:0[xX][0-9A-Fa-f]+|0[bB][01]+|0[oO][0-7]+|\d+)$"
)
_FLT_RE = re.compile(
    r"^[+-]?(?:\d+\.\d*|\.\d+)(?:[eE][+-]?\d+)?$"
    r"|^[+-]?\d+[eE][+-]?\d+$"
)


def parse_timestamp(line: str, ts_re: re.Pattern = TIMESTAMP_RE) -> Optional[datetime]:
    """Return the leading timestamp of *line*, or None if absent or invalid."""
    m = ts_re.match(line)
    if not m:
        return None
    year, month, day, hour, minute, second, micro = (int(g) for g in m.groups())
    try:
        return datetime(year, month, day, hour, minute, second, micro)
    except ValueError:
        # e.g. 2024/02/30
        return None


def _parse_int_like(s: str) -> int:
    sign = -1 if s.startswith("-") else 1
    t = s.lstrip("+-")
    prefix = t[:2].lower()
    if prefix == "0x":
        return sign * int(t[2:], 16)
    if prefix == "0b":
        return sign * int(t[2:], 2)
    if prefix == "0o":
        return sign * int(t[2:], 8)
    return sign * int(t, 10)


def coerce_value(raw: str) -> Value:
    """Numeric literals become int/float, anything else stays a string."""
    s = raw.strip()
    if not s:
        return raw
    if _INT_RE.match(s):
        return _parse_int_like(s)
    if _FLT_RE.match(s):
        return float(s)
    return raw


# ---------------------- Parser ----------------------

class LineParser:
    """Turns single log lines into TypedSamples using a run's patterns."""

    def __init__(self, context: RunContext, timestamp_re: re.Pattern = TIMESTAMP_RE):
        self.context = context
        self.timestamp_re = timestamp_re

    def parse_line(self, line: str) -> Optional[TypedSample]:
        """Parse one line; returns None for lines that carry no fresh values."""
        if not line or line.isspace():
            return None

        timestamp = parse_timestamp(line, self.timestamp_re)
        if timestamp is None:
            return None

        ctx = self.context
        values: dict[str, Value] = {}
        fresh: list[str] = []

        for compiled in ctx.compiled:
            if not compiled.has_capture_group:
                continue
            m = compiled.regex.search(line)
            if m is None:
                continue
            raw = m.group(1)
            if raw is None:
                continue

            value = coerce_value(raw)
            name = compiled.name
            values[name] = value
            fresh.append(name)
            ctx.accumulator.update(name, value)
            ctx.record_match(name)
            if isinstance(value, str):
                ctx.interner.add(name, sys.intern(value))

        if not fresh:
            return None

        for name in ctx.pattern_names:
            if name not in values and name in ctx.accumulator:
                values[name] = ctx.accumulator.get(name)

        return TypedSample(timestamp=timestamp, values=values, fresh=frozenset(fresh))

    def parse_lines(self, lines: Iterable[str]) -> Iterator[TypedSample]:
        """Yield samples for every productive line, in input order."""
        for line in lines:
            sample = self.parse_line(line.rstrip("\r"))
            if sample is not None:
                yield sample
