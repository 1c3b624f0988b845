"""Per-run parsing state: compiled patterns, carry-forward and string interning."""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from logvision.models import ParseError, Pattern, Signal
from logvision.models.data_types import Value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledPattern:
    """A pattern whose regex compiled successfully for this run."""
    name: str
    regex: re.Pattern

    @property
    def has_capture_group(self) -> bool:
        return self.regex.groups >= 1


class CarryForwardAccumulator:
    """Last-known value per signal, scoped to a single parse run."""

    def __init__(self):
        self._last: Dict[str, Value] = {}

    def update(self, name: str, value: Value) -> None:
        self._last[name] = value

    def get(self, name: str) -> Optional[Value]:
        return self._last.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._last

    def __len__(self) -> int:
        return len(self._last)

    def snapshot(self) -> Dict[str, Value]:
        return dict(self._last)


class StringInterner:
    """Collects distinct string values per signal and assigns ordinals.

    Ordinals start at 1 and follow ascending lexicographic order of the
    strings, so the same set of values always maps the same way regardless
    of the order they were seen in. Ordinal 0 means "absent".
    """

    def __init__(self):
        self._values: Dict[str, Set[str]] = {}
        self._finalized: Optional[Dict[str, Dict[str, int]]] = None

    def add(self, name: str, value: str) -> None:
        if self._finalized is not None:
            raise RuntimeError("StringInterner already finalized")
        self._values.setdefault(name, set()).add(value)

    def distinct_values(self, name: str) -> Set[str]:
        return set(self._values.get(name, ()))

    def finalize(self) -> Dict[str, Dict[str, int]]:
        """Freeze the collected strings into a StringOrdinalMap."""
        if self._finalized is None:
            self._finalized = {
                name: {value: index for index, value in enumerate(sorted(values), start=1)}
                for name, values in self._values.items()
            }
        return self._finalized

    @property
    def is_finalized(self) -> bool:
        return self._finalized is not None


class RunContext:
    """Everything a single parse run mutates.

    One context per run; nothing here is shared between runs, so a
    superseded run can never leak values into a newer one.
    """

    def __init__(self, patterns: Iterable[Pattern], generation: int = 0):
        self.patterns: List[Pattern] = list(patterns)
        self.generation = generation

        self.pattern_names: tuple = tuple(p.name for p in self.patterns)
        duplicates = sorted(name for name, count in Counter(self.pattern_names).items() if count > 1)
        if duplicates:
            raise ValueError(f"Duplicate pattern names: {', '.join(duplicates)}")

        self.signals: List[Signal] = Signal.from_patterns(self.patterns)
        self.accumulator = CarryForwardAccumulator()
        self.interner = StringInterner()
        self.match_counts: Counter = Counter()
        self.errors: List[ParseError] = []
        self.invalid_patterns: List[str] = []
        self.compiled: List[CompiledPattern] = self._compile_patterns()

    def _compile_patterns(self) -> List[CompiledPattern]:
        compiled: List[CompiledPattern] = []
        for pattern in self.patterns:
            try:
                regex = re.compile(pattern.regex)
            except re.error as e:
                self.invalid_patterns.append(pattern.name)
                self.errors.append(ParseError(
                    line=0,
                    content=pattern.regex,
                    reason=f"Invalid regex for pattern '{pattern.name}': {e}",
                ))
                logger.warning("Skipping pattern %r: invalid regex %r (%s)", pattern.name, pattern.regex, e)
                continue

            if regex.groups < 1:
                logger.warning("Pattern %r has no capture group and will never yield values", pattern.name)
            compiled.append(CompiledPattern(pattern.name, regex))
        return compiled

    def record_match(self, name: str) -> None:
        self.match_counts[name] += 1

    def unmatched_patterns(self) -> List[str]:
        """Valid patterns that never produced a value during the run."""
        return [
            c.name for c in self.compiled
            if self.match_counts[c.name] == 0
        ]
