"""Chunked, cooperatively scheduled ingestion of raw log text."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Union

from PySide6.QtCore import QObject, QTimer, Signal

from logvision.config import DisplaySettings
from logvision.models import ExtractionResult, Pattern, TypedSample
from logvision.parsers import LineParser, RunContext
from logvision.utils.formatter import FormatReport, SampleFormatter, format_sampled

logger = logging.getLogger(__name__)

SAMPLE_LINE_COUNT = 10


@dataclass(frozen=True)
class IngestionProgress:
    """Snapshot reported after every cooperative step."""
    phase: str
    done: int
    total: int
    samples_found: int
    message: str

    @property
    def fraction(self) -> float:
        return self.done / self.total if self.total else 1.0


@dataclass
class IngestionOutcome:
    """Parsed samples plus their formatted series (None when nothing matched)."""
    extraction: ExtractionResult
    formatted: Optional[FormatReport] = None

    @property
    def is_empty(self) -> bool:
        return self.extraction.is_empty


class IngestionRun:
    """One parse run over a fixed input, split into discrete steps.

    The run never blocks for longer than one chunk (or one formatter batch).
    `steps()` is a generator whose every `yield` is a point where the
    caller may hand control back to its event loop.

    Args:
        log_text: Decoded log content, or an iterable of lines
        patterns: Ordered pattern definitions
        settings: Chunking and formatting knobs
        generation: Session generation this run belongs to
        formatter_cls: Formatter used for the display series
    """

    def __init__(
        self,
        log_text: Union[str, Iterable[str]],
        patterns: Iterable[Pattern],
        settings: Optional[DisplaySettings] = None,
        generation: int = 0,
        formatter_cls: type = SampleFormatter,
    ):
        self.settings = settings or DisplaySettings()
        self.generation = generation
        self.formatter_cls = formatter_cls
        self.lines: List[str] = log_text.split("\n") if isinstance(log_text, str) else list(log_text)
        self.context = RunContext(patterns, generation)
        self.parser = LineParser(self.context)

        self.chunk_size = self.settings.chunk_size_for(len(self.lines))
        self.total_chunks = math.ceil(len(self.lines) / self.chunk_size)
        self.chunks_done = 0
        self.samples: List[TypedSample] = []

        self.result: Optional[ExtractionResult] = None
        self.outcome: Optional[IngestionOutcome] = None
        self._started_at = time.perf_counter()

    # ---------- Parsing ----------
    @property
    def parse_complete(self) -> bool:
        return self.chunks_done >= self.total_chunks

    def process_next_chunk(self) -> IngestionProgress:
        """Feed the next chunk of lines through the line parser."""
        if self.parse_complete:
            raise RuntimeError("All chunks already processed")

        start = self.chunks_done * self.chunk_size
        chunk = self.lines[start:start + self.chunk_size]
        self.samples.extend(self.parser.parse_lines(chunk))
        self.chunks_done += 1

        percent = round(self.chunks_done / self.total_chunks * 100)
        return IngestionProgress(
            phase="parse",
            done=self.chunks_done,
            total=self.total_chunks,
            samples_found=len(self.samples),
            message=(
                f"Processing chunk {self.chunks_done} of {self.total_chunks} ({percent}%)"
                f" - found {len(self.samples):,} data points"
            ),
        )

    def finalize(self) -> ExtractionResult:
        """Sort samples, freeze string ordinals and collect diagnostics."""
        if not self.parse_complete:
            raise RuntimeError("Cannot finalize before every chunk is processed")
        if self.result is not None:
            return self.result

        ctx = self.context
        # list.sort is stable: equal timestamps keep input order
        self.samples.sort(key=lambda s: s.timestamp)
        string_value_map = ctx.interner.finalize()

        unmatched = ctx.unmatched_patterns()
        if unmatched and self.samples:
            logger.warning("Patterns never matched any line: %s", ", ".join(unmatched))

        sample_lines: List[str] = []
        if not self.samples:
            sample_lines = [l.rstrip("\r") for l in self.lines if l.strip()][:SAMPLE_LINE_COUNT]
            logger.warning(
                "No matching data found with the provided patterns (%d lines scanned)",
                len(self.lines),
            )

        self.result = ExtractionResult(
            samples=self.samples,
            string_value_map=string_value_map,
            signals=ctx.signals,
            errors=list(ctx.errors),
            unmatched_patterns=unmatched,
            invalid_patterns=list(ctx.invalid_patterns),
            sample_lines=sample_lines,
            line_count=len(self.lines),
            processing_time=time.perf_counter() - self._started_at,
        )
        logger.info(
            "Parsed %d lines into %d samples in %.3fs",
            len(self.lines), len(self.samples), self.result.processing_time,
        )
        return self.result

    # ---------- Formatting ----------
    def _format_steps(self, result: ExtractionResult) -> Iterator[IngestionProgress]:
        batch_size = self.settings.format_batch_size
        total_batches = max(1, math.ceil(len(result.samples) / batch_size))
        formatter = self.formatter_cls(result.string_value_map)
        records = []
        try:
            for index, batch in enumerate(formatter.iter_batches(result.samples, batch_size), start=1):
                records.extend(batch)
                yield IngestionProgress(
                    phase="format",
                    done=index,
                    total=total_batches,
                    samples_found=len(result.samples),
                    message=f"Formatting data for display ({len(records):,} of {len(result.samples):,} points)",
                )
            report = formatter.report(records, len(result.samples))
        except MemoryError:
            records = []
            report = format_sampled(
                result.samples,
                result.string_value_map,
                batch_size=batch_size,
                fallback_sample_size=self.settings.fallback_sample_size,
                formatter_cls=self.formatter_cls,
            )

        if report.unmapped:
            logger.error(
                "%d string values were missing from the ordinal map (signals: %s)",
                report.unmapped, ", ".join(sorted(report.unmapped_signals)),
            )
        self.outcome = IngestionOutcome(extraction=result, formatted=report)

    # ---------- Driver ----------
    def steps(self) -> Iterator[IngestionProgress]:
        """Run the whole pipeline, yielding after every chunk and batch."""
        while not self.parse_complete:
            yield self.process_next_chunk()

        result = self.finalize()
        if result.is_empty:
            self.outcome = IngestionOutcome(extraction=result)
            return

        yield IngestionProgress(
            phase="finalize",
            done=1,
            total=1,
            samples_found=len(result.samples),
            message=f"Found {len(result.samples):,} data points with the selected patterns",
        )
        yield from self._format_steps(result)

    def run_to_completion(self) -> IngestionOutcome:
        """Drive every step synchronously (scripts and tests)."""
        for _ in self.steps():
            pass
        return self.outcome


class ChunkedIngestionScheduler(QObject):
    """Drives an IngestionRun one step per event-loop iteration.

    Signals:
        progress: (chunks done, total chunks, message) after every parse chunk
        status: Human-readable message for the finalize and format steps
        finished: (generation, IngestionOutcome) when the run completes
        failed: (generation, error message) on an unexpected exception
    """

    progress = Signal(int, int, str)
    status = Signal(str)
    finished = Signal(int, object)
    failed = Signal(int, str)

    def __init__(self, run: IngestionRun, parent=None):
        super().__init__(parent)
        self.run = run
        self._steps: Optional[Iterator[IngestionProgress]] = None
        self._running = False

    @property
    def generation(self) -> int:
        return self.run.generation

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self):
        """Schedule the first step; returns immediately."""
        if self._running:
            return
        self._running = True
        self._steps = self.run.steps()
        QTimer.singleShot(0, self._process_step)

    def _process_step(self):
        try:
            step = next(self._steps)
        except StopIteration:
            self._running = False
            self.finished.emit(self.generation, self.run.outcome)
            return
        except Exception as e:
            self._running = False
            logger.exception("Ingestion run %d failed", self.generation)
            self.failed.emit(self.generation, f"Failed to process log data: {e}")
            return

        if step.phase == "parse":
            self.progress.emit(step.done, step.total, step.message)
        else:
            self.status.emit(step.message)
        QTimer.singleShot(0, self._process_step)
