"""Central session manager for extracted signal data and shared display state."""

from __future__ import annotations

import logging
from functools import partial
from typing import Iterable, Optional, Union

from PySide6.QtCore import QObject, QTimer, Signal

from logvision.config import DisplaySettings
from logvision.models import (
    ExtractionResult,
    FormattedRecord,
    NavigationMode,
    Pattern,
    Signal as SignalDef,
)
from logvision.utils import DisplayResult, NavigationState, select_display
from logvision.utils.formatter import FormatReport
from .ingestion import ChunkedIngestionScheduler, IngestionOutcome, IngestionRun

logger = logging.getLogger(__name__)


class SessionManager(QObject):
    """Coordinates ingestion, caching, and display selection for one dataset.

    A new `load_log()` discards the previous dataset. Every run is tagged
    with a generation number; completions from an older generation are
    ignored.
    """

    session_cleared = Signal()
    session_ready = Signal(object)  # IngestionOutcome
    no_data = Signal(object)  # ExtractionResult
    parse_started = Signal(int)  # generation
    parse_progress = Signal(int, int, str)  # chunks done, total chunks, message
    parse_status = Signal(str)
    parse_failed = Signal(str)
    display_changed = Signal(object)  # DisplayResult
    signals_changed = Signal()

    def __init__(self, settings: Optional[DisplaySettings] = None, parent=None):
        super().__init__(parent)
        self._settings = settings or DisplaySettings()
        self._generation = 0
        self._scheduler: Optional[ChunkedIngestionScheduler] = None

        self._extraction: Optional[ExtractionResult] = None
        self._format_report: Optional[FormatReport] = None
        self._records: tuple[FormattedRecord, ...] = ()
        self._signals: list[SignalDef] = []
        self._display: Optional[DisplayResult] = None
        self._recompute_pending = False

        # Shared navigation state for every view of this session
        self._navigation = NavigationState(self)
        self._apply_settings(self._settings)
        self._navigation.changed.connect(self._schedule_recompute)

    # ------------------------------------------------------------------ Properties
    @property
    def settings(self) -> DisplaySettings:
        return self._settings

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def navigation_state(self) -> NavigationState:
        """Get the shared navigation state."""
        return self._navigation

    @property
    def extraction_result(self) -> Optional[ExtractionResult]:
        return self._extraction

    @property
    def format_report(self) -> Optional[FormatReport]:
        return self._format_report

    @property
    def records(self) -> tuple[FormattedRecord, ...]:
        return self._records

    @property
    def signals(self) -> list[SignalDef]:
        return list(self._signals)

    @property
    def visible_signals(self) -> list[SignalDef]:
        return [s for s in self._signals if s.visible]

    @property
    def display(self) -> Optional[DisplayResult]:
        """Most recently computed display selection."""
        return self._display

    @property
    def has_data(self) -> bool:
        return bool(self._records)

    @property
    def is_parsing(self) -> bool:
        return bool(self._scheduler and self._scheduler.is_running)

    # ------------------------------------------------------------------ Public API
    def load_log(
        self,
        log_text: Union[str, Iterable[str]],
        patterns: Optional[Iterable[Pattern]] = None,
    ) -> int:
        """Start a fresh ingestion run and return its generation number.

        Any run still in flight becomes stale. Raises ValueError for an
        unusable pattern list (duplicate names).
        """
        if patterns is None:
            patterns = self._settings.patterns

        # Validates the patterns before the current dataset is touched
        run = IngestionRun(log_text, patterns, self._settings, self._generation + 1)
        self._generation = generation = run.generation
        self._clear_session_data()

        scheduler = ChunkedIngestionScheduler(run, self)
        scheduler.progress.connect(partial(self._on_progress, generation))
        scheduler.status.connect(partial(self._on_status, generation))
        scheduler.finished.connect(self._on_run_finished)
        scheduler.failed.connect(self._on_run_failed)
        scheduler.finished.connect(scheduler.deleteLater)
        scheduler.failed.connect(scheduler.deleteLater)
        self._scheduler = scheduler

        logger.info(
            "Starting ingestion run %d: %d lines, %d patterns, chunk size %d",
            generation, len(run.lines), len(run.context.compiled), run.chunk_size,
        )
        self.parse_started.emit(generation)
        scheduler.start()
        return generation

    def clear_session(self):
        """Reset all extracted state; an in-flight run becomes stale."""
        self._generation += 1
        self._scheduler = None
        self._clear_session_data()
        self.session_cleared.emit()

    def apply_settings(self, settings: DisplaySettings):
        """Replace the display settings; the current dataset is kept."""
        self._settings = settings
        self._apply_settings(settings)
        self._schedule_recompute()

    def current_display(self) -> Optional[DisplayResult]:
        """Recompute the display selection synchronously."""
        if not self._records:
            return None
        self._display = select_display(
            self._records, self._navigation, self._settings.zoom_budget_ratio
        )
        return self._display

    def toggle_signal_visibility(self, signal_id: str) -> bool:
        """Flip one signal's visibility; returns False for an unknown id."""
        for signal in self._signals:
            if signal.id == signal_id:
                signal.visible = not signal.visible
                self.signals_changed.emit()
                return True
        return False

    def apply_brush(self, start_ms: int, end_ms: int) -> bool:
        """Zoom the current view into a timestamp range."""
        display = self._fresh_display()
        if display is None:
            return False
        return self._navigation.apply_brush(start_ms, end_ms, display.candidates)

    def apply_brush_indices(self, start_index: int, end_index: int) -> bool:
        """Zoom using indices into the currently displayed records."""
        display = self._fresh_display()
        if display is None:
            return False
        return self._navigation.apply_brush_indices(
            start_index, end_index, display.records, display.candidates
        )

    def reset_zoom(self):
        self._navigation.reset_zoom()

    # ------------------------------------------------------------------ Internals
    def _fresh_display(self) -> Optional[DisplayResult]:
        # Cached selection is stale while a recompute is queued
        if self._display is None or self._recompute_pending:
            return self.current_display()
        return self._display

    def _apply_settings(self, settings: DisplaySettings):
        nav = self._navigation
        nav.set_max_display_points(settings.max_display_points)
        nav.set_window_size(settings.window_size_hours)
        nav.set_segment_duration(settings.segment_duration_minutes)
        if settings.navigation_mode == NavigationMode.PRESET:
            nav.set_time_range_preset(settings.time_range_preset)
        else:
            nav.set_mode(settings.navigation_mode)

    def _on_progress(self, generation: int, done: int, total: int, message: str):
        if generation != self._generation:
            return
        self.parse_progress.emit(done, total, message)

    def _on_status(self, generation: int, message: str):
        if generation == self._generation:
            self.parse_status.emit(message)

    def _on_run_finished(self, generation: int, outcome: IngestionOutcome):
        self._teardown_scheduler(generation)
        if generation != self._generation:
            logger.debug("Ignoring stale ingestion result (generation %d, current %d)",
                         generation, self._generation)
            return

        extraction = outcome.extraction
        self._extraction = extraction
        self._signals = list(extraction.signals)

        if outcome.is_empty or outcome.formatted is None:
            self.no_data.emit(extraction)
            return

        self._format_report = outcome.formatted
        self._records = outcome.formatted.records
        if outcome.formatted.degraded:
            logger.warning(
                "Display series degraded to %d of %d samples",
                outcome.formatted.record_count, outcome.formatted.source_count,
            )

        self.session_ready.emit(outcome)
        self.signals_changed.emit()
        # Emits changed, which schedules the first display computation
        self._navigation.set_data_range(
            self._records[0].timestamp_ms,
            self._records[-1].timestamp_ms,
            len(self._records),
        )

    def _on_run_failed(self, generation: int, message: str):
        self._teardown_scheduler(generation)
        if generation != self._generation:
            logger.debug("Ignoring stale ingestion failure (generation %d)", generation)
            return
        self._clear_session_data()
        self.parse_failed.emit(message)

    def _schedule_recompute(self):
        if self._recompute_pending:
            return
        self._recompute_pending = True
        QTimer.singleShot(0, self._recompute_display)

    def _recompute_display(self):
        self._recompute_pending = False
        display = self.current_display()
        if display is not None:
            self.display_changed.emit(display)

    def _teardown_scheduler(self, generation: int):
        if self._scheduler is not None and self._scheduler.generation == generation:
            self._scheduler = None

    def _clear_session_data(self):
        self._extraction = None
        self._format_report = None
        self._records = ()
        self._signals = []
        self._display = None
        self._navigation.clear_data()
