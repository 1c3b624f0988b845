"""LogVision - headless runner for signal extraction and display selection."""

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from PySide6.QtCore import QCoreApplication, QTimer

from logvision.app import SessionManager
from logvision.config import DisplaySettings, load_settings, parse_patterns
from logvision.models import NavigationMode


def _format_ms(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y/%m/%d %H:%M:%S.%f")[:-3]


def _parse_inline_patterns(values: list[str]):
    entries = []
    for value in values:
        name, sep, regex = value.partition("=")
        if not sep:
            raise ValueError(f"Inline pattern must look like NAME=REGEX: {value!r}")
        entries.append({"name": name.strip(), "regex": regex})
    return parse_patterns(entries)


def _build_settings(args) -> DisplaySettings:
    settings = load_settings(args.settings) if args.settings else DisplaySettings()
    if args.pattern:
        settings.patterns = settings.patterns + _parse_inline_patterns(args.pattern)
    if args.mode:
        settings.navigation_mode = NavigationMode(args.mode)
    if args.preset:
        settings.time_range_preset = args.preset
    if args.budget:
        settings.max_display_points = args.budget
    if args.segment_minutes:
        settings.segment_duration_minutes = args.segment_minutes
    if args.window_hours:
        settings.window_size_hours = args.window_hours
    return settings


def _print_display(session: SessionManager, display):
    result = session.extraction_result
    report = session.format_report
    stats = display.stats

    print(f"Lines scanned:   {result.line_count:,}")
    print(f"Samples:         {result.sample_count:,} in {result.processing_time:.3f}s")
    if report is not None and report.degraded:
        print(f"Formatted:       {report.record_count:,} of {report.source_count:,} (degraded)")
    print(f"Mode:            {display.mode.value}")
    print(f"Displayed:       {stats.displayed:,} of {stats.total:,}"
          + (f" (1/{stats.sampling_rate} sampling)" if stats.is_sampled else ""))
    if display.mode == NavigationMode.PAGINATION:
        print(f"Page:            {stats.current_page} of {stats.total_pages}")
    if display.segments:
        print(f"Segments:        {len(display.segments)}")
        for segment in display.segments[:10]:
            print(f"  {segment}")
    if display.records:
        print(f"Time span:       {_format_ms(display.records[0].timestamp_ms)}"
              f" -> {_format_ms(display.records[-1].timestamp_ms)}")

    print("Signals:")
    for signal in session.signals:
        values = result.string_value_map.get(signal.name)
        suffix = f" ({len(values)} distinct strings)" if values else ""
        print(f"  {signal.id:<10} {signal.name}{suffix}")
    for name in result.unmatched_patterns:
        print(f"  ! pattern {name} never matched")
    for error in result.errors:
        print(f"  ! {error.reason}")


def main():
    parser = argparse.ArgumentParser(
        description="Extract regex signals from a timestamped log and pick the points to display",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("log", type=Path, help="Log file to ingest")
    parser.add_argument("--settings", "--patterns", dest="settings", type=Path,
                        help="YAML settings file with a 'patterns:' list")
    parser.add_argument("-p", "--pattern", action="append", default=[],
                        help="Inline pattern NAME=REGEX (repeatable)")
    parser.add_argument("--mode", choices=[m.value for m in NavigationMode],
                        help="Navigation mode")
    parser.add_argument("--preset", help="Time range preset (all, 1h, 6h, 12h, 24h, 3d, 7d)")
    parser.add_argument("--budget", type=int, help="Max display points / page size")
    parser.add_argument("--segment-minutes", type=int, help="Segment duration in minutes")
    parser.add_argument("--window-hours", type=int, help="Sliding window width in hours")
    parser.add_argument("--page", type=int, default=1, help="Page to show in pagination mode")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s:%(name)s:%(message)s",
    )

    app = QCoreApplication(sys.argv)
    try:
        settings = _build_settings(args)
        log_text = args.log.read_text(encoding="utf-8", errors="replace")
        session = SessionManager(settings)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    if not settings.patterns:
        print("Error: no patterns given (use --settings or --pattern)", file=sys.stderr)
        sys.exit(2)

    def _on_progress(done: int, total: int, message: str):
        logging.getLogger("logvision").debug(message)

    pending_page = [args.page]

    def _on_display(display):
        # The first display after loading is always page 1
        if pending_page[0] > 1 and display.mode == NavigationMode.PAGINATION:
            page, pending_page[0] = pending_page[0], 1
            if session.navigation_state.set_page(page):
                return
        _print_display(session, display)
        app.exit(0)

    def _on_no_data(result):
        print("No matching data found. First lines of the input:")
        for line in result.sample_lines:
            print(f"  {line}")
        app.exit(1)

    def _on_failed(message: str):
        print(f"Error: {message}", file=sys.stderr)
        app.exit(2)

    session.parse_progress.connect(_on_progress)
    session.parse_status.connect(logging.getLogger("logvision").debug)
    session.display_changed.connect(_on_display)
    session.no_data.connect(_on_no_data)
    session.parse_failed.connect(_on_failed)

    QTimer.singleShot(0, lambda: session.load_log(log_text))
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
