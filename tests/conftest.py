"""Pytest configuration for tests."""

import os
import sys
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest
import yaml

# Add the parent directory to the path so we can import logvision
parent_dir = Path(__file__).parent.parent
if str(parent_dir) not in sys.path:
    sys.path.insert(0, str(parent_dir))

# No display server in CI
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from logvision.models import FormattedRecord, Pattern

BASE_TIME = datetime(2024, 1, 1, 0, 0, 0)
# 2024-01-01T00:00:00Z in epoch milliseconds
BASE_MS = 1_704_067_200_000


def format_log_timestamp(dt: datetime) -> str:
    return dt.strftime("%Y/%m/%d %H:%M:%S.%f")


@pytest.fixture
def cpu_mem_patterns():
    return [
        Pattern("CPU", r"CPU=(\d+)"),
        Pattern("MEM", r"MEM=(\d+)"),
    ]


@pytest.fixture
def cpu_mem_log():
    """Three lines where MEM only appears on the last one."""
    return (
        "2024/01/01 00:00:00.000000 CPU=10\n"
        "2024/01/01 00:00:01.000000 CPU=20\n"
        "2024/01/01 00:00:02.000000 MEM=30"
    )


@pytest.fixture
def state_log():
    """Log with a string-valued signal seen out of lexicographic order."""
    lines = [
        "2024/01/01 00:00:00.000000 state=RUNNING load=0.5",
        "2024/01/01 00:00:00.500000 heartbeat",
        "2024/01/01 00:00:01.000000 state=IDLE",
        "2024/01/01 00:00:02.000000 load=1.25e1",
        "2024/01/01 00:00:03.000000 state=FAULT load=-2",
        "2024/01/01 00:00:04.000000 state=IDLE",
    ]
    return "\n".join(lines)


@pytest.fixture
def state_patterns():
    return [
        Pattern("STATE", r"state=(\w+)"),
        Pattern("LOAD", r"load=(\S+)"),
    ]


@pytest.fixture
def make_log():
    """Factory: `count` lines of `CPU=<i>` spaced `step` apart from BASE_TIME."""

    def _make(count: int, step: timedelta = timedelta(seconds=1), template: str = "CPU={i}") -> str:
        lines = []
        for i in range(count):
            ts = format_log_timestamp(BASE_TIME + i * step)
            lines.append(f"{ts} {template.format(i=i)}")
        return "\n".join(lines)

    return _make


@pytest.fixture
def make_records():
    """Factory: formatted records at the given epoch-ms timestamps."""

    def _make(timestamps, signal: str = "CPU"):
        return [
            FormattedRecord(timestamp_ms=ts, values={signal: index})
            for index, ts in enumerate(timestamps)
        ]

    return _make


@pytest.fixture
def minute_records(make_records):
    """One record per minute for 10 hours starting at BASE_MS."""
    return make_records([BASE_MS + i * 60_000 for i in range(600)])


@pytest.fixture
def sample_settings_file():
    """Create a temporary YAML settings file for testing."""
    config = {
        "display": {
            "max_display_points": 2000,
            "navigation_mode": "segmented",
            "segment_duration_minutes": 15,
            "zoom_budget_ratio": 0.5,
        },
        "patterns": [
            {"name": "CPU", "regex": r"CPU=(\d+)", "description": "CPU load"},
            {"name": "STATE", "pattern": r"state=(\w+)"},
        ],
    }

    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump(config, f)
        temp_path = f.name

    yield temp_path

    # Cleanup
    Path(temp_path).unlink()
