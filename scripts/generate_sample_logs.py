"""Generate synthetic logs in the `YYYY/MM/DD HH:mm:ss.ffffff` grammar.

Run as:
    python scripts/generate_sample_logs.py --output-dir sample_logs
    python scripts/generate_sample_logs.py --scenario large --lines 2000000
"""

from __future__ import annotations

import argparse
import random
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, Iterator

# Ensure the package root is importable when executing the script directly
PACKAGE_ROOT = Path(__file__).resolve().parents[1]
if str(PACKAGE_ROOT) not in sys.path:
    sys.path.insert(0, str(PACKAGE_ROOT))

from logvision.parsers import TIMESTAMP_RE

STATES = ("IDLE", "RUNNING", "PAUSED", "FAULT")

SETTINGS_TEMPLATE = """\
display:
  max_display_points: 5000
  navigation_mode: preset
  time_range_preset: all
  segment_duration_minutes: 30
patterns:
  - name: CPU
    regex: 'CPU=(\\d+)'
    description: CPU load in percent
  - name: MEM
    regex: 'MEM=(\\d+(?:\\.\\d+)?)'
    description: Memory usage in GB
  - name: STATE
    regex: 'state=(\\w+)'
    description: Machine state
  - name: TEMP
    regex: 'temp=(-?\\d+\\.\\d+)'
"""


def _format_timestamp(dt: datetime) -> str:
    """Format a datetime with microsecond precision in the log grammar."""
    return dt.strftime("%Y/%m/%d %H:%M:%S.%f")


def _system_lines(rng: random.Random, start: datetime, count: int, step_ms: int) -> Iterator[str]:
    cpu, mem, temp = 20, 2.0, 40.0
    state = "IDLE"
    delta = timedelta(milliseconds=step_ms)
    current = start
    for _ in range(count):
        ts = _format_timestamp(current)
        roll = rng.random()
        if roll < 0.35:
            cpu = max(0, min(100, cpu + rng.randint(-7, 7)))
            yield f"{ts} INFO monitor CPU={cpu}"
        elif roll < 0.6:
            mem = round(max(0.5, mem + rng.uniform(-0.2, 0.2)), 2)
            yield f"{ts} INFO monitor MEM={mem}"
        elif roll < 0.7:
            cpu = max(0, min(100, cpu + rng.randint(-3, 3)))
            yield f"{ts} INFO monitor CPU={cpu} MEM={mem}"
        elif roll < 0.78:
            state = rng.choice(STATES)
            yield f"{ts} WARN controller state={state}"
        elif roll < 0.9:
            temp = round(temp + rng.uniform(-0.5, 0.5), 1)
            yield f"{ts} DEBUG sensor temp={temp}"
        else:
            yield f"{ts} DEBUG heartbeat ok"
        current += delta


def _generate_system_log(output_dir: Path, lines: int, rng: random.Random) -> Path:
    """Mixed numeric and string signals, one line every 250 ms."""
    file_path = output_dir / "system_monitor.log"
    start = datetime(2024, 1, 1, 9, 0, 0)
    with open(file_path, "w", encoding="utf-8") as f:
        for line in _system_lines(rng, start, lines, step_ms=250):
            f.write(line + "\n")
    return file_path


def _generate_sparse_log(output_dir: Path, lines: int, rng: random.Random) -> Path:
    """Bursty activity separated by long silent gaps (exercises empty segments)."""
    file_path = output_dir / "sparse_bursts.log"
    current = datetime(2024, 1, 1, 0, 0, 0)
    with open(file_path, "w", encoding="utf-8") as f:
        written = 0
        while written < lines:
            burst = min(lines - written, rng.randint(20, 200))
            for line in _system_lines(rng, current, burst, step_ms=100):
                f.write(line + "\n")
            written += burst
            current += timedelta(milliseconds=100 * burst, hours=rng.choice((1, 2, 5)))
    return file_path


def _generate_noisy_log(output_dir: Path, lines: int, rng: random.Random) -> Path:
    """Valid lines interleaved with malformed timestamps and free text."""
    file_path = output_dir / "noisy.log"
    start = datetime(2024, 2, 29, 23, 0, 0)
    noise = (
        "2024-02-29 23:00:00.000 CPU=99",
        "2024/13/01 00:00:00.000000 CPU=50",
        "  stack trace follows",
        "",
    )
    with open(file_path, "w", encoding="utf-8") as f:
        for line in _system_lines(rng, start, lines, step_ms=500):
            f.write(line + "\n")
            if rng.random() < 0.1:
                f.write(rng.choice(noise) + "\n")
    return file_path


def main():
    parser = argparse.ArgumentParser(
        description="Generate synthetic timestamped logs for signal extraction."
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("generated_logs"),
        help="Directory to write the generated log files (defaults to ./generated_logs)",
    )
    parser.add_argument(
        "--scenario",
        choices=("system", "sparse", "noisy", "all"),
        default="all",
        help="Which log shape to generate",
    )
    parser.add_argument("--lines", type=int, default=10_000, help="Lines per log file")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args()

    output_dir: Path = args.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)
    rng = random.Random(args.seed)

    generators: Dict[str, Callable[[Path, int, random.Random], Path]] = {
        "system": _generate_system_log,
        "sparse": _generate_sparse_log,
        "noisy": _generate_noisy_log,
    }
    selected = generators if args.scenario == "all" else {args.scenario: generators[args.scenario]}

    print("Generated sample logs:")
    for name, generator in selected.items():
        file_path = generator(output_dir, args.lines, rng)
        with open(file_path, encoding="utf-8") as f:
            first = f.readline()
        if not TIMESTAMP_RE.match(first):
            print(f"  ! {name}: first line does not carry a valid timestamp", file=sys.stderr)
        print(f"  - {name}: {file_path}")

    settings_path = output_dir / "settings.yaml"
    settings_path.write_text(SETTINGS_TEMPLATE, encoding="utf-8")
    print(f"\nMatching settings file: {settings_path}")


if __name__ == "__main__":
    main()
