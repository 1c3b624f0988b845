"""Tests for timestamp matching, value coercion and carry-forward parsing."""

from datetime import datetime

import pytest

from logvision.models import Pattern
from logvision.parsers import LineParser, RunContext, coerce_value, parse_timestamp


def _parser(patterns):
    return LineParser(RunContext(patterns))


class TestParseTimestamp:

    def test_microsecond_precision(self):
        ts = parse_timestamp("2024/03/05 14:07:09.123456 anything")
        assert ts == datetime(2024, 3, 5, 14, 7, 9, 123456)

    @pytest.mark.parametrize("line", [
        "2024-03-05 14:07:09.123456 CPU=1",   # wrong separators
        "2024/03/05 14:07:09.123 CPU=1",      # milliseconds only
        " 2024/03/05 14:07:09.123456 CPU=1",  # not at line start
        "CPU=1",
        "",
    ])
    def test_non_matching_prefix(self, line):
        assert parse_timestamp(line) is None

    def test_invalid_calendar_date(self):
        assert parse_timestamp("2024/02/30 00:00:00.000000 CPU=1") is None
        assert parse_timestamp("2024/01/01 25:00:00.000000 CPU=1") is None

    def test_leap_day(self):
        assert parse_timestamp("2024/02/29 00:00:00.000000") == datetime(2024, 2, 29)


class TestCoerceValue:

    @pytest.mark.parametrize("raw, expected", [
        ("42", 42),
        ("-7", -7),
        ("+3", 3),
        ("  12  ", 12),
        ("0x1F", 31),
        ("-0x10", -16),
        ("0b101", 5),
        ("0o17", 15),
        ("3.5", 3.5),
        ("-.25", -0.25),
        ("1e3", 1000.0),
        ("1.25e1", 12.5),
    ])
    def test_numeric_literals(self, raw, expected):
        value = coerce_value(raw)
        assert value == expected
        assert type(value) is type(expected)

    @pytest.mark.parametrize("raw", ["RUNNING", "12abc", "1,000", "inf", "nan", "0x", "--1", ""])
    def test_strings_stay_strings(self, raw):
        assert coerce_value(raw) == raw

    def test_whitespace_only_is_kept_verbatim(self):
        assert coerce_value("   ") == "   "


class TestLineParser:

    def test_single_match(self, cpu_mem_patterns):
        sample = _parser(cpu_mem_patterns).parse_line("2024/01/01 00:00:00.000000 CPU=10")
        assert sample is not None
        assert dict(sample.values) == {"CPU": 10}
        assert sample.fresh == frozenset({"CPU"})

    def test_samples_are_read_only(self, cpu_mem_patterns):
        sample = _parser(cpu_mem_patterns).parse_line("2024/01/01 00:00:00.000000 CPU=10")
        with pytest.raises(TypeError):
            sample.values["CPU"] = 99
        assert sample.values["CPU"] == 10

    def test_multiple_patterns_on_one_line(self, cpu_mem_patterns):
        sample = _parser(cpu_mem_patterns).parse_line("2024/01/01 00:00:00.000000 CPU=10 MEM=4")
        assert dict(sample.values) == {"CPU": 10, "MEM": 4}

    def test_carry_forward(self):
        parser = _parser([Pattern("A", r"A=(\d+)"), Pattern("B", r"B=(\d+)")])
        first = parser.parse_line("2024/01/01 00:00:00.000000 A=5")
        second = parser.parse_line("2024/01/01 00:00:01.000000 B=9")

        assert dict(first.values) == {"A": 5}
        assert dict(second.values) == {"A": 5, "B": 9}
        assert second.fresh == frozenset({"B"})

    def test_no_fresh_match_yields_nothing(self, cpu_mem_patterns):
        parser = _parser(cpu_mem_patterns)
        parser.parse_line("2024/01/01 00:00:00.000000 CPU=10")
        # Carried values alone never produce a sample
        assert parser.parse_line("2024/01/01 00:00:01.000000 heartbeat") is None

    def test_line_without_timestamp_is_skipped(self, cpu_mem_patterns):
        parser = _parser(cpu_mem_patterns)
        assert parser.parse_line("CPU=10") is None
        assert parser.context.accumulator.get("CPU") is None

    def test_cpu_mem_example(self, cpu_mem_patterns, cpu_mem_log):
        samples = list(_parser(cpu_mem_patterns).parse_lines(cpu_mem_log.split("\n")))

        assert len(samples) == 3
        assert dict(samples[0].values) == {"CPU": 10}
        assert dict(samples[1].values) == {"CPU": 20}
        assert dict(samples[2].values) == {"CPU": 20, "MEM": 30}
        assert samples[2].fresh == frozenset({"MEM"})
        assert [s.timestamp.second for s in samples] == [0, 1, 2]

    def test_strings_are_interned_per_signal(self, state_patterns, state_log):
        parser = _parser(state_patterns)
        list(parser.parse_lines(state_log.split("\n")))

        assert parser.context.interner.distinct_values("STATE") == {"RUNNING", "IDLE", "FAULT"}
        assert parser.context.interner.distinct_values("LOAD") == set()

    def test_optional_group_that_did_not_participate(self):
        parser = _parser([Pattern("X", r"X(?:=(\d+))?"), Pattern("Y", r"Y=(\d+)")])
        assert parser.parse_line("2024/01/01 00:00:00.000000 X") is None
        sample = parser.parse_line("2024/01/01 00:00:01.000000 X Y=2")
        assert dict(sample.values) == {"Y": 2}

    def test_pattern_without_capture_group_never_matches(self):
        parser = _parser([Pattern("FLAG", r"ERROR"), Pattern("CPU", r"CPU=(\d+)")])
        sample = parser.parse_line("2024/01/01 00:00:00.000000 ERROR CPU=3")
        assert dict(sample.values) == {"CPU": 3}

    def test_invalid_regex_does_not_block_other_patterns(self):
        parser = _parser([Pattern("BAD", r"BAD=(\d+"), Pattern("CPU", r"CPU=(\d+)")])
        sample = parser.parse_line("2024/01/01 00:00:00.000000 BAD=1 CPU=3")
        assert dict(sample.values) == {"CPU": 3}

    def test_carriage_returns_are_stripped(self, cpu_mem_patterns):
        samples = list(_parser(cpu_mem_patterns).parse_lines(["2024/01/01 00:00:00.000000 CPU=1\r"]))
        assert len(samples) == 1
        assert dict(samples[0].values) == {"CPU": 1}

    def test_values_keep_pattern_order_for_carried_fill(self):
        patterns = [Pattern("A", r"A=(\d+)"), Pattern("B", r"B=(\d+)"), Pattern("C", r"C=(\d+)")]
        parser = _parser(patterns)
        parser.parse_line("2024/01/01 00:00:00.000000 C=3 A=1")
        sample = parser.parse_line("2024/01/01 00:00:01.000000 B=2")
        assert dict(sample.values) == {"A": 1, "B": 2, "C": 3}
