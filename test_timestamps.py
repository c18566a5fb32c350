#!/usr/bin/env python3
"""Tests for timestamp parsing and resolution."""

import calendar

import pytest

from chrono_rename.timestamps import (
    INVALID,
    ParsedInstant,
    days_from_civil,
    parse_timestamp,
    resolve_timestamp,
)

NEW_YEAR_2025_MS = calendar.timegm((2025, 1, 1, 0, 0, 0)) * 1000


def utc_ms(*fields):
    return calendar.timegm(fields) * 1000


class TestParseTimestamp:
    """The parser accepts exactly the exiftool date profile."""

    def test_utc_without_fraction_digits(self):
        assert parse_timestamp("2025-01-01T00:00:00.+0000") == ParsedInstant(True, NEW_YEAR_2025_MS)

    @pytest.mark.parametrize("raw", [
        "2025-01-01T00:00:00.000+0000",
        "2025-01-01T00:00:00+0000",
        "2025-01-01T00:00:00",
        "2025-01-01T00:00:00.",
    ])
    def test_equivalent_utc_forms(self, raw):
        assert parse_timestamp(raw) == ParsedInstant(True, NEW_YEAR_2025_MS)

    def test_calendar_time_matches_timegm(self):
        parsed = parse_timestamp("2024-02-29T13:45:07+0000")
        assert parsed.valid
        assert parsed.millis == utc_ms(2024, 2, 29, 13, 45, 7)

    @pytest.mark.parametrize("fraction,millis", [
        ("1", 100),
        ("12", 120),
        ("123", 123),
        ("1234", 123),
        ("1299", 129),
        ("", 0),
    ])
    def test_fraction_padding_and_truncation(self, fraction, millis):
        parsed = parse_timestamp(f"2025-01-01T00:00:00.{fraction}+0000")
        assert parsed == ParsedInstant(True, NEW_YEAR_2025_MS + millis)

    def test_offset_converts_local_time_to_utc(self):
        parsed = parse_timestamp("2025-12-25T16:07:57.123-0700")
        assert parsed.millis == utc_ms(2025, 12, 25, 23, 7, 57) + 123

    def test_offsets_differ_by_six_hours(self):
        east = parse_timestamp("2025-06-15T12:00:00.000+0100")
        west = parse_timestamp("2025-06-15T12:00:00.000-0500")
        assert west.millis - east.millis == 21_600_000

    def test_negative_offset_with_zero_hours(self):
        parsed = parse_timestamp("2025-01-01T00:00:00-0030")
        assert parsed.millis == NEW_YEAR_2025_MS + 30 * 60 * 1000

    def test_offset_hour_without_minutes_is_ignored(self):
        assert parse_timestamp("2025-01-01T00:00:00+05") == ParsedInstant(True, NEW_YEAR_2025_MS)

    def test_month_thirteen_rolls_over(self):
        assert parse_timestamp("2024-13-01T00:00:00").millis == NEW_YEAR_2025_MS

    def test_before_epoch_is_negative(self):
        assert parse_timestamp("1969-12-31T23:59:59+0000") == ParsedInstant(True, -1000)

    def test_epoch_zero_is_a_valid_parse(self):
        assert parse_timestamp("1970-01-01T00:00:00.000+0000") == ParsedInstant(True, 0)

    def test_trailing_carriage_return(self):
        assert parse_timestamp("2025-01-01T00:00:00+0000\r").millis == NEW_YEAR_2025_MS

    @pytest.mark.parametrize("raw", [
        "",
        "   ",
        "garbage",
        "2025:01:01 00:00:00",
        "2025-01-01 00:00:00",
        "2025-01-01T00:00:00Z",
        "2025-01-01T00:00:00+00:00",
        "2025-1-01T00:00:00",
        "2025-01-01T00:00:00.123+0000 extra",
    ])
    def test_unmatched_shapes_are_invalid(self, raw):
        assert parse_timestamp(raw) == INVALID

    def test_non_string_is_invalid(self):
        assert parse_timestamp(None) == INVALID


class TestDaysFromCivil:
    def test_epoch(self):
        assert days_from_civil(1970, 1, 1) == 0

    def test_leap_year(self):
        assert days_from_civil(2000, 3, 1) == 11017

    def test_day_zero_is_previous_month_end(self):
        assert days_from_civil(2025, 3, 0) == days_from_civil(2025, 2, 28)


class TestResolveTimestamp:
    def test_first_qualifying_candidate_wins(self):
        candidates = ["", "2025-01-01T00:00:00.000+0000", "2025-01-01T12:00:00.000+0000"]
        assert resolve_timestamp(candidates, fallback=42) == NEW_YEAR_2025_MS

    def test_unparseable_candidates_are_skipped(self):
        candidates = ["0000:00:00 00:00:00", "2025-01-01T00:00:00+0000"]
        assert resolve_timestamp(candidates, fallback=42) == NEW_YEAR_2025_MS

    def test_no_candidates_returns_fallback(self):
        assert resolve_timestamp([], fallback=123456) == 123456

    def test_nothing_parses_returns_fallback(self):
        assert resolve_timestamp(["", "bad", "worse"], fallback=-7) == -7

    def test_epoch_and_earlier_do_not_qualify(self):
        candidates = ["1970-01-01T00:00:00+0000", "1969-07-20T20:17:40+0000"]
        assert resolve_timestamp(candidates, fallback=99) == 99

    def test_accepts_generator(self):
        lines = (line for line in ["x", "2025-01-01T00:00:00"])
        assert resolve_timestamp(lines, fallback=0) == NEW_YEAR_2025_MS
