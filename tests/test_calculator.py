"""
Unit tests for duration and interest calculations
"""
import pytest
from datetime import datetime, timedelta

from app.core.exceptions import DurationFormatError, ValidationError
from app.modules.investments.calculator import (
    parse_duration_to_milliseconds,
    calculate_end_date,
    calculate_progressive_interest,
    calculate_progress_percentage,
    is_investment_due,
    format_time_remaining,
    milliseconds_between,
    COMPLETED_SENTINEL,
    DAY_MS,
)

START = datetime(2026, 1, 1, 12, 0, 0)


class TestParseDuration:
    """Tests for duration parsing"""

    @pytest.mark.unit
    @pytest.mark.parametrize("duration,expected", [
        ("1 minute", 60_000),
        ("5 minutes", 300_000),
        ("2 hours", 7_200_000),
        ("1 day", 86_400_000),
        ("2 weeks", 14 * 86_400_000),
        ("1 month", 30.44 * 86_400_000),
        ("1 year", 365.25 * 86_400_000),
    ])
    def test_units(self, duration, expected):
        assert parse_duration_to_milliseconds(duration) == pytest.approx(expected)

    @pytest.mark.unit
    def test_case_and_whitespace_insensitive(self):
        assert parse_duration_to_milliseconds("  30 DAYS ") == 30 * DAY_MS
        assert parse_duration_to_milliseconds("3   Weeks") == 21 * DAY_MS

    @pytest.mark.unit
    def test_monotonic_in_count(self):
        spans = [parse_duration_to_milliseconds(f"{n} months") for n in range(0, 13)]
        assert spans == sorted(spans)
        assert parse_duration_to_milliseconds("6 months") == parse_duration_to_milliseconds("6 months")

    @pytest.mark.unit
    @pytest.mark.parametrize("duration", [
        "", "days", "30", "thirty days", "30 fortnights", "-1 day", "1.5 days", "30days", "30 days later",
    ])
    def test_invalid_formats(self, duration):
        with pytest.raises(DurationFormatError):
            parse_duration_to_milliseconds(duration)

    @pytest.mark.unit
    def test_format_error_is_validation_error(self):
        with pytest.raises(ValidationError):
            parse_duration_to_milliseconds("soon")

    @pytest.mark.unit
    def test_end_date(self):
        assert calculate_end_date(START, "30 days") == START + timedelta(days=30)
        assert calculate_end_date(START, "1 month") == START + timedelta(days=30.44)

    @pytest.mark.unit
    def test_end_date_rejects_bad_duration(self):
        with pytest.raises(DurationFormatError):
            calculate_end_date(START, "1 decade")

    @pytest.mark.unit
    @pytest.mark.parametrize("duration", ["8000 years", "999999999999 years"])
    def test_end_date_out_of_range(self, duration):
        with pytest.raises(DurationFormatError, match="Duration is too long"):
            calculate_end_date(START, duration)


class TestProgressiveInterest:
    """Tests for time-proportional interest"""

    END = START + timedelta(days=10)

    @pytest.mark.unit
    def test_zero_before_start(self):
        assert calculate_progressive_interest(100.0, START, self.END, START) == 0
        assert calculate_progressive_interest(100.0, START, self.END, START - timedelta(days=1)) == 0

    @pytest.mark.unit
    def test_full_at_and_after_end(self):
        assert calculate_progressive_interest(100.0, START, self.END, self.END) == 100.0
        assert calculate_progressive_interest(100.0, START, self.END, self.END + timedelta(days=3)) == 100.0

    @pytest.mark.unit
    def test_proportional_midway(self):
        midway = START + timedelta(days=5)
        assert calculate_progressive_interest(100.0, START, self.END, midway) == 50.0

    @pytest.mark.unit
    def test_rounds_to_cents(self):
        one_third = START + timedelta(days=10) / 3
        assert calculate_progressive_interest(100.0, START, self.END, one_third) == 33.33

    @pytest.mark.unit
    def test_rounds_half_up_on_ties(self):
        # 1/8 of 1.0 is 0.125, a tie at the cent
        end = START + timedelta(days=8)
        assert calculate_progressive_interest(1.0, START, end, START + timedelta(days=1)) == 0.13
        assert calculate_progressive_interest(0.2, START, end, START + timedelta(days=1)) == 0.03

    @pytest.mark.unit
    def test_monotonic_and_bounded(self):
        values = [
            calculate_progressive_interest(37.5, START, self.END, START + timedelta(hours=h))
            for h in range(-5, 24 * 10 + 5)
        ]
        assert values == sorted(values)
        assert all(0 <= v <= 37.5 for v in values)

    @pytest.mark.unit
    def test_progress_percentage(self):
        assert calculate_progress_percentage(5.0, 20.0, START, self.END) == 25.0
        assert calculate_progress_percentage(20.0, 20.0, START, self.END) == 100

    @pytest.mark.unit
    def test_progress_percentage_zero_interest_uses_time(self):
        midway = START + timedelta(days=5)
        assert calculate_progress_percentage(0, 0, START, self.END, midway) == 50.0
        assert calculate_progress_percentage(0, 0, START, self.END, self.END + timedelta(days=1)) == 100


class TestDueAndRemaining:
    """Tests for maturity checks and remaining time text"""

    END = START + timedelta(days=3)

    @pytest.mark.unit
    def test_due_boundary_is_inclusive(self):
        assert is_investment_due(self.END, self.END) is True
        assert is_investment_due(self.END, self.END + timedelta(seconds=1)) is True
        assert is_investment_due(self.END, self.END - timedelta(milliseconds=1)) is False

    @pytest.mark.unit
    def test_days_and_hours(self):
        now = self.END - timedelta(days=2, hours=3)
        assert format_time_remaining(self.END, now) == "2 days, 3 hours"

    @pytest.mark.unit
    def test_days_ignore_minutes(self):
        now = self.END - timedelta(days=2, hours=3, minutes=45)
        assert format_time_remaining(self.END, now) == "2 days, 3 hours"

    @pytest.mark.unit
    def test_single_units_are_not_pluralised(self):
        now = self.END - timedelta(days=1, hours=1)
        assert format_time_remaining(self.END, now) == "1 day, 1 hour"
        now = self.END - timedelta(days=2)
        assert format_time_remaining(self.END, now) == "2 days, 0 hour"

    @pytest.mark.unit
    def test_hours_and_minutes(self):
        now = self.END - timedelta(hours=5, minutes=12)
        assert format_time_remaining(self.END, now) == "5 hours, 12 minutes"

    @pytest.mark.unit
    def test_minutes_only(self):
        assert format_time_remaining(self.END, self.END - timedelta(minutes=7)) == "7 minutes"
        assert format_time_remaining(self.END, self.END - timedelta(seconds=30)) == "0 minute"

    @pytest.mark.unit
    def test_completed_sentinel(self):
        assert format_time_remaining(self.END, self.END) == COMPLETED_SENTINEL
        assert format_time_remaining(self.END, self.END + timedelta(hours=1)) == COMPLETED_SENTINEL

    @pytest.mark.unit
    def test_milliseconds_between(self):
        assert milliseconds_between(START, START + timedelta(days=1)) == DAY_MS
