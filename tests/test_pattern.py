"""Tests for recurrence pattern validation."""

import pytest

from cadence.core.pattern import Frequency, RecurrencePattern, describe_pattern, is_valid_recurrence


class TestIsValidRecurrence:
    @pytest.mark.parametrize(
        "pattern",
        [
            RecurrencePattern(frequency="daily", interval=1),
            RecurrencePattern(frequency="daily", interval=3, count=10),
            RecurrencePattern(frequency="weekly", interval=2, days_of_week=[1, 3]),
            RecurrencePattern(frequency="monthly", interval=1, day_of_month=31),
            RecurrencePattern(frequency="monthly", interval=1, day_of_month=1),
            RecurrencePattern(frequency="yearly", interval=1, end_date_ms=0),
            RecurrencePattern(frequency=Frequency.WEEKLY, interval=1, days_of_week=[0, 6]),
        ],
    )
    def test_accepts_well_formed(self, pattern):
        assert is_valid_recurrence(pattern) is True

    def test_none_is_invalid(self):
        assert is_valid_recurrence(None) is False

    def test_unknown_frequency(self):
        assert is_valid_recurrence(RecurrencePattern(frequency="hourly")) is False

    def test_missing_frequency(self):
        assert is_valid_recurrence(RecurrencePattern(frequency="")) is False

    @pytest.mark.parametrize("interval", [0, -1, 1.5, None, True, "2"])
    def test_rejects_bad_interval(self, interval):
        assert is_valid_recurrence(RecurrencePattern(frequency="daily", interval=interval)) is False

    def test_weekly_requires_days(self):
        assert is_valid_recurrence(RecurrencePattern(frequency="weekly", interval=1)) is False
        assert is_valid_recurrence(RecurrencePattern(frequency="weekly", interval=1, days_of_week=None)) is False

    @pytest.mark.parametrize("days", [[7], [-1], [1, 9], ["mon"]])
    def test_weekly_rejects_out_of_range_weekdays(self, days):
        pattern = RecurrencePattern(frequency="weekly", interval=1, days_of_week=days)
        assert is_valid_recurrence(pattern) is False

    @pytest.mark.parametrize("day", [None, 0, 32, -5])
    def test_monthly_day_bounds(self, day):
        pattern = RecurrencePattern(frequency="monthly", interval=1, day_of_month=day)
        assert is_valid_recurrence(pattern) is False

    def test_days_of_week_ignored_for_daily(self):
        pattern = RecurrencePattern(frequency="daily", interval=1, days_of_week=[42])
        assert is_valid_recurrence(pattern) is True

    @pytest.mark.parametrize("count", [0, -3])
    def test_rejects_count_below_one(self, count):
        assert is_valid_recurrence(RecurrencePattern(frequency="daily", count=count)) is False


class TestDescribePattern:
    @pytest.mark.parametrize(
        "pattern,label",
        [
            (RecurrencePattern(frequency="daily"), "Daily"),
            (RecurrencePattern(frequency="daily", interval=2), "Every 2 days"),
            (RecurrencePattern(frequency="weekly", days_of_week=[1]), "Weekly"),
            (RecurrencePattern(frequency="weekly", days_of_week=list(range(7))), "Daily"),
            (RecurrencePattern(frequency="weekly", interval=3, days_of_week=[1]), "Every 3 weeks"),
            (RecurrencePattern(frequency="monthly", day_of_month=15), "Monthly"),
            (RecurrencePattern(frequency="monthly", interval=6, day_of_month=15), "Every 6 months"),
            (RecurrencePattern(frequency="yearly"), "Yearly"),
            (RecurrencePattern(frequency="yearly", interval=10), "Every 10 years"),
            (RecurrencePattern(frequency="fortnightly"), "Recurring"),
        ],
    )
    def test_labels(self, pattern, label):
        assert describe_pattern(pattern) == label


class TestPatternDict:
    def test_from_dict_defaults(self):
        pattern = RecurrencePattern.from_dict({"frequency": "daily"})
        assert pattern.interval == 1
        assert pattern.days_of_week == []
        assert pattern.count is None

    def test_to_dict_omits_unset(self):
        data = RecurrencePattern(frequency="monthly", interval=2, day_of_month=15).to_dict()
        assert data == {"frequency": "monthly", "interval": 2, "day_of_month": 15}

    def test_from_dict_reads_all_fields(self):
        data = {
            "frequency": "weekly",
            "interval": 2,
            "days_of_week": [1, 3],
            "end_date_ms": 1000,
            "count": 4,
        }
        pattern = RecurrencePattern.from_dict(data)
        assert pattern.to_dict() == data
