import pytest
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from app.services.notifications.deadline_utils import WeekCalculator

pytestmark = pytest.mark.unit


class TestWeekNumber:
    """Test week numbering from January 1."""

    def test_first_seven_days_are_week_one(self):
        # 2025-01-01 is a Wednesday; week 1 still starts there
        assert WeekCalculator.week_number(date(2025, 1, 1)) == 1
        assert WeekCalculator.week_number(date(2025, 1, 7)) == 1

    def test_eighth_day_starts_week_two(self):
        assert WeekCalculator.week_number(date(2025, 1, 8)) == 2

    def test_week_five_range(self):
        assert WeekCalculator.week_number(date(2025, 1, 29)) == 5
        assert WeekCalculator.week_number(date(2025, 2, 4)) == 5
        assert WeekCalculator.week_number(date(2025, 2, 5)) == 6

    def test_year_end_is_folded_into_week_52(self):
        assert WeekCalculator.week_number(date(2025, 12, 23)) == 52
        assert WeekCalculator.week_number(date(2025, 12, 31)) == 52
        # Leap year: December 31 is day 366
        assert WeekCalculator.week_number(date(2024, 12, 31)) == 52

    def test_current_week_uses_given_instant(self):
        now = datetime(2025, 1, 31, 10, 0, tzinfo=timezone.utc)
        assert WeekCalculator.current_week(now) == 5


class TestDeadline:
    """Test week deadlines."""

    def test_deadline_is_end_of_seventh_day(self):
        deadline = WeekCalculator.deadline(5, 2025)
        assert deadline.date() == date(2025, 2, 4)
        assert deadline.time() == time.max
        assert deadline.utcoffset().total_seconds() == 0

    def test_week_52_runs_to_december_31(self):
        deadline = WeekCalculator.deadline(52, 2025)
        assert deadline.date() == date(2025, 12, 31)

    def test_deadline_in_explicit_zone(self):
        bangkok = ZoneInfo("Asia/Bangkok")
        deadline = WeekCalculator.deadline(1, 2025, bangkok)
        assert deadline.tzinfo == bangkok
        assert deadline.date() == date(2025, 1, 7)

    @pytest.mark.parametrize("week_number", [0, 53, -1])
    def test_invalid_week_raises(self, week_number):
        with pytest.raises(ValueError):
            WeekCalculator.deadline(week_number, 2025)


class TestIsLate:
    """Test strict lateness against the deadline."""

    def test_submission_before_deadline_is_on_time(self):
        submitted = datetime(2025, 2, 4, 23, 59, 0, tzinfo=timezone.utc)
        assert WeekCalculator.is_late(submitted, 5) is False

    def test_submission_at_deadline_is_on_time(self):
        deadline = WeekCalculator.deadline(5, 2025)
        assert WeekCalculator.is_late(deadline, 5) is False

    def test_submission_after_deadline_is_late(self):
        submitted = datetime(2025, 2, 5, 0, 0, 0, tzinfo=timezone.utc)
        assert WeekCalculator.is_late(submitted, 5) is True

    def test_naive_datetime_is_treated_as_utc(self):
        assert WeekCalculator.is_late(datetime(2025, 2, 5, 0, 0, 1), 5) is True
        assert WeekCalculator.is_late(datetime(2025, 2, 4, 12, 0, 0), 5) is False

    def test_explicit_year(self):
        # A week 52 log for 2024 submitted in early 2025 is late
        submitted = datetime(2025, 1, 2, 9, 0, tzinfo=timezone.utc)
        assert WeekCalculator.is_late(submitted, 52, year=2024) is True
