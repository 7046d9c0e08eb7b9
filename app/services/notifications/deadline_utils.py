from typing import Optional
from datetime import datetime, date, time, timedelta
from zoneinfo import ZoneInfo

from app.utils.datetime_utils import get_zone, to_local, utc_now

WEEKS_PER_YEAR = 52
DAYS_PER_WEEK = 7


class WeekCalculator:
    """
    Teaching-week arithmetic.

    Week 1 starts on January 1 whatever the weekday, and each week is a
    7-day period from there. The last two days of the year (364/365 days
    after January 1) are folded into week 52.
    """

    @staticmethod
    def week_number(day: date) -> int:
        """1-indexed week of the year that `day` falls in"""
        if isinstance(day, datetime):
            day = to_local(day).date()
        offset = (day - date(day.year, 1, 1)).days
        return min(offset // DAYS_PER_WEEK + 1, WEEKS_PER_YEAR)

    @staticmethod
    def current_week(now: Optional[datetime] = None) -> int:
        """Week number of `now` in the application timezone"""
        return WeekCalculator.week_number(to_local(now or utc_now()).date())

    @staticmethod
    def week_start(week_number: int, year: int) -> date:
        WeekCalculator.check_week_number(week_number)
        return date(year, 1, 1) + timedelta(days=(week_number - 1) * DAYS_PER_WEEK)

    @staticmethod
    def deadline(
        week_number: int, year: int, zone: Optional[ZoneInfo] = None
    ) -> datetime:
        """End of the last day of the week; week 52 runs to December 31"""
        last_day = WeekCalculator.week_start(week_number, year) + timedelta(
            days=DAYS_PER_WEEK - 1
        )
        if week_number == WEEKS_PER_YEAR:
            last_day = date(year, 12, 31)
        return datetime.combine(last_day, time.max, tzinfo=zone or get_zone())

    @staticmethod
    def is_late(
        submitted_at: datetime, week_number: int, year: Optional[int] = None
    ) -> bool:
        """Whether a submission came strictly after its week's deadline"""
        zone = get_zone()
        local_submission = to_local(submitted_at, zone)
        deadline = WeekCalculator.deadline(
            week_number, year or local_submission.year, zone
        )
        return local_submission > deadline

    @staticmethod
    def check_week_number(week_number: int) -> None:
        if not 1 <= week_number <= WEEKS_PER_YEAR:
            raise ValueError(
                f"week_number must be between 1 and {WEEKS_PER_YEAR}, got {week_number}"
            )
