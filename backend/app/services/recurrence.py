"""
Recurrence pattern arithmetic.

A pattern is anchored by the series start date: nothing occurs before it,
week offsets for weekly patterns are counted from the week that contains it,
and month offsets for monthly patterns from the month that contains it.
Day-of-month anchors past the end of a month clamp to the month's last day.
"""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from app.exceptions import DomainError
from app.models.recurring import Frequency

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

WEEKLY_FREQUENCIES = (Frequency.weekly, Frequency.biweekly)
MONTHLY_FREQUENCIES = (Frequency.monthly, Frequency.quarterly, Frequency.yearly)


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, pulling day down to the month's length."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def week_start(day: date) -> date:
    """Monday of the week containing day."""
    return day - timedelta(days=day.weekday())


def months_between(start: date, day: date) -> int:
    return (day.year - start.year) * 12 + (day.month - start.month)


@dataclass(frozen=True)
class RecurrencePattern:
    """Immutable frequency descriptor for a recurring series."""

    frequency: Frequency
    interval: int = 1
    day_of_week: Optional[int] = None  # 0=Mon..6=Sun
    day_of_month: Optional[int] = None  # 1-31
    month_of_year: Optional[int] = None  # 1-12

    def __post_init__(self):
        if self.interval < 1:
            raise DomainError("Interval must be at least 1.")
        if self.frequency == Frequency.biweekly and self.interval != 2:
            raise DomainError("Biweekly patterns always use an interval of 2.")
        if self.frequency == Frequency.quarterly and self.interval != 3:
            raise DomainError("Quarterly patterns always use an interval of 3.")
        if self.frequency == Frequency.yearly and self.interval != 1:
            raise DomainError("Yearly patterns always use an interval of 1.")
        if self.day_of_week is not None and not 0 <= self.day_of_week <= 6:
            raise DomainError("Day of week must be between 0 (Monday) and 6 (Sunday).")
        if self.day_of_month is not None and not 1 <= self.day_of_month <= 31:
            raise DomainError("Day of month must be between 1 and 31.")
        if self.month_of_year is not None and not 1 <= self.month_of_year <= 12:
            raise DomainError("Month of year must be between 1 and 12.")

    @classmethod
    def create(
        cls,
        frequency: Frequency,
        interval: int = 1,
        day_of_week: Optional[int] = None,
        day_of_month: Optional[int] = None,
        month_of_year: Optional[int] = None,
    ) -> "RecurrencePattern":
        """Build a pattern, fixing the interval for biweekly/quarterly/yearly."""
        try:
            frequency = Frequency(frequency)
        except ValueError:
            raise DomainError(f"Invalid frequency: {frequency}")

        if frequency == Frequency.biweekly:
            interval = 2
        elif frequency == Frequency.quarterly:
            interval = 3
        elif frequency == Frequency.yearly:
            interval = 1

        return cls(
            frequency=frequency,
            interval=interval,
            day_of_week=day_of_week if frequency in WEEKLY_FREQUENCIES else None,
            day_of_month=day_of_month if frequency in MONTHLY_FREQUENCIES else None,
            month_of_year=month_of_year if frequency == Frequency.yearly else None,
        )

    @classmethod
    def daily(cls, interval: int = 1) -> "RecurrencePattern":
        return cls(Frequency.daily, interval)

    @classmethod
    def weekly(cls, day_of_week: int, interval: int = 1) -> "RecurrencePattern":
        return cls(Frequency.weekly, interval, day_of_week=day_of_week)

    @classmethod
    def biweekly(cls, day_of_week: int) -> "RecurrencePattern":
        return cls(Frequency.biweekly, 2, day_of_week=day_of_week)

    @classmethod
    def monthly(cls, day_of_month: int, interval: int = 1) -> "RecurrencePattern":
        return cls(Frequency.monthly, interval, day_of_month=day_of_month)

    @classmethod
    def quarterly(cls, day_of_month: int) -> "RecurrencePattern":
        return cls(Frequency.quarterly, 3, day_of_month=day_of_month)

    @classmethod
    def yearly(cls, day_of_month: int, month_of_year: int) -> "RecurrencePattern":
        return cls(Frequency.yearly, 1, day_of_month=day_of_month, month_of_year=month_of_year)

    def _weekday(self, start: date) -> int:
        return self.day_of_week if self.day_of_week is not None else start.weekday()

    def _anchor_day(self, start: date) -> int:
        return self.day_of_month or start.day

    def _month_qualifies(self, start: date, year: int, month: int) -> bool:
        if self.frequency == Frequency.yearly:
            return month == (self.month_of_year or start.month)
        offset = months_between(start, date(year, month, 1))
        return offset >= 0 and offset % self.interval == 0

    def occurs_on(self, start: date, day: date, end_date: Optional[date] = None) -> bool:
        """Whether the series anchored at start has an occurrence on day."""
        if day < start or (end_date is not None and day > end_date):
            return False

        if self.frequency == Frequency.daily:
            return (day - start).days % self.interval == 0

        if self.frequency in WEEKLY_FREQUENCIES:
            if day.weekday() != self._weekday(start):
                return False
            weeks = (week_start(day) - week_start(start)).days // 7
            return weeks % self.interval == 0

        if not self._month_qualifies(start, day.year, day.month):
            return False
        return day == clamp_day(day.year, day.month, self._anchor_day(start))

    def next_on_or_after(self, start: date, day: date, end_date: Optional[date] = None) -> Optional[date]:
        """First occurrence on or after day, or None once past end_date."""
        candidate = max(day, start)

        if self.frequency == Frequency.daily:
            remainder = (candidate - start).days % self.interval
            if remainder:
                candidate += timedelta(days=self.interval - remainder)

        elif self.frequency in WEEKLY_FREQUENCIES:
            candidate += timedelta(days=(self._weekday(start) - candidate.weekday()) % 7)
            remainder = ((week_start(candidate) - week_start(start)).days // 7) % self.interval
            if remainder:
                candidate += timedelta(weeks=self.interval - remainder)

        else:
            anchor = self._anchor_day(start)
            month_cursor = date(candidate.year, candidate.month, 1)
            found = None
            # A qualifying month always appears within 12 * interval months
            for _ in range(12 * self.interval + 1):
                if self._month_qualifies(start, month_cursor.year, month_cursor.month):
                    occurrence = clamp_day(month_cursor.year, month_cursor.month, anchor)
                    if occurrence >= candidate:
                        found = occurrence
                        break
                month_cursor += relativedelta(months=1)
            if found is None:
                return None
            candidate = found

        if end_date is not None and candidate > end_date:
            return None
        return candidate

    def occurrences_between(
        self,
        start: date,
        from_date: date,
        to_date: date,
        end_date: Optional[date] = None,
    ) -> List[date]:
        """All occurrences in [from_date, to_date], ascending."""
        result = []
        current = self.next_on_or_after(start, from_date, end_date)
        while current is not None and current <= to_date:
            result.append(current)
            current = self.next_on_or_after(start, current + timedelta(days=1), end_date)
        return result

    def describe(self) -> str:
        """Human readable summary, e.g. 'Monthly on day 15'."""
        if self.frequency == Frequency.daily:
            return "Daily" if self.interval == 1 else f"Every {self.interval} days"
        if self.frequency in WEEKLY_FREQUENCIES:
            weekday = WEEKDAY_NAMES[self.day_of_week] if self.day_of_week is not None else "start weekday"
            if self.interval == 1:
                return f"Weekly on {weekday}"
            return f"Every {self.interval} weeks on {weekday}"
        day = self.day_of_month if self.day_of_month is not None else "start day"
        if self.frequency == Frequency.monthly:
            if self.interval == 1:
                return f"Monthly on day {day}"
            return f"Every {self.interval} months on day {day}"
        if self.frequency == Frequency.quarterly:
            return f"Quarterly on day {day}"
        month = self.month_of_year if self.month_of_year is not None else "start month"
        return f"Yearly on {month}/{day}"
