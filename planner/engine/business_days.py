from datetime import date, timedelta
from typing import Iterator

# Weekday codes used by assignments: 0=Sun, 1=Mon, ..., 6=Sat
SUNDAY = 0
SATURDAY = 6
WEEKDAY_CODES = frozenset(range(7))


def weekday_code(day: date) -> int:
    """Sunday-based weekday code (date.weekday() is Monday-based)."""
    return day.isoweekday() % 7


def is_business_day(day: date) -> bool:
    return weekday_code(day) not in (SUNDAY, SATURDAY)


def each_day(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day in [start, end]; nothing when end < start."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def count_business_days(start: date, end: date) -> int:
    """
    Number of Mon..Fri days in [start, end], both endpoints included.

    Complexity: O(1); whole weeks contribute five days each and only the
    remainder (< 7 days) is walked.
    """
    if end < start:
        return 0
    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    count = full_weeks * 5
    tail_start = start + timedelta(days=full_weeks * 7)
    count += sum(1 for offset in range(remainder) if is_business_day(tail_start + timedelta(days=offset)))
    return count


def start_of_week(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def week_days(week_start: date) -> list:
    return [week_start + timedelta(days=offset) for offset in range(7)]
