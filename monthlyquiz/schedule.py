"""
Monthly routine builder.

Assigns subjects to the last K days of a month with a shuffle seeded by the
month, so every device derives the same routine without a server.
"""

import calendar
from typing import List, Optional, Sequence

from .models import Subject, ScheduleEntry
from .rng import seeded_shuffle


def month_seed(year: int, month: int) -> str:
    """Seed string for a month's routine (month is 1-based)."""
    return f"{year}-{month:02d}-schedule"


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def window_start_day(year: int, month: int, window_days: int) -> int:
    """First day of the exam window: the K last days of the month."""
    return last_day_of_month(year, month) - (window_days - 1)


def build_schedule(
    subjects: Sequence[Subject],
    year: int,
    month: int,
    window_days: int
) -> List[ScheduleEntry]:
    """
    Build the day -> subject routine for a month.

    Args:
        subjects: Ordered subject list (length M)
        year: Calendar year
        month: Calendar month (1-12)
        window_days: Number of exam days K, with K <= M

    Returns:
        K entries for consecutive days ending on the month's last day

    Raises:
        ValueError: If K is not between 1 and the number of subjects
    """
    if window_days < 1 or window_days > len(subjects):
        raise ValueError(
            f"Window length must be between 1 and {len(subjects)}, got {window_days}"
        )

    shuffled = seeded_shuffle(subjects, month_seed(year, month))
    start_day = window_start_day(year, month, window_days)

    return [
        ScheduleEntry(day=start_day + i, subject=shuffled[i])
        for i in range(window_days)
    ]


def entry_for_day(schedule: Sequence[ScheduleEntry], day: int) -> Optional[ScheduleEntry]:
    """Return the routine entry for a day of month, or None outside the window."""
    for entry in schedule:
        if entry.day == day:
            return entry
    return None
