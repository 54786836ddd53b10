"""
Exam window arithmetic in a fixed-offset time zone.

All instants are timezone-aware UTC datetimes. The exam zone is a constant
offset from UTC with no daylight-saving rules. "Now" always comes from an
injectable clock so callers can simulate any moment.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable

from .models import Subject, ExamWindow

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: the host's current time in UTC."""
    return datetime.now(timezone.utc)


def exam_zone(utc_offset_hours: int) -> timezone:
    return timezone(timedelta(hours=utc_offset_hours))


def local_now(clock: Clock, utc_offset_hours: int) -> datetime:
    """Current time expressed in the exam zone."""
    return clock().astimezone(exam_zone(utc_offset_hours))


def local_to_utc(
    year: int,
    month: int,
    day: int,
    hour: int,
    utc_offset_hours: int,
    minute: int = 0
) -> datetime:
    """Convert a wall-clock time in the exam zone to a UTC instant."""
    local = datetime(year, month, day, hour, minute, tzinfo=exam_zone(utc_offset_hours))
    return local.astimezone(timezone.utc)


def exam_duration_minutes(
    subject: Subject,
    short_minutes: int = 25,
    standard_minutes: int = 30
) -> int:
    return short_minutes if subject.short else standard_minutes


def compute_window(
    year: int,
    month: int,
    day: int,
    subject: Subject,
    exam_hour_local: int,
    utc_offset_hours: int,
    short_minutes: int = 25,
    standard_minutes: int = 30
) -> ExamWindow:
    """
    Compute the exam window for a calendar day.

    The window opens at exam_hour_local:00 on that day in the exam zone and
    lasts the subject's fixed duration.
    """
    duration = exam_duration_minutes(subject, short_minutes, standard_minutes)
    start = local_to_utc(year, month, day, exam_hour_local, utc_offset_hours)
    return ExamWindow(
        subject=subject,
        start=start,
        end=start + timedelta(minutes=duration),
        duration_minutes=duration
    )


def practice_window(
    subject: Subject,
    now: datetime,
    short_minutes: int = 25,
    standard_minutes: int = 30
) -> ExamWindow:
    """Practice window that opened one second before `now`."""
    duration = exam_duration_minutes(subject, short_minutes, standard_minutes)
    start = now - timedelta(seconds=1)
    return ExamWindow(
        subject=subject,
        start=start,
        end=start + timedelta(minutes=duration),
        duration_minutes=duration
    )


def publish_day(start_day: int, publish_lead_days: int) -> int:
    """Day of month on which the routine becomes visible, never before day 1."""
    return max(1, start_day - publish_lead_days)


def publish_instant(
    year: int,
    month: int,
    start_day: int,
    publish_lead_days: int,
    utc_offset_hours: int
) -> datetime:
    """Local midnight of the publish day, as a UTC instant."""
    day = publish_day(start_day, publish_lead_days)
    return local_to_utc(year, month, day, 0, utc_offset_hours)


def is_schedule_published(
    now: datetime,
    year: int,
    month: int,
    start_day: int,
    publish_lead_days: int,
    utc_offset_hours: int
) -> bool:
    return now >= publish_instant(year, month, start_day, publish_lead_days, utc_offset_hours)


def format_countdown(remaining: timedelta) -> str:
    """Format a remaining duration as MM:SS (minutes may exceed 59)."""
    total = max(0, int(remaining.total_seconds()))
    minutes, seconds = divmod(total, 60)
    return f"{minutes:02d}:{seconds:02d}"
