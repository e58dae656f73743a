"""
Quiet-hours arithmetic.

A campaign configures a daily sending window {start, end} in HH:mm. Quiet hours
are every minute outside that window. A window whose start is later than its
end spans midnight (e.g. 20:00-02:00). Comparisons are made on the datetime's
own wall clock at minute resolution; callers bring values onto the business
clock with `align_to` first.
"""
from datetime import datetime, timedelta, tzinfo
from typing import Optional, Tuple

from reviewpilot.schemas.review_requests import QuietHours


def align_to(value: datetime, tz: Optional[tzinfo]) -> datetime:
    """
    Express value on the clock of tz.

    Naive values are read as tz wall-clock times, aware values are converted,
    and a tz of None drops the zone so the result compares with naive datetimes.
    """
    if tz is None:
        return value.replace(tzinfo=None)
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def parse_hhmm(value: str) -> Tuple[int, int]:
    hours, minutes = value.split(":")
    return int(hours), int(minutes)


def to_minutes(value: str) -> int:
    """Minutes since midnight for an HH:mm string."""
    hours, minutes = parse_hhmm(value)
    return hours * 60 + minutes


def is_in_send_window(t: datetime, window: QuietHours) -> bool:
    """True if t falls inside the inclusive sending window."""
    time_in_minutes = t.hour * 60 + t.minute
    start = to_minutes(window.start)
    end = to_minutes(window.end)

    # Window spans midnight
    if start > end:
        return time_in_minutes >= start or time_in_minutes <= end

    return start <= time_in_minutes <= end


def is_within_quiet_hours(t: datetime, window: QuietHours) -> bool:
    """True if no message may be scheduled at t."""
    return not is_in_send_window(t, window)


def get_next_allowed_time(t: datetime, window: QuietHours) -> datetime:
    """
    Earliest time at or after t that is outside quiet hours.

    Times already outside quiet hours are returned unchanged. Otherwise the
    result is the window opening on the same calendar date, or on the next
    date when that opening is not strictly after t.
    """
    if not is_within_quiet_hours(t, window):
        return t

    start_hour, start_minute = parse_hhmm(window.start)
    candidate = t.replace(hour=start_hour, minute=start_minute, second=0, microsecond=0)
    if candidate <= t:
        candidate += timedelta(days=1)
    return candidate


def is_misconfigured(window: QuietHours) -> bool:
    """
    Heuristic for a start/end pair entered backwards.

    A start later than the end is a legitimate midnight-spanning window only
    when the end falls within the first hour of the day.
    """
    start = to_minutes(window.start)
    end = to_minutes(window.end)
    return start > end and end > 60
