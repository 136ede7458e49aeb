from __future__ import annotations

import math
from datetime import datetime, timezone, tzinfo
from typing import Literal, Union

from usage_widget.models import parse_timestamp

Severity = Literal["none", "warning", "critical"]
ResetTime = Union[datetime, str, int, float, None]

RESETTING_TEXT = "resetting..."
WARNING_PERCENT = 60.0
CRITICAL_PERCENT = 80.0


def clamp_percent(percent: float) -> float:
    return max(0.0, min(100.0, percent))


def round_percent(percent: float) -> int:
    # Halves round up, never to even.
    return math.floor(percent + 0.5)


def seconds_remaining(resets_at: ResetTime, now: datetime) -> float | None:
    reset = parse_timestamp(resets_at)
    if reset is None:
        return None
    return (reset - now).total_seconds()


def is_expired(resets_at: ResetTime, now: datetime) -> bool:
    """True when the reset time is unknown or has been reached."""
    remaining = seconds_remaining(resets_at, now)
    return remaining is None or remaining <= 0


def elapsed_fraction(resets_at: ResetTime, window_hours: float, now: datetime) -> float:
    remaining = seconds_remaining(resets_at, now)
    if remaining is None:
        return 0.0
    total = window_hours * 3600.0
    elapsed = total - remaining
    return clamp_percent(elapsed / total * 100.0)


def monthly_elapsed_fraction(resets_at: ResetTime, now: datetime) -> float:
    reset = parse_timestamp(resets_at)
    if reset is None:
        return 0.0
    month_start = month_start_utc(now)
    total = (reset - month_start).total_seconds()
    if total <= 0:
        return 0.0
    elapsed = (now - month_start).total_seconds()
    return clamp_percent(elapsed / total * 100.0)


def month_start_utc(now: datetime) -> datetime:
    current = now.astimezone(timezone.utc)
    return datetime(current.year, current.month, 1, tzinfo=timezone.utc)


def severity_tier(percent: float) -> Severity:
    if percent >= CRITICAL_PERCENT:
        return "critical"
    if percent >= WARNING_PERCENT:
        return "warning"
    return "none"


def format_remaining(resets_at: ResetTime, now: datetime) -> str:
    remaining = seconds_remaining(resets_at, now)
    if remaining is None or remaining <= 0:
        return RESETTING_TEXT

    total_minutes = int(remaining // 60)
    days, minutes_of_day = divmod(total_minutes, 1440)
    hours, minutes = divmod(minutes_of_day, 60)
    if days > 0:
        return f"{days}d {hours}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_reset_clock_time(
    resets_at: ResetTime,
    now: datetime,
    tz: tzinfo | None = None,
    time_format: str = "%H:%M",
    date_format: str | None = None,
) -> str:
    """Clock time when the reset is less than a day away, otherwise its date.

    Times are shown in ``tz`` (the local zone by default). Without a
    ``date_format`` the date is written as ``month/day``.
    """
    reset = parse_timestamp(resets_at)
    if reset is None or (reset - now).total_seconds() <= 0:
        return RESETTING_TEXT

    local = reset.astimezone(tz)
    if (reset - now).total_seconds() < 24 * 3600:
        return local.strftime(time_format)
    if date_format is None:
        return f"{local.month}/{local.day}"
    return local.strftime(date_format)
