from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class UsageMeter:
    utilization: float
    resets_at: datetime | None


@dataclass(frozen=True)
class WindowSpec:
    """Length of a rolling window, or a calendar-month window when monthly."""

    duration_hours: float | None = None
    monthly: bool = False

    def __post_init__(self) -> None:
        if self.monthly:
            return
        if self.duration_hours is None or self.duration_hours <= 0:
            raise ValueError("duration_hours must be positive for a fixed window")

    @classmethod
    def fixed(cls, hours: float) -> WindowSpec:
        return cls(duration_hours=hours)

    @classmethod
    def calendar_month(cls) -> WindowSpec:
        return cls(monthly=True)


SESSION_WINDOW = WindowSpec.fixed(5)
WEEKLY_WINDOW = WindowSpec.fixed(168)
MONTHLY_WINDOW = WindowSpec.calendar_month()


@dataclass(frozen=True)
class ModelUsage:
    model: str
    requests: float


@dataclass(frozen=True)
class MonthlyUsage:
    meter: UsageMeter
    used: float | None = None
    limit: float | None = None
    items: tuple[ModelUsage, ...] = ()


@dataclass(frozen=True)
class UsageSnapshot:
    session: UsageMeter
    weekly: UsageMeter
    opus: UsageMeter | None = None
    sonnet: UsageMeter | None = None
    monthly: MonthlyUsage | None = None

    def meters(self) -> dict[str, UsageMeter | None]:
        return {
            "session": self.session,
            "weekly": self.weekly,
            "opus": self.opus,
            "sonnet": self.sonnet,
            "monthly": self.monthly.meter if self.monthly else None,
        }

    def tracked_reset_times(self) -> list[datetime | None]:
        times = [self.session.resets_at, self.weekly.resets_at]
        if self.monthly is not None:
            times.append(self.monthly.meter.resets_at)
        return times


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string or epoch number, returning None when unusable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _ensure_aware(value)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = float(value)
        if seconds > 1_000_000_000_000:
            seconds = seconds / 1000.0
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    normalized = str(value).strip().replace("Z", "+00:00")
    try:
        return _ensure_aware(datetime.fromisoformat(normalized))
    except ValueError:
        return None


def parse_snapshot(payload: Any) -> UsageSnapshot:
    if not isinstance(payload, dict):
        raise ValueError("snapshot document must be a JSON object")

    claude = payload.get("claude")
    if not isinstance(claude, dict):
        claude = payload
    copilot = payload.get("copilot")

    session = _parse_meter(claude.get("five_hour"))
    weekly = _parse_meter(claude.get("seven_day"))
    if session is None or weekly is None:
        raise ValueError("snapshot is missing five_hour or seven_day usage")

    return UsageSnapshot(
        session=session,
        weekly=weekly,
        opus=_parse_meter(claude.get("seven_day_opus")),
        sonnet=_parse_meter(claude.get("seven_day_sonnet")),
        monthly=_parse_monthly(copilot),
    )


def _parse_meter(entry: Any) -> UsageMeter | None:
    if not isinstance(entry, dict):
        return None
    return UsageMeter(
        utilization=_coerce_number(entry.get("utilization")) or 0.0,
        resets_at=parse_timestamp(entry.get("resets_at")),
    )


def _parse_monthly(entry: Any) -> MonthlyUsage | None:
    meter = _parse_meter(entry)
    if meter is None:
        return None
    raw_items = entry.get("items")
    if not isinstance(raw_items, list):
        raw_items = []
    items = tuple(
        ModelUsage(
            model=str(item.get("model")),
            requests=_coerce_number(item.get("gross_quantity")) or 0.0,
        )
        for item in raw_items
        if isinstance(item, dict) and item.get("model")
    )
    return MonthlyUsage(
        meter=meter,
        used=_coerce_number(entry.get("total_requests")),
        limit=_coerce_number(entry.get("monthly_limit")),
        items=items,
    )


def _coerce_number(value: Any) -> float | None:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
