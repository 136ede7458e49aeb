from __future__ import annotations

import os
from dataclasses import dataclass, replace

DEFAULT_TICK_SECONDS = 30
MIN_TICK_SECONDS = 10
MAX_TICK_SECONDS = 600
DEFAULT_SOURCE = "~/.usage-dashboard/usage.json"


@dataclass(frozen=True)
class WidgetSettings:
    source: str = DEFAULT_SOURCE
    tick_seconds: int = DEFAULT_TICK_SECONDS
    session_label: str = "No active session"
    weekly_label: str = "Awaiting reset"
    monthly_label: str = "Not configured"


def load_settings(
    source: str | None = None,
    tick_seconds: int | None = None,
) -> WidgetSettings:
    settings = WidgetSettings()

    env_values = {
        "source": os.environ.get("USAGE_WIDGET_SOURCE"),
        "tick": os.environ.get("USAGE_WIDGET_TICK_SECONDS"),
        "session_label": os.environ.get("USAGE_WIDGET_SESSION_LABEL"),
        "weekly_label": os.environ.get("USAGE_WIDGET_WEEKLY_LABEL"),
        "monthly_label": os.environ.get("USAGE_WIDGET_MONTHLY_LABEL"),
    }
    settings = _merge_settings(settings, env_values)

    cli_values = {
        "source": source,
        "tick": str(tick_seconds) if tick_seconds is not None else None,
    }
    return _merge_settings(settings, cli_values)


def _merge_settings(
    current: WidgetSettings, incoming: dict[str, str | None]
) -> WidgetSettings:
    return replace(
        current,
        source=incoming.get("source") or current.source,
        tick_seconds=_parse_interval(incoming.get("tick"), current.tick_seconds),
        session_label=incoming.get("session_label") or current.session_label,
        weekly_label=incoming.get("weekly_label") or current.weekly_label,
        monthly_label=incoming.get("monthly_label") or current.monthly_label,
    )


def _parse_interval(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    if parsed < MIN_TICK_SECONDS or parsed > MAX_TICK_SECONDS:
        return default
    return parsed
