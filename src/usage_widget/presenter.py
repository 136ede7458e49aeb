from __future__ import annotations

from collections.abc import Collection, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from usage_widget.models import (
    MONTHLY_WINDOW,
    SESSION_WINDOW,
    WEEKLY_WINDOW,
    UsageMeter,
    UsageSnapshot,
    WindowSpec,
)
from usage_widget.pacing import (
    Severity,
    clamp_percent,
    elapsed_fraction,
    format_remaining,
    format_reset_clock_time,
    is_expired,
    monthly_elapsed_fraction,
    round_percent,
    severity_tier,
)

if TYPE_CHECKING:
    from usage_widget.config import WidgetSettings


class RenderTargetError(LookupError):
    pass


@dataclass(frozen=True)
class RenderState:
    usage_percent: float
    time_percent: float
    overpace: bool
    severity: Severity
    detail_text: str
    usage_width: float = 0.0
    time_width: float = 0.0
    excess_left: float = 0.0
    excess_width: float = 0.0
    active: bool = True

    @classmethod
    def inactive(cls, label: str) -> RenderState:
        return cls(
            usage_percent=0.0,
            time_percent=0.0,
            overpace=False,
            severity="none",
            detail_text=label,
            active=False,
        )


class MeterPresenter:
    """Turns one meter of a snapshot into the bar layout drawn by a sink."""

    def __init__(
        self,
        target: str,
        window: WindowSpec,
        inactive_label: str,
        targets: Collection[str] | None = None,
        show_when_absent: bool = False,
    ) -> None:
        if not target:
            raise RenderTargetError("render target name must not be empty")
        if targets is not None and target not in targets:
            raise RenderTargetError(f"Render target {target!r} not found")
        self.target = target
        self.window = window
        self.inactive_label = inactive_label
        self.show_when_absent = show_when_absent

    def time_percent(self, meter: UsageMeter, now: datetime) -> float:
        if self.window.monthly:
            return monthly_elapsed_fraction(meter.resets_at, now)
        return elapsed_fraction(meter.resets_at, self.window.duration_hours, now)

    def present(self, meter: UsageMeter, now: datetime) -> RenderState:
        if is_expired(meter.resets_at, now):
            return RenderState.inactive(self.inactive_label)

        time_percent = clamp_percent(self.time_percent(meter, now))
        usage_percent = clamp_percent(meter.utilization)
        overpace = usage_percent > time_percent

        if overpace:
            usage_width = time_percent
            excess_width = usage_percent - time_percent
            excess_left = time_percent
            suffix = f" (+{round_percent(excess_width)}%)"
        else:
            usage_width = usage_percent
            excess_width = 0.0
            excess_left = usage_percent
            suffix = ""

        clock = format_reset_clock_time(meter.resets_at, now)
        remaining = format_remaining(meter.resets_at, now)
        used = round_percent(usage_percent)
        return RenderState(
            usage_percent=usage_percent,
            time_percent=time_percent,
            overpace=overpace,
            severity=severity_tier(usage_percent),
            detail_text=f"{used}% used{suffix} · Reset {clock} ({remaining})",
            usage_width=usage_width,
            time_width=time_percent,
            excess_left=excess_left,
            excess_width=excess_width,
        )


def build_presenters(
    settings: WidgetSettings,
    targets: Collection[str] | None = None,
) -> list[MeterPresenter]:
    return [
        MeterPresenter("session", SESSION_WINDOW, settings.session_label, targets),
        MeterPresenter("weekly", WEEKLY_WINDOW, settings.weekly_label, targets),
        MeterPresenter("opus", WEEKLY_WINDOW, settings.weekly_label, targets),
        MeterPresenter("sonnet", WEEKLY_WINDOW, settings.weekly_label, targets),
        MeterPresenter(
            "monthly",
            MONTHLY_WINDOW,
            settings.monthly_label,
            targets,
            show_when_absent=True,
        ),
    ]


def present_snapshot(
    presenters: Iterable[MeterPresenter],
    snapshot: UsageSnapshot,
    now: datetime,
) -> list[tuple[str, RenderState]]:
    meters = snapshot.meters()
    states: list[tuple[str, RenderState]] = []
    for presenter in presenters:
        meter = meters.get(presenter.target)
        if meter is None:
            if presenter.show_when_absent:
                states.append(
                    (presenter.target, RenderState.inactive(presenter.inactive_label))
                )
            continue
        states.append((presenter.target, presenter.present(meter, now)))
    return states
