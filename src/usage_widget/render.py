from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.text import Text

from usage_widget.models import MonthlyUsage, UsageSnapshot
from usage_widget.presenter import RenderState

TITLES = {
    "session": "Session (5h)",
    "weekly": "Weekly (7d)",
    "opus": "Weekly Opus",
    "sonnet": "Weekly Sonnet",
    "monthly": "Monthly",
}
BAR_WIDTH = 28


class RichSink:
    """Draws meter bars with rich, either printed once or into a Live display."""

    targets = frozenset(TITLES)

    def __init__(self, console: Console, live: Live | None = None) -> None:
        self.console = console
        self.live = live

    def draw(
        self,
        states: Sequence[tuple[str, RenderState]],
        snapshot: UsageSnapshot | None = None,
    ) -> None:
        renderable = render_states(
            states, snapshot, styled=self.console.is_terminal or self.live is not None
        )
        if self.live is not None:
            self.live.update(renderable)
        else:
            self.console.print(renderable)


def render_states(
    states: Sequence[tuple[str, RenderState]],
    snapshot: UsageSnapshot | None = None,
    styled: bool = True,
) -> RenderableType:
    if not states:
        return Text("")

    label_width = max(len(TITLES.get(target, target)) for target, _ in states)
    lines: list[RenderableType] = []
    for target, state in states:
        label = TITLES.get(target, target).ljust(label_width)
        line = Text(f"{label} ")
        if styled:
            line.append(_bar_text(state))
        else:
            line.append(bar_string(state))
        line.append(" ")
        line.append(state.detail_text)
        monthly = snapshot.monthly if snapshot is not None else None
        if target == "monthly" and monthly is not None:
            suffix = format_usage_suffix(monthly)
            if suffix:
                line.append(f" {suffix}")
            lines.append(line)
            lines.extend(_model_lines(monthly, label_width, styled))
            continue
        lines.append(line)
    return Group(*lines)


def bar_string(state: RenderState, width: int = BAR_WIDTH) -> str:
    return f"[{''.join(char for char, _ in _bar_cells(state, width))}]"


def usage_style(state: RenderState) -> str:
    if state.severity == "critical":
        return "red"
    if state.severity == "warning":
        return "yellow"
    return "cyan"


def format_usage_suffix(monthly: MonthlyUsage) -> str:
    if monthly.used is None or monthly.limit is None:
        return ""
    return f"{monthly.used:.0f}/{monthly.limit:.0f}"


def _model_lines(monthly: MonthlyUsage, indent: int, styled: bool) -> list[Text]:
    items = sorted(monthly.items, key=lambda item: item.requests, reverse=True)
    padding = " " * (indent + 3)
    style = "bright_black" if styled else ""
    return [
        Text(f"{padding}{item.model} {item.requests:.0f}", style=style)
        for item in items
    ]


def _bar_text(state: RenderState, width: int = BAR_WIDTH) -> Text:
    text = Text("[")
    for char, style in _bar_cells(state, width):
        text.append(char, style=style)
    text.append("]")
    return text


def _bar_cells(state: RenderState, width: int) -> list[tuple[str, str]]:
    usage_end = _cells(state.usage_width, width)
    excess_end = max(usage_end, _cells(state.excess_left + state.excess_width, width))
    time_end = _cells(state.time_width, width)
    style = usage_style(state)

    cells: list[tuple[str, str]] = []
    for index in range(width):
        if index < usage_end:
            cells.append(("#", style))
        elif index < excess_end:
            cells.append(("+", f"bold {style}"))
        elif index < time_end:
            cells.append(("=", "bright_black"))
        else:
            cells.append(("-", "bright_black"))
    return cells


def _cells(percent: float, width: int) -> int:
    filled = int(round(width * percent / 100.0))
    return max(0, min(width, filled))
