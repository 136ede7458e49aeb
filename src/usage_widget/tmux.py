from __future__ import annotations

from collections.abc import Iterable

from usage_widget.pacing import round_percent
from usage_widget.presenter import RenderState
from usage_widget.render import usage_style

STATUS_LABELS = {
    "session": "5h",
    "weekly": "7d",
    "monthly": "mo",
}


def render_tmux_status(states: Iterable[tuple[str, RenderState]]) -> str:
    by_target = dict(states)
    if not by_target:
        return ""

    parts = []
    for target, label in STATUS_LABELS.items():
        state = by_target.get(target)
        if state is None:
            continue
        parts.append(f"{label} {_styled_percent(state)}")
    return " ".join(parts)


def _styled_percent(state: RenderState) -> str:
    if not state.active:
        return "--%"
    value = f"{round_percent(state.usage_percent)}%"
    if state.overpace:
        value += "+"
    return _style_text(value, usage_style(state))


def _style_text(text: str, color: str) -> str:
    return f"#[fg={color}]{text}#[default]"
