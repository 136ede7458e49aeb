from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from enum import Enum

from usage_widget.pacing import ResetTime, is_expired


class GateState(Enum):
    IDLE = "idle"
    REFRESH_PENDING = "refresh_pending"


def gate_tick(
    state: GateState,
    reset_times: Iterable[ResetTime],
    now: datetime,
) -> tuple[GateState, bool]:
    """Advance the gate on a tick; the flag says whether to request a refresh."""
    if state is GateState.REFRESH_PENDING:
        return state, False
    if any(is_expired(reset_at, now) for reset_at in reset_times):
        return GateState.REFRESH_PENDING, True
    return state, False


def gate_on_refresh_failed(state: GateState) -> GateState:
    return GateState.IDLE


def gate_on_snapshot(state: GateState) -> GateState:
    # A delivered snapshot closes the episode even if it is still expired.
    return GateState.IDLE
