from concurrent.futures import Future
from datetime import datetime, timedelta, timezone

from usage_widget.config import WidgetSettings
from usage_widget.gate import GateState
from usage_widget.host import WidgetHost
from usage_widget.models import UsageMeter, UsageSnapshot
from usage_widget.presenter import build_presenters
from usage_widget.source import SnapshotError

NOW = datetime(2026, 1, 20, 12, 0, tzinfo=timezone.utc)


class RecordingSink:
    targets = frozenset({"session", "weekly", "opus", "sonnet", "monthly"})

    def __init__(self) -> None:
        self.drawn = []

    def draw(self, states, snapshot=None) -> None:
        self.drawn.append(list(states))


class ManualExecutor:
    """Holds submitted calls until the test resolves them."""

    def __init__(self) -> None:
        self.calls = []

    def submit(self, fn):
        future = Future()
        self.calls.append((fn, future))
        return future

    def run(self, index: int = -1) -> None:
        fn, future = self.calls[index]
        try:
            future.set_result(fn())
        except SnapshotError as exc:
            future.set_exception(exc)


def _snapshot(session_reset, utilization: float = 10.0) -> UsageSnapshot:
    return UsageSnapshot(
        session=UsageMeter(utilization, session_reset),
        weekly=UsageMeter(20.0, NOW + timedelta(days=3)),
    )


def _host(requester, executor):
    sink = RecordingSink()
    presenters = build_presenters(WidgetSettings(), sink.targets)
    return WidgetHost(presenters, sink, requester, executor=executor), sink


def test_tick_without_snapshot_draws_nothing() -> None:
    executor = ManualExecutor()
    host, sink = _host(lambda: _snapshot(None), executor)

    assert host.tick(NOW) == []
    assert sink.drawn == []
    assert executor.calls == []


def test_expired_window_requests_one_refresh() -> None:
    executor = ManualExecutor()
    fresh = _snapshot(NOW + timedelta(hours=5))
    host, sink = _host(lambda: fresh, executor)
    host.receive_snapshot(_snapshot(NOW - timedelta(seconds=1)))

    for offset in range(3):
        host.tick(NOW + timedelta(seconds=offset))

    assert len(executor.calls) == 1
    assert host.refresh_in_flight
    assert dict(sink.drawn[0])["session"].detail_text == "No active session"

    executor.run()
    host.tick(NOW + timedelta(seconds=10))

    assert host.snapshot is fresh
    assert host.gate is GateState.IDLE
    assert len(executor.calls) == 1


def test_failed_refresh_rearms_gate() -> None:
    executor = ManualExecutor()

    def failing():
        raise SnapshotError("endpoint down")

    host, _ = _host(failing, executor)
    host.receive_snapshot(_snapshot(None))

    host.tick(NOW)
    host.tick(NOW + timedelta(seconds=1))
    executor.run()
    host.tick(NOW + timedelta(seconds=2))

    assert len(executor.calls) == 2
    assert host.refresh_in_flight


def test_superseded_refresh_result_is_discarded() -> None:
    executor = ManualExecutor()
    stale = _snapshot(NOW - timedelta(hours=1), utilization=1.0)
    host, _ = _host(lambda: stale, executor)
    host.receive_snapshot(_snapshot(None))
    host.tick(NOW)

    pushed = _snapshot(NOW + timedelta(hours=2), utilization=33.0)
    host.receive_snapshot(pushed)
    executor.run(0)
    host.tick(NOW + timedelta(seconds=1))

    assert host.snapshot is pushed
    assert host.gate is GateState.IDLE
    assert len(executor.calls) == 1


def test_unexpected_requester_error_rearms_gate() -> None:
    executor = ManualExecutor()

    def broken():
        raise KeyError("five_hour")

    host, _ = _host(broken, executor)
    host.receive_snapshot(_snapshot(None))
    host.tick(NOW)

    fn, future = executor.calls[0]
    try:
        fn()
    except KeyError as exc:
        future.set_exception(exc)

    for offset in range(1, 4):
        host.tick(NOW + timedelta(seconds=offset))

    assert len(executor.calls) == 2
    assert host.refresh_in_flight
