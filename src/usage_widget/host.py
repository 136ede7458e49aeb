from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from datetime import datetime
from typing import Protocol

from usage_widget.gate import (
    GateState,
    gate_on_refresh_failed,
    gate_on_snapshot,
    gate_tick,
)
from usage_widget.models import UsageSnapshot
from usage_widget.presenter import MeterPresenter, RenderState, present_snapshot

logger = logging.getLogger(__name__)

RefreshRequester = Callable[[], UsageSnapshot]


class RenderSink(Protocol):
    targets: frozenset[str]

    def draw(
        self,
        states: Sequence[tuple[str, RenderState]],
        snapshot: UsageSnapshot | None = None,
    ) -> None: ...


class WidgetHost:
    """Owns the latest snapshot and the refresh gate for one tick loop.

    Every method is meant to be called from the loop thread. The refresh
    requester runs on ``executor`` and its future is only inspected from
    :meth:`collect`, so snapshot and gate state never change concurrently.
    """

    def __init__(
        self,
        presenters: Iterable[MeterPresenter],
        sink: RenderSink,
        requester: RefreshRequester,
        executor: Executor | None = None,
    ) -> None:
        self.presenters = list(presenters)
        self.sink = sink
        self.requester = requester
        self.snapshot: UsageSnapshot | None = None
        self.gate = GateState.IDLE
        self._executor = executor
        self._owns_executor = executor is None
        self._generation = 0
        self._pending: tuple[int, Future[UsageSnapshot]] | None = None

    def __enter__(self) -> WidgetHost:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    def receive_snapshot(self, snapshot: UsageSnapshot) -> None:
        self.snapshot = snapshot
        self._generation += 1
        self.gate = gate_on_snapshot(self.gate)

    def tick(self, now: datetime) -> list[tuple[str, RenderState]]:
        self.collect()
        if self.snapshot is None:
            return []

        states = present_snapshot(self.presenters, self.snapshot, now)
        self.sink.draw(states, self.snapshot)

        self.gate, request = gate_tick(
            self.gate, self.snapshot.tracked_reset_times(), now
        )
        if request:
            self._request_refresh()
        return states

    def collect(self) -> None:
        if self._pending is None:
            return
        generation, future = self._pending
        if not future.done():
            return
        self._pending = None

        try:
            snapshot = future.result()
        except Exception as exc:
            if generation != self._generation:
                logger.debug("Ignoring failure of superseded refresh: %s", exc)
                return
            logger.warning("Usage refresh failed: %s", exc)
            self.gate = gate_on_refresh_failed(self.gate)
            return

        if generation != self._generation:
            logger.debug("Discarding refresh result superseded by a newer snapshot")
            return
        self.receive_snapshot(snapshot)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def refresh_in_flight(self) -> bool:
        return self.gate is GateState.REFRESH_PENDING

    def _request_refresh(self) -> None:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1)
        logger.info("Usage window reset reached; requesting refresh")
        self._pending = (self._generation, self._executor.submit(self.requester))
