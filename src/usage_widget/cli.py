from __future__ import annotations

import argparse
import logging
import time
from datetime import datetime, timezone
from typing import Sequence

from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler

from usage_widget.config import WidgetSettings, load_settings
from usage_widget.host import WidgetHost
from usage_widget.models import UsageSnapshot
from usage_widget.presenter import (
    RenderTargetError,
    build_presenters,
    present_snapshot,
)
from usage_widget.render import RichSink
from usage_widget.source import FileWatch, SnapshotError, load_snapshot, snapshot_path
from usage_widget.tmux import render_tmux_status

logger = logging.getLogger(__name__)

POLL_SECONDS = 1.0


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="usage-widget",
        description="Show usage pacing for session, weekly and monthly windows.",
    )
    parser.add_argument(
        "source",
        nargs="?",
        help="Snapshot JSON file or http(s) URL.",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep redrawing and refresh when a window resets.",
    )
    parser.add_argument(
        "--tmux",
        action="store_true",
        help="Print tmux-ready usage status line.",
    )
    parser.add_argument(
        "--interval",
        type=int,
        help="Seconds between ticks in watch mode (10-600).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log refresh activity.",
    )
    args = parser.parse_args(argv)

    console = Console()
    _configure_logging(console, args.verbose)
    settings = load_settings(source=args.source, tick_seconds=args.interval)

    try:
        snapshot = load_snapshot(settings.source)
    except SnapshotError as exc:
        _print_error(console, str(exc))
        return 1

    if args.tmux:
        return _run_tmux(console, settings, snapshot)
    if args.watch:
        return _run_watch(console, settings, snapshot)

    sink = RichSink(console)
    try:
        presenters = build_presenters(settings, sink.targets)
    except RenderTargetError as exc:
        _print_error(console, str(exc))
        return 1
    sink.draw(present_snapshot(presenters, snapshot, _now()), snapshot)
    return 0


def _configure_logging(console: Console, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _print_error(console: Console, message: str) -> None:
    if console.is_terminal:
        console.print(f"[red]{message}[/red]")
    else:
        console.print(message)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _run_tmux(
    console: Console, settings: WidgetSettings, snapshot: UsageSnapshot
) -> int:
    states = present_snapshot(build_presenters(settings), snapshot, _now())
    status = render_tmux_status(states)
    if not status:
        return 1
    console.file.write(status)
    return 0


def _run_watch(
    console: Console, settings: WidgetSettings, snapshot: UsageSnapshot
) -> int:
    watch = None
    if not settings.source.startswith(("http://", "https://")):
        watch = FileWatch(snapshot_path(settings.source))

    def request_refresh() -> UsageSnapshot:
        return load_snapshot(settings.source)

    with Live(console=console, auto_refresh=False) as live:
        sink = RichSink(console, live)
        try:
            presenters = build_presenters(settings, sink.targets)
        except RenderTargetError as exc:
            _print_error(console, str(exc))
            return 1

        with WidgetHost(presenters, sink, request_refresh) as host:
            host.receive_snapshot(snapshot)
            last_tick: float | None = None
            drawn_generation = -1
            try:
                while True:
                    if watch is not None and watch.changed():
                        _push_snapshot(host, settings.source)
                    host.collect()
                    due = (
                        last_tick is None
                        or time.monotonic() - last_tick >= settings.tick_seconds
                    )
                    if due or host.generation != drawn_generation:
                        host.tick(_now())
                        live.refresh()
                        last_tick = time.monotonic()
                        drawn_generation = host.generation
                    time.sleep(POLL_SECONDS)
            except KeyboardInterrupt:
                return 0


def _push_snapshot(host: WidgetHost, source: str) -> None:
    try:
        snapshot = load_snapshot(source)
    except SnapshotError as exc:
        logger.warning("Ignoring updated snapshot: %s", exc)
        return
    logger.debug("Snapshot file changed; applying update")
    host.receive_snapshot(snapshot)


if __name__ == "__main__":
    raise SystemExit(main())
