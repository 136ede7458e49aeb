import json
from datetime import datetime, timedelta, timezone

import pytest

from usage_widget import cli


def _write_snapshot(path, session_reset, weekly_reset) -> None:
    payload = {
        "claude": {
            "five_hour": {"utilization": 10, "resets_at": session_reset},
            "seven_day": {"utilization": 85, "resets_at": weekly_reset},
        }
    }
    path.write_text(json.dumps(payload))


@pytest.fixture
def snapshot_file(tmp_path, monkeypatch):
    for name in ("USAGE_WIDGET_SOURCE", "USAGE_WIDGET_TICK_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    now = datetime.now(timezone.utc)
    path = tmp_path / "usage.json"
    _write_snapshot(
        path,
        (now + timedelta(hours=4)).isoformat(),
        (now + timedelta(days=3)).isoformat(),
    )
    return path


def test_main_returns_zero(snapshot_file, capsys) -> None:
    assert cli.main([str(snapshot_file)]) == 0

    output = capsys.readouterr().out
    assert "Session (5h)" in output
    assert "Weekly (7d)" in output
    assert "Not configured" in output


def test_main_reports_missing_source(tmp_path, capsys) -> None:
    assert cli.main([str(tmp_path / "missing.json")]) == 1

    assert "Snapshot file not found" in capsys.readouterr().out


def test_main_tmux_outputs_status(snapshot_file, capsys) -> None:
    assert cli.main([str(snapshot_file), "--tmux"]) == 0

    output = capsys.readouterr().out
    assert output.startswith("5h #[fg=cyan]10%#[default] 7d #[fg=red]85%+#[default]")
    assert output.endswith("mo --%")


def test_main_watch_stops_on_interrupt(snapshot_file, monkeypatch) -> None:
    ticks = []
    original_tick = cli.WidgetHost.tick

    def recording_tick(self, now):
        ticks.append(now)
        return original_tick(self, now)

    def interrupt(seconds):
        raise KeyboardInterrupt

    monkeypatch.setattr(cli.WidgetHost, "tick", recording_tick)
    monkeypatch.setattr(cli.time, "sleep", interrupt)

    assert cli.main([str(snapshot_file), "--watch", "--interval", "10"]) == 0
    assert len(ticks) == 1
