from usage_widget.config import DEFAULT_SOURCE, DEFAULT_TICK_SECONDS, load_settings


def test_defaults(monkeypatch) -> None:
    for name in (
        "USAGE_WIDGET_SOURCE",
        "USAGE_WIDGET_TICK_SECONDS",
        "USAGE_WIDGET_SESSION_LABEL",
        "USAGE_WIDGET_WEEKLY_LABEL",
        "USAGE_WIDGET_MONTHLY_LABEL",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert settings.source == DEFAULT_SOURCE
    assert settings.tick_seconds == DEFAULT_TICK_SECONDS
    assert settings.session_label == "No active session"
    assert settings.weekly_label == "Awaiting reset"
    assert settings.monthly_label == "Not configured"


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("USAGE_WIDGET_SOURCE", "/tmp/usage.json")
    monkeypatch.setenv("USAGE_WIDGET_TICK_SECONDS", "45")
    monkeypatch.setenv("USAGE_WIDGET_MONTHLY_LABEL", "Copilot off")

    settings = load_settings()

    assert settings.source == "/tmp/usage.json"
    assert settings.tick_seconds == 45
    assert settings.monthly_label == "Copilot off"


def test_cli_values_win_over_environment(monkeypatch) -> None:
    monkeypatch.setenv("USAGE_WIDGET_SOURCE", "/tmp/usage.json")
    monkeypatch.setenv("USAGE_WIDGET_TICK_SECONDS", "45")

    settings = load_settings(source="http://127.0.0.1:8765/usage", tick_seconds=120)

    assert settings.source == "http://127.0.0.1:8765/usage"
    assert settings.tick_seconds == 120


def test_out_of_range_interval_falls_back(monkeypatch) -> None:
    monkeypatch.setenv("USAGE_WIDGET_TICK_SECONDS", "abc")
    assert load_settings().tick_seconds == DEFAULT_TICK_SECONDS

    monkeypatch.setenv("USAGE_WIDGET_TICK_SECONDS", "5")
    assert load_settings().tick_seconds == DEFAULT_TICK_SECONDS

    monkeypatch.delenv("USAGE_WIDGET_TICK_SECONDS")
    assert load_settings(tick_seconds=601).tick_seconds == DEFAULT_TICK_SECONDS
