from __future__ import annotations

import json
from pathlib import Path

import httpx

from usage_widget.models import UsageSnapshot, parse_snapshot


class SnapshotError(RuntimeError):
    pass


def load_snapshot(location: str, client: httpx.Client | None = None) -> UsageSnapshot:
    if _is_url(location):
        payload = _fetch_json(location, client)
    else:
        payload = _read_json(snapshot_path(location))
    try:
        return parse_snapshot(payload)
    except ValueError as exc:
        raise SnapshotError(f"Invalid snapshot from {location}: {exc}") from exc


def snapshot_path(location: str) -> Path:
    return Path(location).expanduser()


class FileWatch:
    """Reports when a snapshot file has been rewritten since the last check."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._mtime = self._current_mtime()

    def changed(self) -> bool:
        mtime = self._current_mtime()
        if mtime is None or mtime == self._mtime:
            return False
        self._mtime = mtime
        return True

    def _current_mtime(self) -> float | None:
        try:
            return self.path.stat().st_mtime
        except OSError:
            return None


def _is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


def _fetch_json(url: str, client: httpx.Client | None) -> object:
    headers = {"Accept": "application/json", "User-Agent": "usage-widget"}
    try:
        if client is None:
            with httpx.Client(headers=headers, timeout=10.0) as session:
                response = session.get(url)
                response.raise_for_status()
                return response.json()

        response = client.get(url, headers=headers)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPError as exc:
        raise SnapshotError(f"Snapshot request failed: {exc}") from exc
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SnapshotError(f"Snapshot from {url} is not valid JSON") from exc


def _read_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise SnapshotError(f"Snapshot file not found at {path}") from exc
    except OSError as exc:
        raise SnapshotError(f"Snapshot file at {path} could not be read") from exc
    except UnicodeDecodeError as exc:
        raise SnapshotError(f"Snapshot file at {path} is not valid UTF-8") from exc
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"Snapshot file at {path} is not valid JSON") from exc
