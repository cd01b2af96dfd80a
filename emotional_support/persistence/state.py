"""JSON persistence for the cumulative AppState document.

The whole document is rewritten on every save. Durations are stored as
numeric seconds and timestamps as timezone-aware ISO 8601 strings, so both
round-trip exactly. Go-style duration strings (``"25m0s"``) written by
earlier versions are accepted on load.
"""

import json
import logging
import os
import re
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

from emotional_support.core.models import ActivityRecord, AppState

logger = logging.getLogger(__name__)


class StateError(Exception):
    """The state file exists but cannot be read or parsed."""


_GO_DURATION_RE = re.compile(r"(\d+(?:\.\d+)?)(h|ms|us|µs|ns|m|s)")
_GO_UNITS = {
    "h": 3600.0,
    "m": 60.0,
    "s": 1.0,
    "ms": 1e-3,
    "us": 1e-6,
    "µs": 1e-6,
    "ns": 1e-9,
}


def load_state(path: str | Path) -> AppState:
    """Load the AppState stored at *path*.

    A missing file yields a fresh, empty state.

    Raises:
        StateError: If the file cannot be read or is malformed.
    """
    state_path = Path(path)
    if not state_path.exists():
        return AppState(last_save=_now())

    try:
        with open(state_path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise StateError(f"failed to read state file {state_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise StateError("state document must be a JSON object")

    activities = data.get("activities") or []
    if not isinstance(activities, list):
        raise StateError("activities must be a JSON array")

    state = AppState()
    for index, raw in enumerate(activities):
        try:
            record = _activity_from_json(raw)
            state.record_activity(
                record.window_key,
                record.duration,
                record.timestamp,
                language=record.language,
                program=record.program,
            )
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            raise StateError(f"malformed activity #{index}: {exc}") from exc

    last_save = data.get("last_save")
    if last_save:
        try:
            state.last_save = datetime.fromisoformat(last_save)
        except (TypeError, ValueError) as exc:
            raise StateError(f"malformed last_save: {exc}") from exc
    return state


def save_state(state: AppState, path: str | Path, now: Optional[datetime] = None) -> None:
    """Write *state* to *path*, replacing the previous document atomically."""
    state.last_save = now or _now()
    state_path = Path(path)
    state_path.parent.mkdir(parents=True, exist_ok=True)

    document = {
        "activities": [_activity_to_json(a) for a in state.activities],
        "total_time": state.total_time.total_seconds(),
        "last_save": state.last_save.isoformat(),
    }

    fd, tmp_name = tempfile.mkstemp(
        prefix=".state-", suffix=".json", dir=str(state_path.parent)
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(document, fh, indent=2, ensure_ascii=False)
            fh.write("\n")
        os.replace(tmp_name, state_path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


def parse_duration(value: Any) -> timedelta:
    """Parse numeric seconds or a Go-style duration string like ``1h2m3.5s``."""
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    if not isinstance(value, str):
        raise ValueError(f"invalid duration: {value!r}")

    text = value.strip()
    if text in ("0", ""):
        return timedelta()
    try:
        return timedelta(seconds=float(text))
    except ValueError:
        pass

    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    pos = 0
    seconds = 0.0
    for match in _GO_DURATION_RE.finditer(text):
        if match.start() != pos:
            break
        seconds += float(match.group(1)) * _GO_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(text) or pos == 0:
        raise ValueError(f"invalid duration: {value!r}")
    return timedelta(seconds=sign * seconds)


def _activity_to_json(record: ActivityRecord) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "window_key": record.window_key,
        "duration": record.duration.total_seconds(),
        "timestamp": record.timestamp.isoformat(),
    }
    if record.language:
        entry["language"] = record.language
    if record.program:
        entry["program"] = record.program
    return entry


def _activity_from_json(raw: dict[str, Any]) -> ActivityRecord:
    return ActivityRecord(
        window_key=raw["window_key"],
        duration=parse_duration(raw["duration"]),
        timestamp=datetime.fromisoformat(raw["timestamp"]),
        language=raw.get("language", ""),
        program=raw.get("program", ""),
    )


def _now() -> datetime:
    return datetime.now().astimezone()
