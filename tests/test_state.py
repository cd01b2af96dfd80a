"""Unit tests for AppState JSON persistence."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from emotional_support.core.models import AppState
from emotional_support.persistence.state import (
    StateError,
    load_state,
    parse_duration,
    save_state,
)


TZ = timezone(timedelta(hours=2))
TS = datetime(2025, 5, 4, 14, 30, 15, 123456, tzinfo=TZ)


class TestRoundTrip:
    def test_activity_survives_save_and_load(self, tmp_path):
        path = tmp_path / "state.json"
        state = AppState()
        state.record_activity("vim|main.go", timedelta(seconds=1500), TS, language="go", program="vim")

        save_state(state, path, now=TS)
        loaded = load_state(path)

        assert len(loaded.activities) == 1
        record = loaded.activities[0]
        assert record.window_key == "vim|main.go"
        assert record.duration == timedelta(seconds=1500)
        assert record.timestamp == TS
        assert record.timestamp.utcoffset() == timedelta(hours=2)
        assert record.language == "go"
        assert record.program == "vim"
        assert loaded.total_time == timedelta(seconds=1500)
        assert loaded.last_save == TS

    def test_subsecond_durations_are_preserved(self, tmp_path):
        path = tmp_path / "state.json"
        state = AppState()
        state.record_activity("a|b", timedelta(seconds=12, microseconds=500000), TS)

        save_state(state, path, now=TS)

        assert load_state(path).activities[0].duration == timedelta(seconds=12.5)

    def test_document_layout(self, tmp_path):
        path = tmp_path / "state.json"
        state = AppState()
        state.record_activity("firefox|Docs", timedelta(minutes=2), TS)

        save_state(state, path, now=TS)
        doc = json.loads(path.read_text())

        assert doc["total_time"] == 120.0
        assert doc["last_save"] == TS.isoformat()
        assert doc["activities"] == [
            {"window_key": "firefox|Docs", "duration": 120.0, "timestamp": TS.isoformat()}
        ]

    def test_save_creates_parent_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "state.json"
        save_state(AppState(), path, now=TS)
        assert path.exists()

    def test_save_leaves_no_temp_files(self, tmp_path):
        path = tmp_path / "state.json"
        save_state(AppState(), path, now=TS)
        save_state(AppState(), path, now=TS)
        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]


class TestLoad:
    def test_missing_file_gives_empty_state(self, tmp_path):
        state = load_state(tmp_path / "missing.json")
        assert state.activities == []
        assert state.total_time == timedelta()
        assert state.last_save is not None

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{broken")
        with pytest.raises(StateError):
            load_state(path)

    def test_non_object_raises(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("[]")
        with pytest.raises(StateError):
            load_state(path)

    def test_malformed_activity_raises(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"activities": [{"window_key": "x"}]}))
        with pytest.raises(StateError, match="activity #0"):
            load_state(path)

    def test_non_list_activities_raises(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"activities": 5}))
        with pytest.raises(StateError, match="array"):
            load_state(path)

    def test_non_object_activity_raises(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"activities": [5]}))
        with pytest.raises(StateError, match="activity #0"):
            load_state(path)

    def test_out_of_range_duration_raises(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({
            "activities": [
                {"window_key": "a|b", "duration": 1e20, "timestamp": TS.isoformat()},
            ],
        }))
        with pytest.raises(StateError, match="activity #0"):
            load_state(path)

    def test_total_time_is_recomputed(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({
            "activities": [
                {"window_key": "a|b", "duration": 60, "timestamp": TS.isoformat()},
                {"window_key": "c|d", "duration": 30, "timestamp": TS.isoformat()},
            ],
            "total_time": 999999,
        }))
        assert load_state(path).total_time == timedelta(seconds=90)

    def test_legacy_duration_strings(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({
            "activities": [
                {
                    "window_key": "vim|main.go",
                    "duration": "25m0s",
                    "timestamp": "2025-05-04T14:30:15+02:00",
                    "language": "go",
                    "program": "vim",
                },
            ],
            "total_time": "25m0s",
            "last_save": "2025-05-04T14:31:00Z",
        }))

        state = load_state(path)

        assert state.activities[0].duration == timedelta(minutes=25)
        assert state.last_save == datetime(2025, 5, 4, 14, 31, tzinfo=timezone.utc)


class TestParseDuration:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (90, timedelta(seconds=90)),
            (1.5, timedelta(seconds=1.5)),
            ("42", timedelta(seconds=42)),
            ("0", timedelta()),
            ("0s", timedelta()),
            ("1h2m3.5s", timedelta(hours=1, minutes=2, seconds=3.5)),
            ("1h0m0s", timedelta(hours=1)),
            ("250ms", timedelta(milliseconds=250)),
            ("-5s", timedelta(seconds=-5)),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["abc", "5x", "1h banana", True, None, [1]])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)
