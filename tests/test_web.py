"""Tests for the dashboard web endpoints."""

from datetime import date, datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest

from emotional_support.core.models import (
    Context,
    DwellSession,
    NotificationKind,
    NotificationRecord,
    WindowInfo,
)
from emotional_support.persistence.store import ActivityStore
from emotional_support.reporting.summary import SummaryGenerator
from emotional_support.ui.web import create_flask_app, start_dashboard
import emotional_support.ui.web as web_module


@pytest.fixture
def store(tmp_path):
    s = ActivityStore(str(tmp_path / "test.db"))
    s.init_db()
    yield s
    s.close()


@pytest.fixture
def app_ref(store):
    """Minimal mock of the app object that the web module expects."""
    ref = MagicMock()
    ref._store = store
    ref._summary_generator = SummaryGenerator(store)
    ref._tracking = True
    ref.status.return_value = {"tracking": True, "program": "vim", "dwell_seconds": 42}
    return ref


@pytest.fixture
def client(app_ref):
    old = web_module._app_ref
    web_module._app_ref = app_ref
    flask_app = create_flask_app()
    flask_app.config["TESTING"] = True
    with flask_app.test_client() as c:
        yield c
    web_module._app_ref = old


def _log_session(store, start, minutes, program, language=""):
    store.log_window_session(
        DwellSession(
            window_key=f"{program}|t",
            context=Context(program=program, window_title="t", language=language),
            window=WindowInfo(title="t", process=program),
            started_at=start,
            ended_at=start + timedelta(minutes=minutes),
            duration=timedelta(minutes=minutes),
        )
    )


# ------------------------------------------------------------------
# Routes
# ------------------------------------------------------------------

def test_index_serves_dashboard(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert b"Emotional Support" in resp.data


def test_status_delegates_to_app(client):
    resp = client.get("/api/status")
    assert resp.get_json() == {"tracking": True, "program": "vim", "dwell_seconds": 42}


def test_status_without_app():
    old = web_module._app_ref
    web_module._app_ref = None
    try:
        client = create_flask_app().test_client()
        assert client.get("/api/status").get_json() == {"error": "not initialized"}
        assert client.get("/api/summary/daily").get_json() == {"error": "not ready"}
        assert client.get("/api/notifications").get_json() == []
    finally:
        web_module._app_ref = old


class TestDailySummaryEndpoint:
    def test_summary_for_date(self, client, store):
        day = date(2025, 1, 15)
        _log_session(store, datetime(2025, 1, 15, 9), 90, "vim", "go")
        _log_session(store, datetime(2025, 1, 15, 11), 30, "firefox")
        store.log_notification(
            NotificationRecord(
                kind=NotificationKind.HEALTH, title="t", message="m",
                sent_at=datetime(2025, 1, 15, 10),
            )
        )

        data = client.get(f"/api/summary/daily?date={day.isoformat()}").get_json()

        assert data["date"] == "2025-01-15"
        assert data["total_time"] == 120 * 60
        assert data["total_time_str"] == "2h 0m"
        assert data["total_sessions"] == 2
        assert data["programs"][0] == {
            "name": "vim", "time": 5400, "time_str": "1h 30m", "sessions": 1,
        }
        assert [l["name"] for l in data["languages"]] == ["go"]
        assert data["notifications"] == {"health": 1}

    def test_defaults_to_today(self, client):
        data = client.get("/api/summary/daily").get_json()
        assert data["date"] == date.today().isoformat()

    def test_invalid_date(self, client):
        resp = client.get("/api/summary/daily?date=yesterday")
        assert resp.status_code == 400
        assert "invalid date" in resp.get_json()["error"]

    def test_not_ready_without_generator(self, client, app_ref):
        app_ref._summary_generator = None
        assert client.get("/api/summary/daily").get_json() == {"error": "not ready"}


class TestNotificationsEndpoint:
    def _log(self, store, n):
        base = datetime(2025, 1, 15, 9)
        for i in range(n):
            store.log_notification(
                NotificationRecord(
                    kind=NotificationKind.TIME_BASED,
                    title="Emotional Support",
                    message=f"msg {i}",
                    program="vim",
                    duration=timedelta(minutes=30),
                    sent_at=base + timedelta(minutes=i),
                )
            )

    def test_lists_newest_first(self, client, store):
        self._log(store, 3)
        data = client.get("/api/notifications").get_json()

        assert [d["message"] for d in data] == ["msg 2", "msg 1", "msg 0"]
        assert data[0]["kind"] == "time_based"
        assert data[0]["program"] == "vim"
        assert data[0]["duration"] == 1800
        assert data[0]["sent_at"].startswith("2025-01-15T09:02")

    def test_limit(self, client, store):
        self._log(store, 5)
        data = client.get("/api/notifications?limit=2").get_json()
        assert len(data) == 2

    def test_default_limit(self, client, store):
        self._log(store, 25)
        assert len(client.get("/api/notifications").get_json()) == 20


def test_toggle_tracking(client, app_ref):
    resp = client.post("/api/tracking/toggle")
    app_ref._toggle_tracking.assert_called_once()
    assert resp.get_json() == {"tracking": True}


# ------------------------------------------------------------------
# start_dashboard
# ------------------------------------------------------------------

def test_start_dashboard_runs_flask_in_daemon_thread(app_ref):
    old = web_module._app_ref
    try:
        with patch("emotional_support.ui.web.Flask.run") as mock_run:
            thread = start_dashboard(app_ref, port=6001)
            thread.join(timeout=2)

        assert thread.daemon
        assert thread.name == "emotional-support-web"
        assert web_module._app_ref is app_ref
        mock_run.assert_called_once_with(
            host="127.0.0.1", port=6001, debug=False, use_reloader=False
        )
    finally:
        web_module._app_ref = old
