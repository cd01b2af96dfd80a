"""Web-based dashboard for Emotional Support.

A lightweight Flask app serving a single-page dashboard with:
- Current window and dwell time
- Policy last-fired times
- Today's program/language breakdown
- Recent notifications
"""

import logging
import threading
from datetime import date
from typing import Any, Optional

from flask import Flask, jsonify, render_template_string, request

from emotional_support.core.models import UsageSummary
from emotional_support.reporting.formatter import TextFormatter

logger = logging.getLogger(__name__)

# Will be set by start_dashboard()
_app_ref = None  # type: Optional[Any]  # EmotionalSupportApp

_DEFAULT_NOTIFICATION_LIMIT = 20


def create_flask_app() -> Flask:
    app = Flask(__name__)
    app.config["SEND_FILE_MAX_AGE_DEFAULT"] = 0

    @app.route("/")
    def index():
        return render_template_string(DASHBOARD_HTML)

    @app.route("/api/status")
    def api_status():
        if _app_ref is None:
            return jsonify({"error": "not initialized"})
        return jsonify(_app_ref.status())

    @app.route("/api/summary/daily")
    def api_daily():
        if not _app_ref or not _app_ref._summary_generator:
            return jsonify({"error": "not ready"})
        date_str = request.args.get("date")
        try:
            target = date.fromisoformat(date_str) if date_str else date.today()
        except ValueError:
            return jsonify({"error": f"invalid date: {date_str}"}), 400
        s = _app_ref._summary_generator.daily_summary(target)
        return jsonify({
            "date": str(s.date),
            "programs": _usage_response(s.programs),
            "languages": _usage_response(s.languages),
            "notifications": s.notifications,
            "total_time": int(s.total_time.total_seconds()),
            "total_time_str": TextFormatter.format_duration(s.total_time),
            "total_sessions": s.total_sessions,
        })

    @app.route("/api/notifications")
    def api_notifications():
        if not _app_ref or not _app_ref._store:
            return jsonify([])
        limit = request.args.get("limit", _DEFAULT_NOTIFICATION_LIMIT, type=int)
        records = _app_ref._store.get_notifications(limit=max(limit, 0))
        return jsonify([
            {
                "kind": r.kind.value,
                "title": r.title,
                "message": r.message,
                "program": r.program,
                "language": r.language,
                "duration": int(r.duration.total_seconds()) if r.duration else None,
                "sent_at": r.sent_at.isoformat() if r.sent_at else None,
            }
            for r in records
        ])

    @app.route("/api/tracking/toggle", methods=["POST"])
    def api_toggle_tracking():
        if _app_ref:
            _app_ref._toggle_tracking()
        return jsonify({"tracking": _app_ref._tracking if _app_ref else False})

    return app


def start_dashboard(app_ref, port: int = 5555) -> threading.Thread:
    """Start the Flask dashboard in a daemon thread."""
    global _app_ref
    _app_ref = app_ref
    flask_app = create_flask_app()

    def _run():
        flask_app.run(host="127.0.0.1", port=port, debug=False, use_reloader=False)

    t = threading.Thread(target=_run, daemon=True, name="emotional-support-web")
    t.start()
    logger.info("Dashboard started at http://127.0.0.1:%d", port)
    return t


def _usage_response(rows: list[UsageSummary]) -> list[dict[str, Any]]:
    return [
        {
            "name": u.name,
            "time": int(u.total_time.total_seconds()),
            "time_str": TextFormatter.format_duration(u.total_time),
            "sessions": u.session_count,
        }
        for u in rows
    ]


DASHBOARD_HTML = r"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Emotional Support</title>
<style>
  :root { --bg: #f8f9fa; --card: #fff; --accent: #5aaa6e; --text: #333;
          --muted: #888; --border: #e5e5e5; }
  * { margin: 0; padding: 0; box-sizing: border-box; }
  body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif;
         background: var(--bg); color: var(--text); line-height: 1.5; }
  .container { max-width: 900px; margin: 0 auto; padding: 20px; }
  h1 { font-size: 1.4em; font-weight: 600; margin-bottom: 20px; }
  .card { background: var(--card); border-radius: 10px; padding: 20px; margin-bottom: 16px;
          box-shadow: 0 1px 3px rgba(0,0,0,0.06); }
  .card h2 { font-weight: 600; margin-bottom: 12px; color: var(--muted); text-transform: uppercase;
             letter-spacing: 0.5px; font-size: 0.75em; }
  table { width: 100%; border-collapse: collapse; font-size: 0.9em; }
  td, th { padding: 4px 6px; border-bottom: 1px solid var(--border); text-align: left; }
  .muted { color: var(--muted); font-size: 0.85em; }
  button { cursor: pointer; padding: 6px 14px; border-radius: 6px; border: 1px solid var(--border);
           background: var(--card); font-size: 0.85em; }
</style>
</head>
<body>
<div class="container">
  <h1>💚 Emotional Support</h1>

  <div class="card">
    <div style="display:flex;justify-content:space-between;align-items:center">
      <h2>Now</h2>
      <button onclick="toggleTracking()"><span id="tracking-label">Loading...</span></button>
    </div>
    <div id="current">-</div>
    <div class="muted" id="dwell"></div>
    <table id="fired"></table>
  </div>

  <div class="card">
    <h2>Today</h2>
    <div class="muted" id="today-total"></div>
    <table id="programs"></table>
    <br>
    <table id="languages"></table>
  </div>

  <div class="card">
    <h2>Recent notifications</h2>
    <table id="notifications"></table>
  </div>
</div>
<script>
function esc(s) { const d = document.createElement('div'); d.textContent = s ?? ''; return d.innerHTML; }
function fmt(sec) { const h = Math.floor(sec / 3600), m = Math.floor(sec % 3600 / 60);
                    return h ? `${h}h ${m}m` : `${m}m`; }

async function loadStatus() {
  const s = await (await fetch('/api/status')).json();
  document.getElementById('tracking-label').textContent = s.tracking ? 'Stop Tracking' : 'Start Tracking';
  document.getElementById('current').textContent = s.program ? `${s.program}: ${s.window_title}` : 'Nothing focused yet';
  document.getElementById('dwell').textContent = s.program
    ? `${fmt(s.dwell_seconds || 0)} in this window` + (s.language ? ` · ${s.language}` : '') : '';
  const fired = Object.entries(s.last_fired || {});
  document.getElementById('fired').innerHTML = fired.map(([k, t]) =>
    `<tr><td>${esc(k)}</td><td class="muted">${esc(new Date(t).toLocaleTimeString())}</td></tr>`).join('');
}

function usageTable(label, rows) {
  if (!rows.length) return '';
  return `<tr><th>${label}</th><th>Time</th><th>Sessions</th></tr>` + rows.map(r =>
    `<tr><td>${esc(r.name)}</td><td>${r.time_str}</td><td>${r.sessions}</td></tr>`).join('');
}

async function loadSummary() {
  const s = await (await fetch('/api/summary/daily')).json();
  if (s.error) return;
  document.getElementById('today-total').textContent = `${s.total_time_str} across ${s.total_sessions} sessions`;
  document.getElementById('programs').innerHTML = usageTable('Program', s.programs);
  document.getElementById('languages').innerHTML = usageTable('Language', s.languages);
}

async function loadNotifications() {
  const rows = await (await fetch('/api/notifications?limit=10')).json();
  document.getElementById('notifications').innerHTML = rows.map(n =>
    `<tr><td class="muted">${esc(new Date(n.sent_at).toLocaleTimeString())}</td>` +
    `<td>${esc(n.kind)}</td><td>${esc(n.message)}</td></tr>`).join('');
}

async function toggleTracking() {
  await fetch('/api/tracking/toggle', {method: 'POST'});
  loadStatus();
}

function refresh() { loadStatus(); loadSummary(); loadNotifications(); }
refresh();
setInterval(refresh, 5000);
</script>
</body>
</html>
"""
