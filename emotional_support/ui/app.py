"""System tray application for Emotional Support.

Provides a pystray-based system tray icon with menu items for controlling
tracking, viewing the daily summary, opening the dashboard, and quitting.
The Tracker runs in a daemon background thread so the tray icon remains
responsive.
"""

import logging
import os
import sqlite3
import subprocess
import sys
import threading
import webbrowser
from datetime import date
from typing import Any, Optional

from emotional_support.core.config import NotificationTiming, load_config
from emotional_support.core.detector import ContextDetector
from emotional_support.core.messages import MessageGenerator
from emotional_support.core.models import AppState
from emotional_support.core.policies import DEFAULT_TITLE, NotificationScheduler
from emotional_support.core.tracker import Tracker, local_now
from emotional_support.persistence.state import StateError, load_state
from emotional_support.persistence.store import ActivityStore
from emotional_support.platform.factory import create_window_provider
from emotional_support.platform.notifier import create_notification_sink
from emotional_support.reporting.formatter import TextFormatter
from emotional_support.reporting.summary import SummaryGenerator

logger = logging.getLogger(__name__)


def _create_default_icon():
    """Draw the tray icon: a green disc on a transparent 64x64 canvas."""
    try:
        from PIL import Image, ImageDraw
    except ImportError:
        return None

    img = Image.new("RGBA", (64, 64), color=(0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.ellipse((6, 6, 58, 58), fill=(90, 170, 110, 255))
    draw.ellipse((22, 22, 42, 42), fill=(255, 255, 255, 220))
    return img


class EmotionalSupportApp:
    """Main application class that runs Emotional Support as a tray app."""

    def __init__(self, config_path: Optional[str] = None) -> None:
        self.config_path = config_path
        self.config: dict[str, Any] = load_config(config_path)
        self.tracker: Optional[Tracker] = None
        self.scheduler: Optional[NotificationScheduler] = None
        self.tray_icon = None
        self._tracker_thread: Optional[threading.Thread] = None
        self._tracking = False
        self._store: Optional[ActivityStore] = None
        self._summary_generator: Optional[SummaryGenerator] = None
        self._dashboard_port = int(self.config.get("dashboard_port", 5555))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Initialize all components, start the tracker in a background thread,
        and display the system tray icon."""
        self._init_components()
        self._send_welcome()
        self._start_tracking()
        self._start_dashboard()
        self._run_tray()

    def run_headless(self) -> None:
        """Run the tracker loop in the foreground until interrupted."""
        self._init_components()
        if self.tracker is None:
            logger.error("No window provider for this platform; nothing to track")
            return
        self._send_welcome()
        self._tracking = True
        try:
            self.tracker.run()
        except KeyboardInterrupt:
            logger.info("Interrupted; shutting down")
        finally:
            self.stop()

    def stop(self) -> None:
        """Stop tracking and clean up resources."""
        self._stop_tracking()
        if self._store is not None:
            self._store.close()
            self._store = None
        if self.tray_icon is not None:
            try:
                self.tray_icon.stop()
            except Exception:
                logger.debug("Tray icon already stopped")
            self.tray_icon = None

    def show_daily_summary(self) -> None:
        """Display today's summary in a popup window."""
        if self._summary_generator is None:
            logger.warning("Summary generator not initialized")
            return

        try:
            summary = self._summary_generator.daily_summary(date.today())
            text = TextFormatter.format_daily(summary)
            self._show_popup("Daily Summary", text)
        except Exception:
            logger.exception("Failed to generate daily summary")

    def status(self) -> dict[str, Any]:
        """Current tracking snapshot, used by the dashboard."""
        if self.tracker is None:
            return {"tracking": False}
        snapshot = self.tracker.snapshot()
        snapshot["tracking"] = self._tracking
        return snapshot

    # ------------------------------------------------------------------
    # Component initialization
    # ------------------------------------------------------------------

    def _init_components(self) -> None:
        """Wire up all Emotional Support components from config."""
        config = self.config

        # Session/notification log
        db_path = config.get("database_path")
        if db_path:
            db_path = os.path.expanduser(db_path)
            try:
                os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
                self._store = ActivityStore(db_path)
                self._store.init_db()
            except (OSError, sqlite3.Error):
                logger.exception("Could not open database %s; session log disabled", db_path)
                self._store = None
        if self._store is not None:
            self._summary_generator = SummaryGenerator(self._store)

        # Cumulative state
        state_path = config.get("state_path")
        state = AppState()
        if state_path:
            state_path = os.path.expanduser(state_path)
            try:
                state = load_state(state_path)
            except StateError as exc:
                logger.warning("Could not load state, starting fresh: %s", exc)
        else:
            logger.warning("No state path configured; activity is kept in memory only")

        # Notifications
        timing = NotificationTiming.from_config(config)
        notif_cfg = config.get("notifications", {})
        sink = create_notification_sink(
            timeout_seconds=notif_cfg.get("timeout_seconds", 15)
        )
        self.scheduler = NotificationScheduler(
            timing=timing,
            messenger=MessageGenerator(),
            sink=sink,
            store=self._store,
            title=notif_cfg.get("title", DEFAULT_TITLE),
        )

        # Window Provider
        try:
            window_provider = create_window_provider()
        except OSError:
            logger.warning("No window provider for this platform; tracking disabled")
            window_provider = None

        # Tracker
        if window_provider is not None:
            self.tracker = Tracker(
                window_provider=window_provider,
                detector=ContextDetector(),
                scheduler=self.scheduler,
                state=state,
                state_path=state_path or None,
                store=self._store,
                poll_interval=timing.poll_interval.total_seconds(),
                log_window_checks=config.get("log_window_checks", True),
            )

    def _send_welcome(self) -> None:
        if self.scheduler is None or not self.config.get("welcome_message", True):
            return
        self.scheduler.send_welcome(local_now())

    # ------------------------------------------------------------------
    # Tracking control
    # ------------------------------------------------------------------

    def _start_tracking(self) -> None:
        """Start the tracker in a daemon background thread."""
        if self.tracker is None:
            logger.info("No tracker available; skipping background tracking")
            return
        if self._tracking:
            return

        self._tracking = True
        self._tracker_thread = threading.Thread(
            target=self.tracker.run, daemon=True, name="emotional-support-tracker"
        )
        self._tracker_thread.start()
        logger.info("Tracking started in background thread")

    def _stop_tracking(self) -> None:
        """Stop the tracker background thread."""
        if self.tracker is not None:
            self.tracker.stop()
        self._tracking = False
        if self._tracker_thread is not None:
            self._tracker_thread.join(timeout=5)
            self._tracker_thread = None
        logger.info("Tracking stopped")

    def _toggle_tracking(self) -> None:
        """Toggle tracking on/off from the tray menu."""
        if self._tracking:
            self._stop_tracking()
        else:
            self._start_tracking()

    # ------------------------------------------------------------------
    # System tray
    # ------------------------------------------------------------------

    def _run_tray(self) -> None:
        """Create and run the pystray system tray icon."""
        try:
            import pystray
            from pystray import Menu, MenuItem
        except ImportError:
            logger.warning(
                "pystray not available; running without system tray. "
                "Install pystray for tray icon support."
            )
            return

        icon_image = _create_default_icon()
        if icon_image is None:
            logger.warning("Could not create tray icon image; skipping tray")
            return

        def _tracking_label(item):
            return "Stop Tracking" if self._tracking else "Start Tracking"

        menu = Menu(
            MenuItem(_tracking_label, lambda: self._toggle_tracking()),
            Menu.SEPARATOR,
            MenuItem("Dashboard", lambda: self._open_dashboard()),
            MenuItem("Daily Summary", lambda: self.show_daily_summary()),
            Menu.SEPARATOR,
            MenuItem("Quit", lambda: self._quit()),
        )

        self.tray_icon = pystray.Icon(
            "EmotionalSupport", icon_image, "Emotional Support", menu
        )
        self.tray_icon.run()

    def _quit(self) -> None:
        """Quit the application cleanly."""
        self.stop()

    # ------------------------------------------------------------------
    # Web dashboard
    # ------------------------------------------------------------------

    def _start_dashboard(self) -> None:
        """Start the web dashboard in a background thread."""
        try:
            from emotional_support.ui.web import start_dashboard
            start_dashboard(self, port=self._dashboard_port)
        except Exception:
            logger.exception("Failed to start web dashboard")

    def _open_dashboard(self) -> None:
        """Open the dashboard in the default browser."""
        try:
            webbrowser.open(f"http://127.0.0.1:{self._dashboard_port}")
        except Exception:
            logger.exception("Failed to open dashboard")

    # ------------------------------------------------------------------
    # UI helpers
    # ------------------------------------------------------------------

    def _show_popup(self, title: str, message: str) -> None:
        """Show a popup with the given message using native macOS dialogs."""
        if sys.platform == "darwin":
            self._osascript_display(title, message)
        else:
            logger.info("%s:\n%s", title, message)

    def _osascript_display(self, title: str, message: str) -> None:
        """Display text via a native macOS dialog."""
        escaped = message.replace("\\", "\\\\").replace('"', '\\"')
        script = (
            f'display dialog "{escaped}" '
            f'with title "{title}" '
            f'buttons {{"OK"}} default button "OK"'
        )
        try:
            subprocess.Popen(
                ["osascript", "-e", script],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError:
            logger.info("%s:\n%s", title, message)
