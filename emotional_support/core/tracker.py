"""Tracker orchestrator for Emotional Support.

Polls the foreground window on a fixed cadence, turns window changes into
dwell sessions, and hands the current context and dwell time to the
notification scheduler on every tick.

The last, still-open dwell session is not flushed on shutdown; only
sessions closed by a window change are recorded.
"""

import logging
import threading
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Optional

from emotional_support.core.detector import ContextDetector
from emotional_support.core.models import (
    AppState,
    Context,
    DwellSession,
    WindowInfo,
    window_key,
)
from emotional_support.core.policies import NotificationScheduler
from emotional_support.persistence.state import save_state
from emotional_support.persistence.store import ActivityStore
from emotional_support.platform.base import WindowProvider, WindowSourceError

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    """Current time as a timezone-aware datetime."""
    return datetime.now().astimezone()


class Tracker:
    """Owns the poll loop, dwell accounting and policy evaluation.

    The current window, its start time and the cumulative state are guarded
    by one lock that is held only for in-memory updates. Notification
    delivery and persistence run outside it, and the scheduler guards its own
    fire-key map, so the dashboard can read a snapshot while the loop runs on
    its own thread.

    Args:
        state_path: Where the AppState is saved after each closed session.
            ``None`` keeps state in memory only.
        store: Session/notification log. ``None`` disables the log.
        clock: Source of "now" for ``run()``.
    """

    def __init__(
        self,
        window_provider: WindowProvider,
        detector: ContextDetector,
        scheduler: NotificationScheduler,
        state: Optional[AppState] = None,
        state_path: Optional[str | Path] = None,
        store: Optional[ActivityStore] = None,
        poll_interval: float = 5,
        log_window_checks: bool = True,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self.window_provider = window_provider
        self.detector = detector
        self.scheduler = scheduler
        self.state = state if state is not None else AppState()
        self.state_path = state_path
        self.store = store
        self.poll_interval = poll_interval
        self.log_window_checks = log_window_checks
        self.clock = clock
        self._running = False
        self._lock = threading.Lock()

        self._current_key = ""
        self._current_context = Context()
        self._current_window = WindowInfo(title="", process="")
        self._started_at: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Poll cycle
    # ------------------------------------------------------------------

    def poll_once(self, now: datetime) -> Optional[DwellSession]:
        """Execute a single poll cycle.

        Returns the dwell session closed by this tick, if the window changed.
        """
        try:
            window = self.window_provider.get_active_window()
        except WindowSourceError as exc:
            logger.warning("Could not get active window: %s", exc)
            return None
        except Exception:
            logger.exception("Failed to get active window; skipping this cycle")
            return None

        if self.log_window_checks and self.store is not None:
            self._persist("window check", self.store.log_window_check, window, now)

        context = self.detector.detect(window)
        key = window_key(context)

        with self._lock:
            closed = None
            if key != self._current_key:
                if self._current_key and self._started_at is not None:
                    closed = self._end_session(self._started_at, now)
                logger.debug("Now focused: %s", key)
                self._current_key = key
                self._current_context = context
                self._current_window = window
                self._started_at = now
            duration = now - self._started_at

        # Not under the lock: delivery and disk writes can block.
        if closed is not None:
            self._record_session(closed)
        self.scheduler.evaluate(context, duration, now)
        return closed

    def _end_session(self, started_at: datetime, now: datetime) -> DwellSession:
        """Close the session for the window just left. Caller holds the lock."""
        previous = self._current_context
        duration = now - started_at
        self.state.record_activity(
            self._current_key,
            duration,
            now,
            language=previous.language,
            program=previous.program,
        )
        return DwellSession(
            window_key=self._current_key,
            context=previous,
            window=self._current_window,
            started_at=started_at,
            ended_at=now,
            duration=duration,
        )

    def _record_session(self, session: DwellSession) -> None:
        """Save the cumulative state and log the closed session."""
        if self.state_path is not None:
            try:
                save_state(self.state, self.state_path, session.ended_at)
            except OSError:
                logger.exception("Error saving state to %s", self.state_path)
        if self.store is not None:
            self._persist("window session", self.store.log_window_session, session)

    @staticmethod
    def _persist(what: str, write: Callable[..., Any], *args: Any) -> None:
        try:
            write(*args)
        except Exception:
            logger.exception("Error logging %s", what)

    # ------------------------------------------------------------------
    # Loop control
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Poll every ``poll_interval`` seconds until ``stop()`` is called."""
        self._running = True
        logger.info("Running in polling mode (interval=%ss)", self.poll_interval)
        while self._running:
            try:
                self.poll_once(self.clock())
            except Exception:
                logger.exception("Unexpected error during poll; continuing")
            time.sleep(self.poll_interval)

    def stop(self) -> None:
        """Signal the run loop to stop."""
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def snapshot(self, now: Optional[datetime] = None) -> dict[str, Any]:
        """Return a consistent, JSON-friendly view of the tracking state."""
        now = now or self.clock()
        with self._lock:
            ctx = self._current_context
            dwell = now - self._started_at if self._started_at else timedelta()
            return {
                "tracking": self._running,
                "window_key": self._current_key,
                "program": ctx.program,
                "window_title": ctx.window_title,
                "language": ctx.language,
                "is_programming": ctx.is_programming,
                "project_path": ctx.project_path,
                "started_at": self._started_at.isoformat() if self._started_at else None,
                "dwell_seconds": int(dwell.total_seconds()),
                "total_seconds": int(self.state.total_time.total_seconds()),
                "activity_count": len(self.state.activities),
                "last_fired": {
                    str(key): fired.isoformat()
                    for key, fired in self.scheduler.fired_times().items()
                },
            }
