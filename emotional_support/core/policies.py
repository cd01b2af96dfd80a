"""Notification scheduling for Emotional Support.

Three independent policies are evaluated on every tick:

- **Time milestones**: celebrate reaching 30m, 1h, 2h, ... in one window.
- **Language**: encourage work in the detected language, per language.
- **Health reminders**: a pure wall-clock reminder, independent of activity.

Each policy tracks its last firing in a shared ``FireKey -> datetime`` map.
A key is only updated after a non-empty message was delivered, so an empty
message or a delivery failure leaves the policy eligible on the next tick.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Optional

from emotional_support.core.config import NotificationTiming
from emotional_support.core.messages import MessageGenerator
from emotional_support.core.models import (
    Context,
    FireKey,
    NotificationKind,
    NotificationRecord,
)
from emotional_support.persistence.store import ActivityStore
from emotional_support.platform.notifier import NotificationError, NotificationSink

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Emotional Support"


class NotificationScheduler:
    """Evaluates timer policies and delivers the resulting notifications."""

    def __init__(
        self,
        timing: NotificationTiming,
        messenger: MessageGenerator,
        sink: NotificationSink,
        store: Optional[ActivityStore] = None,
        title: str = DEFAULT_TITLE,
    ) -> None:
        self.timing = timing
        self.messenger = messenger
        self.sink = sink
        self.store = store
        self.title = title
        self.last_fired: dict[FireKey, datetime] = {}
        self._fired_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def evaluate(
        self, context: Context, duration: timedelta, now: datetime
    ) -> list[NotificationRecord]:
        """Run every policy once and return the notifications delivered."""
        delivered: list[NotificationRecord] = []

        key = self.due_milestone(context, duration, now)
        if key is not None:
            self._fire(NotificationKind.TIME_BASED, key, context, duration, now, delivered)

        if context.language:
            key = FireKey.for_language(context.language)
            if self.is_stale(key, self.timing.language_cooldown, now):
                self._fire(NotificationKind.LANGUAGE, key, context, duration, now, delivered)

        key = FireKey.health()
        if self.is_stale(key, self.timing.health_interval, now):
            self._fire(NotificationKind.HEALTH, key, context, duration, now, delivered)

        return delivered

    def due_milestone(
        self, context: Context, duration: timedelta, now: datetime
    ) -> Optional[FireKey]:
        """Return the milestone key that should fire this tick, if any.

        Only the first milestone whose tolerance window contains *duration*
        is considered, so at most one time-based notification fires per tick.
        """
        timing = self.timing
        if not context.program:
            return None
        if timing.require_programming and not context.is_programming:
            return None
        if duration < timing.min_duration:
            return None

        for milestone in timing.milestones:
            if milestone <= duration <= milestone + timing.tolerance:
                key = FireKey.time_milestone(milestone, context.program)
                if self.is_stale(key, timing.time_cooldown, now):
                    return key
                return None
        return None

    def is_stale(self, key: FireKey, cooldown: timedelta, now: datetime) -> bool:
        """True when *key* never fired or fired more than *cooldown* ago."""
        with self._fired_lock:
            last = self.last_fired.get(key)
        return last is None or now - last > cooldown

    def fired_times(self) -> dict[FireKey, datetime]:
        """Copy of the fire-key map, safe to read from another thread."""
        with self._fired_lock:
            return dict(self.last_fired)

    def send_welcome(self, now: datetime) -> Optional[NotificationRecord]:
        """Send the start-up greeting. Not tracked in the fire-key map."""
        message = self.messenger.message_for(NotificationKind.WELCOME, Context(), timedelta())
        if not message:
            return None
        if not self._deliver(message):
            return None
        record = NotificationRecord(
            kind=NotificationKind.WELCOME,
            title=self.title,
            message=message,
            sent_at=now,
        )
        self._log(record)
        return record

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _fire(
        self,
        kind: NotificationKind,
        key: FireKey,
        context: Context,
        duration: timedelta,
        now: datetime,
        delivered: list[NotificationRecord],
    ) -> None:
        message = self.messenger.message_for(kind, context, duration)
        if not message:
            logger.debug("No message for %s; leaving it eligible", key)
            return
        if not self._deliver(message):
            return

        with self._fired_lock:
            self.last_fired[key] = now
        record = NotificationRecord(
            kind=kind,
            title=self.title,
            message=message,
            program=context.program if kind is not NotificationKind.HEALTH else "",
            language=context.language if kind is not NotificationKind.HEALTH else "",
            duration=duration if kind is NotificationKind.TIME_BASED else None,
            sent_at=now,
        )
        logger.info("Sent %s notification: %s", key, message)
        self._log(record)
        delivered.append(record)

    def _deliver(self, message: str) -> bool:
        try:
            self.sink.send(self.title, message)
        except NotificationError as exc:
            logger.warning("Error sending notification: %s", exc)
            return False
        except Exception:
            logger.exception("Notification sink failed")
            return False
        return True

    def _log(self, record: NotificationRecord) -> None:
        if self.store is None:
            return
        try:
            self.store.log_notification(record)
        except Exception:
            logger.exception("Error logging notification")
