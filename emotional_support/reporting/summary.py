"""Summary generation for daily activity reports."""

from collections import Counter, defaultdict
from datetime import date, datetime, timedelta

from emotional_support.core.models import DailySummary, UsageSummary
from emotional_support.persistence.store import ActivityStore


class SummaryGenerator:
    """Produces daily summaries from the persisted session and notification log.

    Each closed dwell session contributes its full duration to its program
    and, when one was detected, to its language.
    """

    def __init__(self, store: ActivityStore) -> None:
        self.store = store

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def daily_summary(self, target_date: date) -> DailySummary:
        """Build a summary for *target_date*.

        Queries sessions and notifications from local midnight to midnight,
        groups session time by program and by language, and sorts both
        groupings by total time descending.
        """
        start = datetime(target_date.year, target_date.month, target_date.day)
        end = start + timedelta(days=1)

        sessions = self.store.get_window_sessions(start, end)
        notifications = self.store.get_notifications(start, end)

        programs = _group(sessions, "program")
        languages = _group(sessions, "language")
        counts = Counter(n.kind.value for n in notifications)

        return DailySummary(
            date=target_date,
            programs=programs,
            languages=languages,
            notifications=dict(counts),
            total_time=sum((s["duration"] for s in sessions), timedelta()),
            total_sessions=len(sessions),
        )


def _group(sessions: list[dict], field: str) -> list[UsageSummary]:
    """Aggregate session durations by *field*, skipping empty values."""
    acc: dict[str, UsageSummary] = defaultdict(lambda: UsageSummary(name=""))
    for sess in sessions:
        name = sess.get(field) or ""
        if not name:
            continue
        usage = acc[name]
        usage.name = name
        usage.total_time += sess["duration"]
        usage.session_count += 1

    return sorted(acc.values(), key=lambda u: u.total_time, reverse=True)
