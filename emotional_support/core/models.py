"""Core data models for Emotional Support.

Defines all dataclasses and enums used across the application:
- Window polling: WindowInfo
- Classification: ProgramRule, Context
- Dwell tracking: DwellSession, ActivityRecord, AppState
- Notifications: NotificationKind, FireKey, NotificationRecord
- Reporting: UsageSummary, DailySummary
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional


# ---------------------------------------------------------------------------
# Window polling
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WindowInfo:
    """Identity of the currently focused window."""
    title: str
    process: str
    pid: str = ""


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

@dataclass
class ProgramRule:
    """Maps a process/title regex to a canonical program name."""
    name: str
    pattern: str                 # regex, matched case-insensitively
    is_programming: bool = False
    is_ide: bool = False


@dataclass(frozen=True)
class Context:
    """Semantic interpretation of a window, recomputed on every poll."""
    program: str = ""
    window_title: str = ""
    is_programming: bool = False
    language: str = ""
    is_ide: bool = False
    project_path: str = ""


def window_key(context: Context) -> str:
    """Identity of "the thing currently focused": ``program|window_title``."""
    return f"{context.program}|{context.window_title}"


# ---------------------------------------------------------------------------
# Dwell tracking
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DwellSession:
    """A closed interval during which a single window held focus."""
    window_key: str
    context: Context
    window: WindowInfo
    started_at: datetime
    ended_at: datetime
    duration: timedelta


@dataclass
class ActivityRecord:
    """Long-term record appended to the AppState when a dwell session closes."""
    window_key: str
    duration: timedelta
    timestamp: datetime
    language: str = ""
    program: str = ""


@dataclass
class AppState:
    """Cumulative activity state, persisted as a single JSON document."""
    activities: list[ActivityRecord] = field(default_factory=list)
    total_time: timedelta = field(default_factory=timedelta)
    last_save: Optional[datetime] = None

    def record_activity(
        self,
        key: str,
        duration: timedelta,
        timestamp: datetime,
        language: str = "",
        program: str = "",
    ) -> ActivityRecord:
        """Append an activity and grow ``total_time`` incrementally."""
        record = ActivityRecord(
            window_key=key,
            duration=duration,
            timestamp=timestamp,
            language=language,
            program=program,
        )
        self.activities.append(record)
        self.total_time += duration
        return record


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

class NotificationKind(Enum):
    """Kind of notification, also used as the persisted notification type."""
    TIME_BASED = "time_based"
    LANGUAGE = "language"
    HEALTH = "health"
    WELCOME = "welcome"


def format_milestone(milestone: timedelta) -> str:
    """Render a milestone compactly, e.g. ``30m0s`` or ``1h0m0s``."""
    total = int(milestone.total_seconds())
    hours, rem = divmod(total, 3600)
    minutes, seconds = divmod(rem, 60)
    if hours:
        return f"{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{minutes}m{seconds}s"
    return f"{seconds}s"


@dataclass(frozen=True)
class FireKey:
    """Identity used to track when a policy last notified.

    Keys are namespaced by kind so that, e.g., a language named
    ``reminder`` can never collide with the health reminder.
    """
    kind: NotificationKind
    milestone: Optional[timedelta] = None
    program: str = ""
    language: str = ""

    @classmethod
    def time_milestone(cls, milestone: timedelta, program: str) -> "FireKey":
        return cls(NotificationKind.TIME_BASED, milestone=milestone, program=program)

    @classmethod
    def for_language(cls, language: str) -> "FireKey":
        return cls(NotificationKind.LANGUAGE, language=language)

    @classmethod
    def health(cls) -> "FireKey":
        return cls(NotificationKind.HEALTH)

    def __str__(self) -> str:
        if self.kind is NotificationKind.TIME_BASED:
            return f"time_{format_milestone(self.milestone or timedelta())}_{self.program}"
        if self.kind is NotificationKind.LANGUAGE:
            return f"lang_{self.language}"
        if self.kind is NotificationKind.HEALTH:
            return "health_reminder"
        return self.kind.value


@dataclass
class NotificationRecord:
    """A delivered notification, appended to the notification log."""
    kind: NotificationKind
    title: str
    message: str
    program: str = ""
    language: str = ""
    duration: Optional[timedelta] = None
    sent_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

@dataclass
class UsageSummary:
    """Aggregated dwell time for one program or language."""
    name: str
    total_time: timedelta = field(default_factory=timedelta)
    session_count: int = 0


@dataclass
class DailySummary:
    """Summary of dwell sessions and notifications for a single day."""
    date: date
    programs: list[UsageSummary] = field(default_factory=list)   # sorted by total_time descending
    languages: list[UsageSummary] = field(default_factory=list)  # sorted by total_time descending
    notifications: dict[str, int] = field(default_factory=dict)  # kind value -> count
    total_time: timedelta = field(default_factory=timedelta)
    total_sessions: int = 0
