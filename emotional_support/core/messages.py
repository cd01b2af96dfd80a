"""Message generator for Emotional Support.

Produces the encouraging text shown in notifications. Each call picks one
message out of a small set for variety; the picking function is injectable
so tests can force a specific choice.
"""

import random
from datetime import timedelta
from typing import Callable, Optional, Sequence

from emotional_support.core.models import Context, NotificationKind

Chooser = Callable[[Sequence[str]], str]

_PROGRAM_NAMES = {
    "vim": "Vim",
    "nvim": "Neovim",
    "vscode": "VS Code",
    "emacs": "Emacs",
    "idea": "IntelliJ IDEA",
    "sublime": "Sublime Text",
    "firefox": "Firefox",
    "chrome": "Chrome",
    "chromium": "Chromium",
    "gedit": "gedit",
    "kate": "Kate",
    "nano": "Nano",
}

_BROWSERS = {"firefox", "chrome", "chromium"}

_FILE_EXTENSIONS = [
    ".go", ".py", ".js", ".ts", ".java", ".rs", ".cpp", ".c", ".h",
    ".rb", ".php", ".kt", ".swift", ".dart", ".scala",
]

LANGUAGE_MESSAGES: dict[str, list[str]] = {
    "java": [
        "I know Java is hard, but you got it! 💪",
        "Java can be tricky, but you're handling it like a pro! 🌟",
        "Keep pushing through those Java challenges! You're doing great! 💚",
    ],
    "cpp": [
        "C++ is complex, but you're tackling it! Keep going! 🚀",
        "Memory management is tough, but you've got this! 💪",
        "You're doing amazing work with C++! 🌟",
    ],
    "rust": [
        "Rust's borrow checker can be challenging, but you're learning! 💚",
        "Keep fighting the good fight with Rust! You're awesome! 🦀",
        "Rust is hard, but you're making progress! Keep it up! ✨",
    ],
    "go": [
        "Go is a great choice! You're doing fantastic! 🐹",
        "Keep up the great work with Go! 💪",
        "Your Go code is going to be amazing! 🌟",
    ],
    "python": [
        "Python is fun! Keep enjoying the journey! 🐍",
        "You're doing great with Python! 💚",
        "Keep up the awesome Python work! ✨",
    ],
    "javascript": [
        "JavaScript can be wild, but you're taming it! 🚀",
        "Keep up the great work with JavaScript/TypeScript! 💪",
        "You're doing amazing with JS/TS! 🌟",
    ],
}

GENERIC_LANGUAGE_TEMPLATES = [
    "You're doing great with {language}! Keep it up! 💚",
    "Keep pushing forward with {language}! You've got this! 💪",
]

HEALTH_REMINDERS = [
    "💧 Remember to stay hydrated! Take a sip of water!",
    "👀 Blink your eyes! Give them a break from the screen!",
    "💚 Take a deep breath! You're doing great!",
    "🪑 Stretch a bit! Your body will thank you!",
    "☕ Time for a quick break? Maybe some water or tea?",
    "👁️ Look away from the screen for 20 seconds! Your eyes need it!",
    "🧘 Take a moment to relax your shoulders!",
    "💧 Hydration check! Have you had water recently?",
]

WELCOME_MESSAGE = "I'm here to support you! Let's have a great coding session! 💚"


class MessageGenerator:
    """Builds notification text for each notification kind.

    Args:
        chooser: Picks one message out of a non-empty sequence. Defaults to
            ``rng.choice``.
        rng: Random source used when no *chooser* is given.
    """

    def __init__(
        self,
        chooser: Optional[Chooser] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        if chooser is None:
            chooser = (rng or random.Random()).choice
        self._choose = chooser

    def message_for(
        self, kind: NotificationKind, context: Context, duration: timedelta
    ) -> str:
        """Return the text for *kind*, or an empty string to suppress it."""
        if kind is NotificationKind.TIME_BASED:
            return self.time_based_message(context, duration)
        if kind is NotificationKind.LANGUAGE:
            return self.language_message(context.language)
        if kind is NotificationKind.HEALTH:
            return self.health_reminder()
        if kind is NotificationKind.WELCOME:
            return WELCOME_MESSAGE
        return ""

    def time_based_message(self, context: Context, duration: timedelta) -> str:
        """Celebrate *duration* spent in the current program."""
        messages = time_based_candidates(context, duration)
        if not messages:
            return ""
        return self._choose(messages)

    def language_message(self, language: str) -> str:
        """Encourage work in *language*, with a generic fallback."""
        if not language:
            return ""
        messages = LANGUAGE_MESSAGES.get(language)
        if messages is None:
            messages = [t.format(language=language) for t in GENERIC_LANGUAGE_TEMPLATES]
        return self._choose(messages)

    def health_reminder(self) -> str:
        return self._choose(HEALTH_REMINDERS)


def time_based_candidates(context: Context, duration: timedelta) -> list[str]:
    """Return every time-based message that fits *context*."""
    if not context.program:
        return []

    t = format_duration(duration)
    p = format_program_name(context.program)
    file_info = extract_file_info(context.window_title)
    project_info = extract_project_info(context.window_title, context.project_path)

    if context.program in ("vim", "nvim"):
        if file_info:
            return [
                f"Wow, you've been editing {file_info} in {p} for {t}! I'm so proud of you! 🎉",
                f"{t} in {p} working on {file_info}? You're a true wizard! ✨",
                f"Your {p} skills are amazing! {t} of focus on {file_info}! 💪",
            ]
        return [
            f"Wow, you've been in {p} for {t}! I'm so proud of you! 🎉",
            f"{t} in {p}? You're a true wizard! ✨",
            f"Your {p} skills are amazing! {t} of focus! 💪",
        ]

    if context.program == "vscode" and project_info:
        return [
            f"You've been coding in {p} on {project_info} for {t}! Keep up the amazing work! 🚀",
            f"{t} of dedication in {p} working on {project_info}! You're doing great! 💚",
            f"Look at you go! {t} of focused coding in {p} on {project_info}! 🌟",
        ]

    if context.program == "vscode" or context.is_programming:
        if file_info:
            return [
                f"You've been coding in {p} on {file_info} for {t}! Keep up the amazing work! 🚀",
                f"{t} of dedication in {p} working on {file_info}! You're doing great! 💚",
                f"Look at you go! {t} of focused coding in {p} on {file_info}! 🌟",
            ]
        return [
            f"You've been coding in {p} for {t}! Keep up the amazing work! 🚀",
            f"{t} of dedication in {p}! You're doing great! 💚",
            f"Look at you go! {t} of focused coding in {p}! 🌟",
        ]

    title = context.window_title
    short_title = truncate_title(title, 40) if title and len(title) < 50 else ""

    if context.program in _BROWSERS:
        if short_title:
            return [
                f"{p} is truly the best! You've been on '{short_title}' for {t}! 🌐",
                f"You've been browsing '{short_title}' in {p} for {t}! Hope you're having fun! 💚",
                f"{p} for {t} browsing '{short_title}'? That's some serious browsing! 🚀",
            ]
        return [
            f"{p} is truly the best! It's been {t}! 🌐",
            f"You've been browsing in {p} for {t}! Hope you're having fun! 💚",
            f"{p} for {t}? That's some serious browsing! 🚀",
        ]

    if short_title:
        return [
            f"You've been using {p} working on '{short_title}' for {t}! Keep it up! 💪",
            f"{t} in {p} on '{short_title}'? You're focused! 🌟",
            f"Wow, {t} in {p} working on '{short_title}'! You're doing great! 💚",
        ]
    return [
        f"You've been using {p} for {t}! Keep it up! 💪",
        f"{p} for {t}? You're focused! 🌟",
        f"Wow, {t} in {p}! You're doing great! 💚",
    ]


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def _plural(n: int) -> str:
    return "" if n == 1 else "s"


def format_duration(duration: timedelta) -> str:
    """Format as e.g. '1 hour and 5 minutes', '2 hours' or '30 minutes'."""
    total_minutes = max(int(duration.total_seconds()) // 60, 0)
    hours, minutes = divmod(total_minutes, 60)
    if hours and minutes:
        return f"{hours} hour{_plural(hours)} and {minutes} minute{_plural(minutes)}"
    if hours:
        return f"{hours} hour{_plural(hours)}"
    return f"{minutes} minute{_plural(minutes)}"


def format_program_name(program: str) -> str:
    if not program:
        return "this app"
    if program in _PROGRAM_NAMES:
        return _PROGRAM_NAMES[program]
    return program[:1].upper() + program[1:]


def truncate_title(title: str, max_len: int) -> str:
    if len(title) <= max_len:
        return title
    return title[: max_len - 3] + "..."


def extract_file_info(window_title: str) -> str:
    """Pull a filename such as ``main.go`` out of a window title."""
    if not window_title:
        return ""
    for ext in _FILE_EXTENSIONS:
        idx = window_title.find(ext)
        if idx <= 0:
            continue
        head = window_title[:idx]
        start = head.rfind("/")
        if start == -1:
            start = head.rfind(" ")
        filename = window_title[start + 1: idx + len(ext)].strip()
        if 0 < len(filename) < 50:
            return filename
    return ""


def extract_project_info(window_title: str, project_path: str) -> str:
    """Name of the project, from its path or a ``(Project)`` title suffix."""
    if project_path:
        name = project_path.rstrip("/").split("/")[-1]
        if name and len(name) < 40:
            return name

    if window_title:
        open_idx = window_title.find("(")
        if open_idx > 0:
            close_idx = window_title.find(")", open_idx)
            if close_idx > open_idx + 1:
                name = window_title[open_idx + 1: close_idx].strip()
                if 0 < len(name) < 40:
                    return name
    return ""
