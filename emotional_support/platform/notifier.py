"""Desktop notification sinks.

Each platform delivers a (title, body) pair through its native notification
service:

- Linux: ``notify-send`` talking to the freedesktop notification bus
- macOS: ``osascript`` ``display notification``
- Windows: ``plyer.notification`` (toast)

A missing notification service raises ``NotificationServerUnavailable``;
sinks look for the service again on the next call instead of giving up.
"""

import logging
import shutil
import subprocess
import sys
from abc import ABC, abstractmethod
from typing import Optional

logger = logging.getLogger(__name__)

APP_NAME = "Emotional Support"

# Upper bound for a single notification helper invocation, in seconds.
_SUBPROCESS_TIMEOUT = 5


class NotificationError(Exception):
    """Base class for notification delivery failures."""


class NotificationDeliveryError(NotificationError):
    """The notification service was reachable but rejected the message."""


class NotificationServerUnavailable(NotificationError):
    """No notification service could be reached; retried on the next call."""


class NotificationSink(ABC):
    """Common interface for delivering a desktop notification."""

    @abstractmethod
    def send(self, title: str, body: str) -> None:
        """Deliver a notification or raise ``NotificationError``."""
        pass


class NotifySendSink(NotificationSink):
    """Linux notifications through ``notify-send``.

    Args:
        timeout_seconds: Expiry passed to the notification server
            (0 = server default, -1 = never expire).
    """

    def __init__(self, timeout_seconds: int = 15, app_name: str = APP_NAME) -> None:
        self.timeout_seconds = timeout_seconds
        self.app_name = app_name
        self._binary: Optional[str] = None

    def send(self, title: str, body: str) -> None:
        binary = self._connect()
        expire_ms = self.timeout_seconds * 1000 if self.timeout_seconds > 0 else self.timeout_seconds
        cmd = [binary, "--app-name", self.app_name, "--expire-time", str(expire_ms), title, body]
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, timeout=_SUBPROCESS_TIMEOUT,
            )
        except FileNotFoundError as exc:
            self._binary = None
            raise NotificationServerUnavailable(str(exc)) from exc
        except (subprocess.TimeoutExpired, OSError) as exc:
            raise NotificationDeliveryError(f"notify-send failed: {exc}") from exc

        if result.returncode != 0:
            stderr = result.stderr.strip()
            if "connect" in stderr.lower() or "dbus" in stderr.lower():
                raise NotificationServerUnavailable(stderr or "notification bus unavailable")
            raise NotificationDeliveryError(
                f"notify-send returned {result.returncode}: {stderr}"
            )

    def _connect(self) -> str:
        if self._binary is None:
            binary = shutil.which("notify-send")
            if binary is None:
                raise NotificationServerUnavailable("notify-send not found on PATH")
            self._binary = binary
        return self._binary


class OsascriptSink(NotificationSink):
    """macOS notifications through AppleScript."""

    def send(self, title: str, body: str) -> None:
        script = (
            f'display notification "{_escape_applescript(body)}" '
            f'with title "{_escape_applescript(title)}"'
        )
        try:
            result = subprocess.run(
                ["osascript", "-e", script],
                capture_output=True,
                text=True,
                timeout=_SUBPROCESS_TIMEOUT,
            )
        except FileNotFoundError as exc:
            raise NotificationServerUnavailable("osascript not available") from exc
        except (subprocess.TimeoutExpired, OSError) as exc:
            raise NotificationDeliveryError(f"osascript failed: {exc}") from exc

        if result.returncode != 0:
            raise NotificationDeliveryError(
                f"osascript returned {result.returncode}: {result.stderr.strip()}"
            )


class PlyerSink(NotificationSink):
    """Windows toast notifications through plyer."""

    def __init__(self, timeout_seconds: int = 15, app_name: str = APP_NAME) -> None:
        self.timeout_seconds = timeout_seconds
        self.app_name = app_name

    def send(self, title: str, body: str) -> None:
        try:
            from plyer import notification
        except ImportError as exc:
            raise NotificationServerUnavailable("plyer is not installed") from exc

        try:
            notification.notify(
                title=title,
                message=body,
                app_name=self.app_name,
                timeout=self.timeout_seconds,
            )
        except NotImplementedError as exc:
            raise NotificationServerUnavailable("no plyer notification backend") from exc
        except Exception as exc:
            raise NotificationDeliveryError(f"plyer notification failed: {exc}") from exc


class LogSink(NotificationSink):
    """Writes notifications to the log when no desktop service exists."""

    def send(self, title: str, body: str) -> None:
        logger.info("%s: %s", title, body)


def create_notification_sink(timeout_seconds: int = 15) -> NotificationSink:
    """Return the notification sink for the current OS."""
    if sys.platform == "darwin":
        return OsascriptSink()
    if sys.platform == "win32":
        return PlyerSink(timeout_seconds=timeout_seconds)
    if sys.platform.startswith("linux") or "bsd" in sys.platform:
        return NotifySendSink(timeout_seconds=timeout_seconds)
    logger.warning("No desktop notifications on %s; logging them instead", sys.platform)
    return LogSink()


def _escape_applescript(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')
