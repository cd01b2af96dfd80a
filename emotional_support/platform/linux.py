"""Linux/X11 window provider using xdotool, ps and xprop."""

import logging
import re
import subprocess
from typing import Optional

from emotional_support.core.models import WindowInfo
from emotional_support.platform.base import (
    NoActiveWindowError,
    WindowProvider,
    WindowQueryError,
)

logger = logging.getLogger(__name__)

# Upper bound for each helper process, in seconds.
_COMMAND_TIMEOUT = 5

# WM_CLASS(STRING) = "instance", "class"
_WM_CLASS_RE = re.compile(r'"([^"]*)"\s*$')


class XdotoolWindowProvider(WindowProvider):
    """Retrieve the focused X11 window through command-line utilities.

    The window id comes from ``xdotool getactivewindow``; title and pid are
    best-effort. The process name is read with ``ps`` and falls back to the
    ``WM_CLASS`` class name from ``xprop``, which works better under tiling
    window managers such as i3.
    """

    def __init__(self, timeout: float = _COMMAND_TIMEOUT) -> None:
        self.timeout = timeout

    # ------------------------------------------------------------------
    # WindowProvider interface
    # ------------------------------------------------------------------

    def get_active_window(self) -> WindowInfo:
        try:
            result = subprocess.run(
                ["xdotool", "getactivewindow"],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError, OSError) as exc:
            raise WindowQueryError(f"failed to get active window ID: {exc}") from exc

        if result.returncode != 0:
            raise WindowQueryError(
                f"failed to get active window ID: {result.stderr.strip() or result.returncode}"
            )

        window_id = result.stdout.strip()
        if not window_id or window_id == "0":
            raise NoActiveWindowError("no active window found")

        title = self._run(["xdotool", "getwindowname", window_id]) or ""
        pid = self._run(["xdotool", "getwindowpid", window_id]) or ""

        process = ""
        if pid and pid != "0":
            process = self._run(["ps", "-p", pid, "-o", "comm="]) or ""
        if not process:
            process = self._wm_class(window_id)

        return WindowInfo(title=title, process=process, pid=pid)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _run(self, cmd: list[str]) -> Optional[str]:
        """Run *cmd* and return stripped stdout, or ``None`` on any error."""
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, timeout=self.timeout,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError, OSError) as exc:
            logger.debug("%s failed: %s", cmd[0], exc)
            return None
        if result.returncode != 0:
            logger.debug("%s returned %d", " ".join(cmd), result.returncode)
            return None
        return result.stdout.strip()

    def _wm_class(self, window_id: str) -> str:
        output = self._run(["xprop", "-id", window_id, "WM_CLASS"])
        if not output:
            return ""
        match = _WM_CLASS_RE.search(output)
        if match is None:
            return ""
        return match.group(1).strip().lower()
