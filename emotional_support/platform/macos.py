"""macOS window provider using AppleScript (osascript)."""

import logging
import subprocess
from typing import Optional

from emotional_support.core.models import WindowInfo
from emotional_support.platform.base import WindowProvider, WindowQueryError

logger = logging.getLogger(__name__)

_FRONT_PROCESS = "first application process whose frontmost is true"


class MacOSWindowProvider(WindowProvider):
    """Retrieve the frontmost application and window on macOS.

    Uses ``osascript`` to run AppleScript commands against System Events.
    """

    # ------------------------------------------------------------------
    # WindowProvider interface
    # ------------------------------------------------------------------

    def get_active_window(self) -> WindowInfo:
        """Return the frontmost application process, window title and pid."""
        app_name = self._get_frontmost_app()
        if app_name is None:
            raise WindowQueryError("could not determine the frontmost application")

        window_title = self._get_window_title()
        if window_title is None:
            # Some apps do not expose a window title; use the app name.
            window_title = app_name

        pid = self._run_osascript(
            f'tell application "System Events" to get unix id of {_FRONT_PROCESS}'
        ) or ""

        return WindowInfo(title=window_title, process=app_name, pid=pid)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _run_osascript(self, script: str) -> Optional[str]:
        """Execute an AppleScript snippet via ``osascript`` and return stdout.

        Returns ``None`` on any error.
        """
        try:
            result = subprocess.run(
                ["osascript", "-e", script],
                capture_output=True,
                text=True,
                timeout=5,
            )
            if result.returncode != 0:
                logger.debug(
                    "osascript returned %d: %s", result.returncode, result.stderr.strip()
                )
                return None
            output = result.stdout.strip()
            return output if output else None
        except (subprocess.TimeoutExpired, FileNotFoundError, OSError) as exc:
            logger.debug("osascript execution failed: %s", exc)
            return None

    def _get_frontmost_app(self) -> Optional[str]:
        """Return the name of the frontmost application process."""
        return self._run_osascript(
            f'tell application "System Events" to get name of {_FRONT_PROCESS}'
        )

    def _get_window_title(self) -> Optional[str]:
        """Return the title of the front window of the frontmost app.

        Falls back to the AXTitle attribute, which Electron and Chrome
        windows expose even when the plain window name is empty.
        """
        title = self._run_osascript(
            f'tell application "System Events" to get name of front window of {_FRONT_PROCESS}'
        )
        if title:
            return title

        script = (
            'tell application "System Events"\n'
            f'  set fp to {_FRONT_PROCESS}\n'
            '  tell fp\n'
            '    set w to first window\n'
            '    return value of attribute "AXTitle" of w\n'
            '  end tell\n'
            'end tell'
        )
        return self._run_osascript(script)
