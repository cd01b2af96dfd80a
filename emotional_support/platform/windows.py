"""Windows window provider using ctypes with user32.dll and kernel32.dll."""

import ctypes
import ctypes.wintypes
import logging
from typing import Optional

from emotional_support.core.models import WindowInfo
from emotional_support.platform.base import (
    NoActiveWindowError,
    WindowProvider,
    WindowQueryError,
)

logger = logging.getLogger(__name__)

# Buffer size for window title and image path retrieval.
_TITLE_BUFFER_SIZE = 512

_PROCESS_QUERY_LIMITED_INFORMATION = 0x1000


class WindowsWindowProvider(WindowProvider):
    """Retrieve the foreground window on Windows.

    Uses ``ctypes`` with ``user32.dll`` for window queries and
    ``kernel32.dll`` to resolve the owning process image name.
    """

    def __init__(self) -> None:
        try:
            self._user32 = ctypes.windll.user32  # type: ignore[attr-defined]
            self._kernel32 = ctypes.windll.kernel32  # type: ignore[attr-defined]
        except (AttributeError, OSError) as exc:
            logger.warning("Win32 DLLs unavailable: %s", exc)
            self._user32 = None
            self._kernel32 = None

    # ------------------------------------------------------------------
    # WindowProvider interface
    # ------------------------------------------------------------------

    def get_active_window(self) -> WindowInfo:
        """Return the foreground window's title, executable name and pid."""
        if self._user32 is None:
            raise WindowQueryError("user32.dll is not available")

        try:
            hwnd = self._user32.GetForegroundWindow()
        except OSError as exc:
            raise WindowQueryError(f"GetForegroundWindow failed: {exc}") from exc
        if not hwnd:
            raise NoActiveWindowError("no foreground window")

        title = self._get_window_title(hwnd) or ""
        pid = self._get_pid(hwnd)
        process = self._get_process_name(pid) if pid else None

        return WindowInfo(
            title=title,
            process=process or "",
            pid=str(pid) if pid else "",
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_window_title(self, hwnd: int) -> Optional[str]:
        """Retrieve the title of the given window handle."""
        try:
            buf = ctypes.create_unicode_buffer(_TITLE_BUFFER_SIZE)
            length = self._user32.GetWindowTextW(hwnd, buf, _TITLE_BUFFER_SIZE)
            if length > 0:
                return buf.value
            return None
        except OSError as exc:
            logger.debug("GetWindowTextW failed: %s", exc)
            return None

    def _get_pid(self, hwnd: int) -> int:
        try:
            pid = ctypes.wintypes.DWORD()
            self._user32.GetWindowThreadProcessId(hwnd, ctypes.byref(pid))
            return pid.value
        except OSError as exc:
            logger.debug("GetWindowThreadProcessId failed: %s", exc)
            return 0

    def _get_process_name(self, pid: int) -> Optional[str]:
        """Retrieve the executable name (without ``.exe``) for *pid*."""
        if self._kernel32 is None:
            return None
        try:
            handle = self._kernel32.OpenProcess(
                _PROCESS_QUERY_LIMITED_INFORMATION, False, pid
            )
            if not handle:
                return None

            try:
                buf = ctypes.create_unicode_buffer(_TITLE_BUFFER_SIZE)
                buf_size = ctypes.wintypes.DWORD(_TITLE_BUFFER_SIZE)
                success = self._kernel32.QueryFullProcessImageNameW(
                    handle, 0, buf, ctypes.byref(buf_size)
                )
                if not success or not buf.value:
                    return None
                path = buf.value
                sep_idx = max(path.rfind("\\"), path.rfind("/"))
                name = path[sep_idx + 1:] if sep_idx >= 0 else path
                if name.lower().endswith(".exe"):
                    name = name[:-4]
                return name
            finally:
                self._kernel32.CloseHandle(handle)
        except OSError as exc:
            logger.debug("Failed to get process name: %s", exc)
            return None
