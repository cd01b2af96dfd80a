"""Abstract base class for platform-specific window providers."""

from abc import ABC, abstractmethod

from emotional_support.core.models import WindowInfo


class WindowSourceError(Exception):
    """Base class for failures to read the foreground window."""


class NoActiveWindowError(WindowSourceError):
    """No window currently has focus (e.g. mid-switch or empty desktop)."""


class WindowQueryError(WindowSourceError):
    """The platform query itself failed."""


class WindowProvider(ABC):
    """Common interface for retrieving active window information.

    Each supported platform (Linux/X11, macOS, Windows) provides a concrete
    implementation that uses OS-specific APIs behind this interface.
    """

    @abstractmethod
    def get_active_window(self) -> WindowInfo:
        """Return the currently active window.

        Raises:
            NoActiveWindowError: If no window has focus.
            WindowQueryError: If the platform query failed.
        """
        pass
