"""Factory for creating the appropriate WindowProvider for the current OS."""

import sys

from emotional_support.platform.base import WindowProvider


def create_window_provider() -> WindowProvider:
    """Detect the current OS and return the matching WindowProvider.

    Uses lazy imports so platform-specific modules are only loaded on
    the OS where they are actually needed.

    Returns:
        A concrete WindowProvider for the current platform.

    Raises:
        OSError: If the current platform is not supported.
    """
    if sys.platform == "darwin":
        from emotional_support.platform.macos import MacOSWindowProvider
        return MacOSWindowProvider()

    if sys.platform == "win32":
        from emotional_support.platform.windows import WindowsWindowProvider
        return WindowsWindowProvider()

    if sys.platform.startswith("linux") or "bsd" in sys.platform:
        from emotional_support.platform.linux import XdotoolWindowProvider
        return XdotoolWindowProvider()

    raise OSError(
        f"Unsupported platform: {sys.platform!r}. "
        "Emotional Support supports Linux/X11, macOS (darwin) and Windows (win32)."
    )
