"""Unit tests for MacOSWindowProvider.

All subprocess calls are mocked; these tests never invoke osascript.
"""

import subprocess
from unittest.mock import patch

import pytest

from emotional_support.core.models import WindowInfo
from emotional_support.platform.base import WindowQueryError
from emotional_support.platform.macos import MacOSWindowProvider


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _completed(stdout: str = "", stderr: str = "", returncode: int = 0):
    """Build a fake ``subprocess.CompletedProcess``."""
    return subprocess.CompletedProcess(
        args=[], returncode=returncode, stdout=stdout, stderr=stderr,
    )


# ---------------------------------------------------------------------------
# get_active_window
# ---------------------------------------------------------------------------

class TestGetActiveWindow:
    """Tests for MacOSWindowProvider.get_active_window()."""

    @patch("emotional_support.platform.macos.subprocess.run")
    def test_returns_window_info_on_success(self, mock_run):
        mock_run.side_effect = [
            _completed(stdout="Code\n"),                    # frontmost app
            _completed(stdout="main.go - proj\n"),          # window title
            _completed(stdout="812\n"),                     # unix id
        ]
        info = MacOSWindowProvider().get_active_window()

        assert info == WindowInfo(title="main.go - proj", process="Code", pid="812")

    @patch("emotional_support.platform.macos.subprocess.run")
    def test_uses_ax_title_when_window_name_empty(self, mock_run):
        mock_run.side_effect = [
            _completed(stdout="Google Chrome\n"),
            _completed(stdout="\n"),                        # plain name empty
            _completed(stdout="Inbox - Mail\n"),            # AXTitle
            _completed(stdout="900\n"),
        ]
        info = MacOSWindowProvider().get_active_window()

        assert info.title == "Inbox - Mail"
        assert "AXTitle" in mock_run.call_args_list[2][0][0][2]

    @patch("emotional_support.platform.macos.subprocess.run")
    def test_falls_back_to_app_name_when_title_unavailable(self, mock_run):
        mock_run.side_effect = [
            _completed(stdout="Finder\n"),
            _completed(returncode=1, stderr="no window"),
            _completed(returncode=1, stderr="no AXTitle"),
            _completed(stdout="77\n"),
        ]
        info = MacOSWindowProvider().get_active_window()

        assert info.process == "Finder"
        assert info.title == "Finder"

    @patch("emotional_support.platform.macos.subprocess.run")
    def test_missing_pid_is_empty(self, mock_run):
        mock_run.side_effect = [
            _completed(stdout="Terminal\n"),
            _completed(stdout="bash\n"),
            _completed(returncode=1),
        ]
        assert MacOSWindowProvider().get_active_window().pid == ""

    @patch("emotional_support.platform.macos.subprocess.run")
    def test_raises_when_app_name_unavailable(self, mock_run):
        mock_run.return_value = _completed(returncode=1, stderr="error")

        with pytest.raises(WindowQueryError):
            MacOSWindowProvider().get_active_window()

    @patch("emotional_support.platform.macos.subprocess.run")
    def test_raises_when_app_name_empty(self, mock_run):
        mock_run.return_value = _completed(stdout="")

        with pytest.raises(WindowQueryError):
            MacOSWindowProvider().get_active_window()

    @pytest.mark.parametrize(
        "error",
        [
            subprocess.TimeoutExpired(cmd="osascript", timeout=5),
            FileNotFoundError("osascript not found"),
            OSError("permission denied"),
        ],
    )
    @patch("emotional_support.platform.macos.subprocess.run")
    def test_subprocess_errors_become_query_errors(self, mock_run, error):
        mock_run.side_effect = error

        with pytest.raises(WindowQueryError):
            MacOSWindowProvider().get_active_window()

    @patch("emotional_support.platform.macos.subprocess.run")
    def test_osascript_called_with_timeout(self, mock_run):
        mock_run.side_effect = [
            _completed(stdout="Safari\n"),
            _completed(stdout="Apple\n"),
            _completed(stdout="1\n"),
        ]
        MacOSWindowProvider().get_active_window()

        for call in mock_run.call_args_list:
            assert call[0][0][0] == "osascript"
            assert call[1]["timeout"] == 5
