"""Tests for the Emotional Support main entry point."""

import os
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from emotional_support.core.models import Context, DwellSession, WindowInfo
from emotional_support.main import build_parser, main
from emotional_support.persistence.store import ActivityStore


class TestBuildParser:
    """Tests for CLI argument parsing."""

    def test_no_args_defaults_to_gui(self):
        parsed = build_parser().parse_args([])
        assert parsed.headless is False
        assert parsed.daily is False
        assert parsed.export is None
        assert parsed.config is None
        assert parsed.verbose is False

    def test_headless_flag(self):
        assert build_parser().parse_args(["--headless"]).headless is True

    def test_export_takes_path(self):
        parsed = build_parser().parse_args(["--export", "out.docx"])
        assert parsed.export == "out.docx"

    def test_config_and_verbose(self):
        parsed = build_parser().parse_args(["--config", "/tmp/c.json", "-v"])
        assert parsed.config == "/tmp/c.json"
        assert parsed.verbose is True

    @pytest.mark.parametrize(
        "argv",
        [["--daily", "--headless"], ["--daily", "--export", "x.docx"]],
    )
    def test_modes_mutually_exclusive(self, argv):
        with pytest.raises(SystemExit):
            build_parser().parse_args(argv)


def _seed_today(db_path: str) -> None:
    store = ActivityStore(db_path)
    store.init_db()
    start = datetime.now().replace(hour=9, minute=0, second=0, microsecond=0)
    store.log_window_session(
        DwellSession(
            window_key="code|main.go",
            context=Context(program="code", window_title="main.go", language="go"),
            window=WindowInfo(title="main.go", process="code"),
            started_at=start,
            ended_at=start + timedelta(minutes=50),
            duration=timedelta(minutes=50),
        )
    )
    store.close()


class TestMainDaily:
    """Tests for main() in --daily mode."""

    @patch("emotional_support.main.load_config")
    def test_prints_today_summary(self, mock_load, tmp_path, capsys):
        db_path = str(tmp_path / "activity.db")
        _seed_today(db_path)
        mock_load.return_value = {"database_path": db_path}

        assert main(["--daily"]) == 0

        out = capsys.readouterr().out
        assert "Daily Summary:" in out
        assert "code" in out
        assert "50m" in out
        assert "go" in out

    @patch("emotional_support.main.load_config")
    def test_passes_config_path(self, mock_load, tmp_path):
        mock_load.return_value = {"database_path": str(tmp_path / "a.db")}
        main(["--daily", "--config", "/tmp/custom.json"])
        mock_load.assert_called_once_with("/tmp/custom.json")

    @patch("emotional_support.main.load_config", return_value={"database_path": None})
    def test_no_database_returns_error(self, mock_load, capsys):
        assert main(["--daily"]) == 1
        assert "No database configured" in capsys.readouterr().err


class TestMainExport:
    """Tests for main() in --export mode."""

    @patch("emotional_support.main.load_config")
    def test_writes_docx(self, mock_load, tmp_path, capsys):
        db_path = str(tmp_path / "activity.db")
        _seed_today(db_path)
        mock_load.return_value = {"database_path": db_path}
        out = str(tmp_path / "reports" / "today.docx")

        assert main(["--export", out]) == 0

        assert os.path.isfile(out)
        assert out in capsys.readouterr().out

    @patch("emotional_support.main.load_config", return_value={})
    def test_no_database_returns_error(self, mock_load, tmp_path):
        out = str(tmp_path / "today.docx")
        assert main(["--export", out]) == 1
        assert not os.path.exists(out)


class TestMainApp:
    """Tests for main() launching the application."""

    @patch("emotional_support.ui.app.EmotionalSupportApp")
    def test_default_starts_tray_app(self, mock_cls):
        assert main([]) == 0
        mock_cls.assert_called_once_with(None)
        mock_cls.return_value.start.assert_called_once()
        mock_cls.return_value.run_headless.assert_not_called()

    @patch("emotional_support.ui.app.EmotionalSupportApp")
    def test_headless_runs_in_foreground(self, mock_cls):
        assert main(["--headless", "--config", "c.json"]) == 0
        mock_cls.assert_called_once_with("c.json")
        mock_cls.return_value.run_headless.assert_called_once()
        mock_cls.return_value.start.assert_not_called()
