"""Tests for the ReportExporter class."""

import os
from datetime import date, timedelta
from unittest.mock import patch

import pytest
from docx import Document

from emotional_support.core.models import DailySummary, UsageSummary
from emotional_support.reporting.exporter import ReportExporter


def _make_daily_summary() -> DailySummary:
    """Build a realistic daily summary for testing."""
    return DailySummary(
        date=date(2025, 1, 15),
        programs=[
            UsageSummary("code", timedelta(hours=2, minutes=30), 6),
            UsageSummary("firefox", timedelta(minutes=40), 3),
        ],
        languages=[
            UsageSummary("go", timedelta(hours=1, minutes=45), 4),
            UsageSummary("python", timedelta(minutes=45), 2),
        ],
        notifications={"time_based": 2, "health": 1},
        total_time=timedelta(hours=3, minutes=10),
        total_sessions=9,
    )


def _all_text(doc) -> str:
    return "\n".join(p.text for p in doc.paragraphs)


class TestReportExporter:
    """Tests for ReportExporter.export_daily."""

    def test_creates_docx_file(self, tmp_path):
        out = str(tmp_path / "report.docx")

        result = ReportExporter().export_daily(_make_daily_summary(), out)

        assert result == out
        assert os.path.isfile(out)

    def test_creates_parent_directories(self, tmp_path):
        out = str(tmp_path / "nested" / "dir" / "report.docx")

        ReportExporter().export_daily(_make_daily_summary(), out)

        assert os.path.isfile(out)

    def test_title_and_date(self, tmp_path):
        out = str(tmp_path / "report.docx")
        ReportExporter().export_daily(_make_daily_summary(), out)

        text = _all_text(Document(out))
        assert "Emotional Support Daily Report" in text
        assert "Wednesday, January 15, 2025" in text

    def test_section_headings(self, tmp_path):
        out = str(tmp_path / "report.docx")
        ReportExporter().export_daily(_make_daily_summary(), out)

        headings = [
            p.text for p in Document(out).paragraphs if p.style.name.startswith("Heading")
        ]
        assert headings == ["Programs", "Languages", "Notifications"]

    def test_program_table_contents(self, tmp_path):
        out = str(tmp_path / "report.docx")
        ReportExporter().export_daily(_make_daily_summary(), out)

        doc = Document(out)
        assert len(doc.tables) == 2
        rows = [[c.text for c in row.cells] for row in doc.tables[0].rows]
        assert rows[0] == ["Program", "Total Time", "Sessions"]
        assert rows[1] == ["code", "2h 30m", "6"]
        assert rows[2] == ["firefox", "40m", "3"]
        assert rows[-1] == ["Total", "3h 10m", "9"]

    def test_language_table_total(self, tmp_path):
        out = str(tmp_path / "report.docx")
        ReportExporter().export_daily(_make_daily_summary(), out)

        rows = [[c.text for c in row.cells] for row in Document(out).tables[1].rows]
        assert rows[0][0] == "Language"
        assert rows[-1] == ["Total", "2h 30m", "6"]

    def test_notification_counts_listed(self, tmp_path):
        out = str(tmp_path / "report.docx")
        ReportExporter().export_daily(_make_daily_summary(), out)

        bullets = [
            p.text for p in Document(out).paragraphs if p.style.name == "List Bullet"
        ]
        assert bullets == ["health: 1", "time_based: 2"]

    def test_empty_summary(self, tmp_path):
        out = str(tmp_path / "empty.docx")
        ReportExporter().export_daily(DailySummary(date=date(2025, 1, 15)), out)

        doc = Document(out)
        text = _all_text(doc)
        assert doc.tables == []
        assert "No activity recorded." in text
        assert "No programming language detected." in text
        assert "No notifications sent." in text

    def test_missing_python_docx_raises_with_hint(self, tmp_path):
        with patch.dict("sys.modules", {"docx": None}):
            with pytest.raises(ImportError, match="pip install python-docx"):
                ReportExporter().export_daily(
                    _make_daily_summary(), str(tmp_path / "r.docx")
                )
