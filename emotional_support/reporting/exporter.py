"""Report exporter for Emotional Support.

Generates Word (.docx) documents from daily summary data using python-docx.
"""

import logging
import os
from datetime import timedelta

from emotional_support.core.models import DailySummary, UsageSummary
from emotional_support.reporting.formatter import TextFormatter

logger = logging.getLogger(__name__)


class ReportExporter:
    """Exports daily summary data to a formatted Word document (.docx)."""

    def export_daily(self, summary: DailySummary, output_path: str) -> str:
        """Generate a .docx file from daily summary data.

        Returns:
            The path to the generated file.

        Raises:
            ImportError: If python-docx is not installed.
        """
        try:
            from docx import Document
        except ImportError:
            raise ImportError(
                "python-docx is required for report export. "
                "Install it with: pip install python-docx"
            )

        parent_dir = os.path.dirname(output_path)
        if parent_dir:
            os.makedirs(parent_dir, exist_ok=True)

        doc = Document()
        self._add_title(doc, summary)

        doc.add_heading("Programs", level=1)
        self._add_usage_table(
            doc, "Program", summary.programs, summary.total_time, summary.total_sessions
        )

        doc.add_heading("Languages", level=1)
        if not summary.languages:
            doc.add_paragraph("No programming language detected.")
        else:
            self._add_usage_table(
                doc,
                "Language",
                summary.languages,
                sum((l.total_time for l in summary.languages), timedelta()),
                sum(l.session_count for l in summary.languages),
            )

        doc.add_heading("Notifications", level=1)
        if not summary.notifications:
            doc.add_paragraph("No notifications sent.")
        for kind, count in sorted(summary.notifications.items()):
            doc.add_paragraph(f"{kind}: {count}", style="List Bullet")

        doc.save(output_path)
        logger.info("Exported daily report to %s", output_path)
        return output_path

    def _add_title(self, doc, summary: DailySummary) -> None:
        """Add the report title and date."""
        from docx.enum.text import WD_ALIGN_PARAGRAPH
        from docx.shared import Pt

        title_para = doc.add_paragraph()
        title_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = title_para.add_run("Emotional Support Daily Report")
        run.bold = True
        run.font.size = Pt(24)

        date_para = doc.add_paragraph()
        date_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = date_para.add_run(summary.date.strftime("%A, %B %d, %Y"))
        run.font.size = Pt(14)

    def _add_usage_table(
        self,
        doc,
        label: str,
        rows: list[UsageSummary],
        total_time: timedelta,
        total_sessions: int,
    ) -> None:
        """Add a usage table with a header and a total row."""
        if not rows:
            doc.add_paragraph("No activity recorded.")
            return

        table = doc.add_table(rows=1 + len(rows) + 1, cols=3)
        table.style = "Light Grid Accent 1"

        header_cells = table.rows[0].cells
        header_cells[0].text = label
        header_cells[1].text = "Total Time"
        header_cells[2].text = "Sessions"

        for i, usage in enumerate(rows, start=1):
            row_cells = table.rows[i].cells
            row_cells[0].text = usage.name
            row_cells[1].text = TextFormatter.format_duration(usage.total_time)
            row_cells[2].text = str(usage.session_count)

        total_row = table.rows[-1].cells
        total_row[0].text = "Total"
        total_row[1].text = TextFormatter.format_duration(total_time)
        total_row[2].text = str(total_sessions)

        # Bold the header and total rows
        for row in (table.rows[0], table.rows[-1]):
            for cell in row.cells:
                for paragraph in cell.paragraphs:
                    for run in paragraph.runs:
                        run.bold = True

        doc.add_paragraph()  # spacing after table
