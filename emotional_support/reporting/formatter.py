"""Text formatter for Emotional Support summaries.

Renders a DailySummary as an aligned plain-text report.
"""

from datetime import timedelta

from emotional_support.core.models import DailySummary, UsageSummary


class TextFormatter:
    """Formats summary data as human-readable plain text."""

    @staticmethod
    def format_duration(duration: timedelta) -> str:
        """Format a timedelta as 'Xh Ym' (e.g., '2h 15m').

        Truncates to whole minutes. Returns '0m' for zero/negative durations.
        """
        total_seconds = int(duration.total_seconds())
        if total_seconds < 0:
            total_seconds = 0
        hours, minutes = divmod(total_seconds // 60, 60)

        if hours == 0:
            return f"{minutes}m"
        return f"{hours}h {minutes}m"

    @staticmethod
    def _format_usage_table(
        label: str,
        rows: list[UsageSummary],
        total_time: timedelta,
        total_sessions: int,
    ) -> str:
        """Render a usage table with aligned columns.

        Returns lines like:
          Program       Time  Sessions
          ────────────────────────────
          vim         2h 15m         3
          firefox        45m         1
          ────────────────────────────
          Total       3h 0m          4
        """
        if not rows:
            return "  No activity recorded.\n"

        name_width = max([len(r.name) for r in rows] + [len(label), len("Total")])

        dur_strs = [TextFormatter.format_duration(r.total_time) for r in rows]
        total_dur_str = TextFormatter.format_duration(total_time)
        dur_width = max(len(s) for s in dur_strs + [total_dur_str, "Time"])

        count_strs = [str(r.session_count) for r in rows]
        total_count_str = str(total_sessions)
        count_width = max(len(s) for s in count_strs + [total_count_str, "Sessions"])

        def line(name: str, dur: str, count: str) -> str:
            return f"  {name:<{name_width}}  {dur:>{dur_width}}  {count:>{count_width}}"

        header = line(label, "Time", "Sessions")
        separator = "  " + "─" * (len(header) - 2)

        lines = [header, separator]
        for row, dur_str, count_str in zip(rows, dur_strs, count_strs):
            lines.append(line(row.name, dur_str, count_str))
        lines.append(separator)
        lines.append(line("Total", total_dur_str, total_count_str))

        return "\n".join(lines) + "\n"

    @staticmethod
    def format_daily(summary: DailySummary) -> str:
        """Render a daily summary as aligned plain text."""
        parts = [f"Daily Summary: {summary.date.strftime('%A, %B %d, %Y')}\n"]

        parts.append("\nPrograms:\n")
        parts.append(
            TextFormatter._format_usage_table(
                "Program", summary.programs, summary.total_time, summary.total_sessions
            )
        )

        if summary.languages:
            lang_time = sum((l.total_time for l in summary.languages), timedelta())
            lang_sessions = sum(l.session_count for l in summary.languages)
            parts.append("\nLanguages:\n")
            parts.append(
                TextFormatter._format_usage_table(
                    "Language", summary.languages, lang_time, lang_sessions
                )
            )

        parts.append("\nNotifications:\n")
        if not summary.notifications:
            parts.append("  None sent.\n")
        else:
            for kind, count in sorted(summary.notifications.items()):
                parts.append(f"  {kind}: {count}\n")

        return "".join(parts)
