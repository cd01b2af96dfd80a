"""Emotional Support application entry point.

Supports three modes:
  - GUI mode (default): launches the system tray application
  - Headless mode: runs the tracker loop in the foreground
  - Report mode: prints or exports today's summary

Usage:
    python -m emotional_support.main                     # GUI mode
    python -m emotional_support.main --headless          # tracker only
    python -m emotional_support.main --daily             # print today's summary
    python -m emotional_support.main --export day.docx   # export today's summary
"""

import argparse
import logging
import os
import sys
from datetime import date

from emotional_support.core.config import load_config
from emotional_support.persistence.store import ActivityStore
from emotional_support.reporting.summary import SummaryGenerator


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="emotional-support",
        description="Emotional Support: encouraging desktop notifications while you work",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to config.json (default: platform data directory)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--headless",
        action="store_true",
        help="Run the tracker in the foreground without tray icon or dashboard",
    )
    group.add_argument(
        "--daily",
        action="store_true",
        help="Print today's daily summary and exit",
    )
    group.add_argument(
        "--export",
        metavar="PATH",
        help="Export today's daily summary to a .docx file and exit",
    )
    return parser


def _open_store(config: dict) -> ActivityStore | None:
    db_path = config.get("database_path")
    if not db_path:
        return None
    store = ActivityStore(os.path.expanduser(db_path))
    store.init_db()
    return store


def _print_daily_summary(config: dict) -> int:
    """Create a store and summary generator, then print today's summary."""
    from emotional_support.reporting.formatter import TextFormatter

    store = _open_store(config)
    if store is None:
        print("No database configured; nothing to summarize.", file=sys.stderr)
        return 1
    try:
        summary = SummaryGenerator(store).daily_summary(date.today())
        print(TextFormatter.format_daily(summary))
    finally:
        store.close()
    return 0


def _export_daily_summary(config: dict, output_path: str) -> int:
    """Write today's summary to *output_path* as a Word document."""
    from emotional_support.reporting.exporter import ReportExporter

    store = _open_store(config)
    if store is None:
        print("No database configured; nothing to export.", file=sys.stderr)
        return 1
    try:
        summary = SummaryGenerator(store).daily_summary(date.today())
        path = ReportExporter().export_daily(summary, output_path)
        print(f"Report written to {path}")
    finally:
        store.close()
    return 0


def main(args: list[str] | None = None) -> int:
    """Entry point for Emotional Support.

    When *args* is ``None`` the arguments are read from ``sys.argv``.
    Returns the process exit code.
    """
    parser = build_parser()
    parsed = parser.parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if parsed.daily:
        return _print_daily_summary(load_config(parsed.config))
    if parsed.export:
        return _export_daily_summary(load_config(parsed.config), parsed.export)

    # Import here to avoid pulling in pystray/Pillow for report-only usage
    from emotional_support.ui.app import EmotionalSupportApp

    app = EmotionalSupportApp(parsed.config)
    if parsed.headless:
        app.run_headless()
    else:
        app.start()
    return 0


if __name__ == "__main__":
    sys.exit(main())
