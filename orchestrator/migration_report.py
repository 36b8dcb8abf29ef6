"""
Migration report generator for import summaries.

This module turns an ImportSummary into a report dictionary, formats it for
console display and exports it as JSON.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from logger import format_elapsed
from models import ImportSummary

# Failures and skips listed individually on the console
MAX_LISTED_ENTRIES = 20


class MigrationReport:
    """Generates import reports from the summary collected by ImportContext."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize migration report generator.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger('notion_markdown_migrator.orchestrator.migration_report')

    def generate_report(self, summary: ImportSummary, config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Generate import report.

        Args:
            summary: Summary of the finished (or cancelled) run
            config: Effective configuration, for the settings section

        Returns:
            Report dictionary
        """
        importer = (config or {}).get('importer', {})
        report = {
            'summary': {
                'notes': summary.notes_succeeded,
                'notes_unchanged': summary.notes_unchanged,
                'attachments': summary.attachments_succeeded,
                'skipped': len(summary.skipped),
                'failed': len(summary.failed),
                'total_entries': summary.total_entries,
                'success_rate': summary.success_rate,
                'duration': summary.duration,
                'duration_formatted': format_elapsed(summary.duration),
                'cancelled': summary.cancelled,
                'output_directory': summary.output_directory,
            },
            'settings': {
                'archives': list(importer.get('archives') or []),
                'hierarchy_mode': importer.get('hierarchy_mode'),
                'parent_pages_in_subfolders': importer.get('parent_pages_in_subfolders'),
                'default_attachment_folder': importer.get('default_attachment_folder'),
            },
            'skipped': [result.to_dict() for result in summary.skipped],
            'errors': [result.to_dict() for result in summary.failed],
            'timestamp': datetime.now().isoformat(),
        }

        self.logger.info(
            f"Report generated: {summary.notes_succeeded} notes, "
            f"{summary.attachments_succeeded} attachments, {len(summary.failed)} errors"
        )
        return report

    def format_console_report(self, report: Dict[str, Any]) -> str:
        """
        Format report for console display.

        Args:
            report: Report dictionary from generate_report

        Returns:
            Formatted console string
        """
        sections = []

        sections.append("=" * 60)
        sections.append("IMPORT REPORT")
        sections.append("=" * 60)
        sections.append("")

        summary = report.get('summary', {})
        sections.append("Summary:")
        sections.append(f"  Notes:       {summary.get('notes', 0)}")
        if summary.get('notes_unchanged', 0) > 0:
            sections.append(f"  Unchanged:   {summary['notes_unchanged']}")
        sections.append(f"  Attachments: {summary.get('attachments', 0)}")
        sections.append(f"  Skipped:     {summary.get('skipped', 0)}")
        sections.append(f"  Failed:      {summary.get('failed', 0)}")
        sections.append(f"  Duration:    {summary.get('duration_formatted', '0s')}")
        sections.append(f"  Success:     {summary.get('success_rate', 0) * 100:.1f}%")
        if summary.get('output_directory'):
            sections.append(f"  Output:      {summary['output_directory']}")
        if summary.get('cancelled'):
            sections.append("  Status:      CANCELLED")
        sections.append("")

        self._append_entries(sections, "Errors", report.get('errors', []))
        self._append_entries(sections, "Skipped Entries", report.get('skipped', []))

        sections.append("=" * 60)

        return "\n".join(sections)

    @staticmethod
    def _append_entries(sections: List[str], title: str, entries: List[Dict[str, Any]]) -> None:
        if not entries:
            return
        sections.append(f"{title}:")
        sections.append("-" * 60)
        for entry in entries[:MAX_LISTED_ENTRIES]:
            sections.append(f"  [{entry.get('kind')}] {entry.get('source_path')}")
            if entry.get('reason'):
                sections.append(f"    {entry['reason']}")
        if len(entries) > MAX_LISTED_ENTRIES:
            sections.append(f"  ... and {len(entries) - MAX_LISTED_ENTRIES} more")
        sections.append("")

    def export_json_report(self, report: Dict[str, Any], filepath: str) -> None:
        """
        Export report to JSON file.

        Args:
            report: Report dictionary
            filepath: Output file path

        Raises:
            OSError: If the file cannot be written
        """
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(report, f, indent=2, ensure_ascii=False, default=str)

        self.logger.info(f"JSON report exported to {filepath}")


__all__ = ['MigrationReport']
