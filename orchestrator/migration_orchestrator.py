"""
Migration orchestrator for coordinating the complete import pipeline.

This module provides the central coordinator that sequences all import phases:
Index → Resolve → Create folders → Convert/Copy → Report.
"""

import logging
import time
from typing import Any, Dict, Optional

from converters import MarkdownConverter
from exporters import MarkdownExporter
from fetchers import (
    ArchiveEntry,
    ArchiveWalker,
    ExportError,
    FetcherError,
    UnresolvedReferenceError,
    get_notion_id,
    list_archives,
)
from logger import log_section
from models import HierarchyMode, ImportSummary
from resolver import DuplicateResolver, MetadataIndexer, ResolverIndex

from .import_context import ImportContext


class MigrationOrchestrator:
    """Central coordinator sequencing all import phases of one run."""

    def __init__(self, config: Dict[str, Any], context: Optional[ImportContext] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize migration orchestrator.

        Args:
            config: Configuration dictionary with an ``importer`` section
            context: Import context; a new one is created if not given
            logger: Optional logger instance
        """
        self.config = config
        self.settings = config.get('importer', {})
        self.context = context or ImportContext()
        self.logger = logger or logging.getLogger('notion_markdown_migrator.orchestrator')

        self.index = ResolverIndex(
            attachment_folder=self.settings.get('default_attachment_folder', './'),
            single_line_breaks=self.settings.get('single_line_breaks', False),
            hierarchy_mode=HierarchyMode(self.settings.get('hierarchy_mode', 'nested')),
            logger=self.logger.getChild('resolver'),
        )
        self.exporter = MarkdownExporter(
            self.settings['output_directory'],
            overwrite_existing=self.settings.get('overwrite_existing', True),
            logger=self.logger.getChild('exporter'),
        )
        self.walker = ArchiveWalker(self.context, self.logger.getChild('walker'))
        self.converter: Optional[MarkdownConverter] = None

        self._processed = 0

    def run(self) -> ImportSummary:
        """
        Run the whole import.

        Returns:
            Summary of the run

        Raises:
            WrongExportFormatError: If an archive holds a Markdown export;
                nothing is written in that case
        """
        start_time = time.time()
        summary = self.context.summary
        summary.output_directory = str(self.exporter.output_directory)
        archives = list_archives(self.settings.get('archives') or [])

        try:
            log_section("Indexing archives")
            self._execute_indexing(archives)
            if self.context.is_cancelled():
                return summary

            log_section("Resolving output paths")
            self._execute_resolution()

            self._execute_folder_creation()
            if self.context.is_cancelled():
                return summary

            log_section("Importing pages")
            self._execute_import(archives)

            self.exporter.log_export_summary()
            return summary
        finally:
            summary.duration = time.time() - start_time
            summary.total_entries = self.index.total + len(self.index.skipped_paths)
            self.context.close()

    def _execute_indexing(self, archives) -> None:
        indexer = MetadataIndexer(self.index, self.logger.getChild('indexer'))

        def index_visitor(entry: ArchiveEntry) -> None:
            try:
                indexer.index_entry(entry)
            except FetcherError as e:
                self.index.skipped_paths.add(entry.fullpath)
                self.context.report_skipped(entry.fullpath, e, kind=_entry_kind(entry))
            finally:
                self.context.report_progress(0, self.index.total)

        self.walker.walk(archives, index_visitor)
        self.context.status(
            f"Indexed {len(self.index.pages)} pages and {len(self.index.attachments)} attachments"
        )

    def _execute_resolution(self) -> None:
        resolver = DuplicateResolver(
            self.index,
            parent_pages_in_subfolders=self.settings.get('parent_pages_in_subfolders', True),
            logger=self.logger.getChild('resolver'),
        )
        resolver.resolve()

    def _execute_folder_creation(self) -> None:
        for folder in self.index.folder_paths():
            if self.context.is_cancelled():
                return
            try:
                self.exporter.create_folder(folder)
            except ExportError as e:
                self.context.report_failed(folder or '.', e, kind='folder')

    def _execute_import(self, archives) -> None:
        self.converter = MarkdownConverter(self.index, config=self.settings, logger=self.logger.getChild('converter'))
        self._processed = 0
        total = self.index.total

        def import_visitor(entry: ArchiveEntry) -> None:
            if entry.fullpath in self.index.skipped_paths:
                return
            try:
                if entry.extension == 'html':
                    self._import_note(entry)
                else:
                    self._import_attachment(entry)
            except FetcherError as e:
                self.context.report_failed(entry.fullpath, e, kind=_entry_kind(entry))
            except Exception as e:
                self.logger.error(f"Unexpected error importing {entry.fullpath}: {e}", exc_info=True)
                self.context.report_failed(entry.fullpath, e, kind=_entry_kind(entry))
            finally:
                self._processed += 1
                self.context.report_progress(self._processed, total)

        self.walker.walk(archives, import_visitor)

    def _import_note(self, entry: ArchiveEntry) -> None:
        page = self.index.pages.get(get_notion_id(entry.name) or '')
        if page is None or page.source_path != entry.fullpath:
            raise UnresolvedReferenceError(f"Page not indexed: {entry.fullpath}")

        markdown = self.converter.convert_page(page, entry.read_text())
        target = self.index.note_path(page)
        written = self.exporter.write_text(target, markdown, ctime=page.ctime, mtime=page.mtime)
        self.context.report_note_success(entry.fullpath, target, written=written)

    def _import_attachment(self, entry: ArchiveEntry) -> None:
        attachment = self.index.attachments.get(entry.filepath)
        if attachment is None or attachment.source_path != entry.fullpath:
            raise UnresolvedReferenceError(f"Attachment not indexed: {entry.fullpath}")

        target = self.index.attachment_path(attachment)
        self.exporter.write_binary(target, entry.read_bytes())
        self.context.report_attachment_success(entry.fullpath, target)


def _entry_kind(entry: ArchiveEntry) -> str:
    return 'note' if entry.extension == 'html' else 'attachment'


def run_import(config: Dict[str, Any], context: Optional[ImportContext] = None,
               logger: Optional[logging.Logger] = None) -> ImportSummary:
    """Convenience wrapper: build an orchestrator for ``config`` and run it."""
    return MigrationOrchestrator(config, context=context, logger=logger).run()


__all__ = ['MigrationOrchestrator', 'run_import']
