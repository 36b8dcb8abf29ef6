"""Writes converted notes and copied attachments into the output directory."""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from fetchers.base_fetcher import ExportError


class MarkdownExporter:
    """
    Output side of the import: folders, Markdown files and binary files.

    All paths handed to this class are relative to the output directory and
    use forward slashes. Files whose content is already byte-identical are
    left untouched so repeated imports only rewrite what changed.
    """

    def __init__(self, output_dir: Union[str, Path], overwrite_existing: bool = True,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the markdown exporter.

        Args:
            output_dir: Root of the output tree, created on demand
            overwrite_existing: Replace existing files whose content differs
            logger: Logger instance
        """
        self.output_directory = Path(output_dir)
        self.overwrite_existing = overwrite_existing
        self.logger = logger or logging.getLogger('notion_markdown_migrator.exporters.markdown_exporter')

        self.stats = {
            'folders_created': 0,
            'notes_written': 0,
            'notes_unchanged': 0,
            'attachments_written': 0,
            'attachments_unchanged': 0,
            'bytes_written': 0,
        }

    def resolve(self, relative_path: str) -> Path:
        """Absolute output path of ``relative_path``."""
        return self.output_directory / relative_path

    def create_folder(self, relative_path: str) -> Path:
        """Create a folder (and its parents) below the output directory."""
        folder = self.resolve(relative_path)
        if folder.is_dir():
            return folder
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except PermissionError as e:
            self.logger.error(f"Permission denied creating directory {folder}: {e}")
            raise ExportError(f"Permission denied creating {relative_path or '.'}: {e}") from e
        except OSError as e:
            self.logger.error(f"OS error creating directory {folder}: {e}")
            raise ExportError(f"Cannot create {relative_path or '.'}: {e}") from e
        self.stats['folders_created'] += 1
        return folder

    def write_text(self, relative_path: str, text: str,
                   ctime: Optional[datetime] = None, mtime: Optional[datetime] = None) -> bool:
        """
        Write a Markdown note and apply its timestamp.

        Args:
            relative_path: Note path below the output directory
            text: Markdown content
            ctime: Creation time, used when ``mtime`` is missing
            mtime: Modification time applied with ``os.utime``

        Returns:
            True if the file was written, False if it was left unchanged
        """
        written = self._write(relative_path, text.encode('utf-8'), 'notes')
        self._apply_timestamp(relative_path, mtime or ctime)
        return written

    def write_binary(self, relative_path: str, data: bytes) -> bool:
        """Write an attachment; returns False when the file was left unchanged."""
        return self._write(relative_path, data, 'attachments')

    def _write(self, relative_path: str, data: bytes, kind: str) -> bool:
        target = self.resolve(relative_path)
        try:
            if target.exists():
                if not self.overwrite_existing or target.read_bytes() == data:
                    self.logger.debug(f"Output unchanged, skipping write: {relative_path}")
                    self.stats[f'{kind}_unchanged'] += 1
                    return False

            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except PermissionError as e:
            self.logger.error(f"Permission denied writing to {target}: {e}")
            raise ExportError(f"Permission denied writing {relative_path}: {e}") from e
        except OSError as e:
            self.logger.error(f"IO error writing to {target}: {e}")
            raise ExportError(f"Cannot write {relative_path}: {e}") from e

        self.stats[f'{kind}_written'] += 1
        self.stats['bytes_written'] += len(data)
        self.logger.debug(f"Successfully wrote {len(data)} bytes to {target}")
        return True

    def _apply_timestamp(self, relative_path: str, timestamp: Optional[datetime]) -> None:
        if timestamp is None:
            return
        seconds = timestamp.timestamp()
        try:
            os.utime(self.resolve(relative_path), (seconds, seconds))
        except OSError as e:
            raise ExportError(f"Cannot set timestamp of {relative_path}: {e}") from e

    def get_stats(self) -> Dict[str, Any]:
        """Get export statistics."""
        return self.stats.copy()

    def log_export_summary(self) -> None:
        """Log final export statistics."""
        self.logger.info("=" * 60)
        self.logger.info("MARKDOWN EXPORT SUMMARY")
        self.logger.info("=" * 60)
        self.logger.info(f"Folders created: {self.stats['folders_created']}")
        self.logger.info(f"Notes written: {self.stats['notes_written']}")
        if self.stats['notes_unchanged'] > 0:
            self.logger.info(f"Notes unchanged: {self.stats['notes_unchanged']}")
        self.logger.info(f"Attachments written: {self.stats['attachments_written']}")
        if self.stats['attachments_unchanged'] > 0:
            self.logger.info(f"Attachments unchanged: {self.stats['attachments_unchanged']}")
        self.logger.info(f"Total size written: {format_bytes(self.stats['bytes_written'])}")
        self.logger.info(f"Output directory: {self.output_directory}")
        self.logger.info("=" * 60)


def format_bytes(bytes_val: float) -> str:
    """Format bytes to human-readable string."""
    if bytes_val == 0:
        return "0 B"

    for unit in ['B', 'KB', 'MB', 'GB']:
        if bytes_val < 1024.0:
            return f"{bytes_val:.1f} {unit}"
        bytes_val /= 1024.0

    return f"{bytes_val:.1f} TB"


__all__ = ['MarkdownExporter', 'format_bytes']
