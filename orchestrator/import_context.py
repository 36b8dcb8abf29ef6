"""Import context: progress display, per-entry outcomes and cooperative cancellation."""

import logging
import sys
from typing import Optional, Union

from tqdm import tqdm

from models import EntryResult, EntryStatus, ImportSummary


class ImportContext:
    """
    Collects the outcome of every archive entry during one import run.

    The walker and the orchestrator poll ``is_cancelled()`` between entries;
    ``cancel()`` never interrupts an entry in progress.
    """

    def __init__(self, show_progress: bool = True, logger: Optional[logging.Logger] = None):
        """
        Initialize the import context.

        Args:
            show_progress: Display a tqdm progress bar during the import pass
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger('notion_markdown_migrator.orchestrator.import_context')
        self.show_progress = show_progress
        self.summary = ImportSummary()
        self._cancelled = False
        self._progress_bar: Optional[tqdm] = None

    def __enter__(self) -> 'ImportContext':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def status(self, message: str) -> None:
        self.logger.info(message)

    def report_progress(self, current: int, total: int) -> None:
        """Advance the progress bar to ``current`` of ``total`` entries."""
        if not self._should_show_progress():
            return
        if self._progress_bar is None:
            self._progress_bar = tqdm(total=total, desc="Importing", unit="entry", leave=False)
        elif self._progress_bar.total != total:
            # Indexing grows the total one entry at a time
            self._progress_bar.total = total
        self._progress_bar.n = min(current, total)
        self._progress_bar.refresh()

    def _should_show_progress(self) -> bool:
        """Check if progress bars should be displayed."""
        return self.show_progress and sys.stderr.isatty()

    def report_note_success(self, source_path: str, target_path: Optional[str] = None,
                            written: bool = True) -> EntryResult:
        self.summary.notes_succeeded += 1
        if not written:
            self.summary.notes_unchanged += 1
        self.logger.debug(f"Imported note {source_path} -> {target_path}")
        return EntryResult(source_path, EntryStatus.SUCCESS, 'note', target_path=target_path)

    def report_attachment_success(self, source_path: str, target_path: Optional[str] = None) -> EntryResult:
        self.summary.attachments_succeeded += 1
        self.logger.debug(f"Copied attachment {source_path} -> {target_path}")
        return EntryResult(source_path, EntryStatus.SUCCESS, 'attachment', target_path=target_path)

    def report_skipped(self, source_path: str, reason: Union[str, Exception], kind: str = 'note') -> EntryResult:
        result = EntryResult(source_path, EntryStatus.SKIPPED, kind, reason=str(reason))
        self.summary.skipped.append(result)
        self.logger.info(f"Skipped {kind} {source_path}: {reason}")
        return result

    def report_failed(self, source_path: str, error: Union[str, Exception], kind: str = 'note') -> EntryResult:
        result = EntryResult(source_path, EntryStatus.FAILED, kind, reason=str(error))
        self.summary.failed.append(result)
        self.logger.warning(f"Failed {kind} {source_path}: {error}")
        return result

    def cancel(self) -> None:
        if not self._cancelled:
            self.logger.warning("Import cancelled")
        self._cancelled = True
        self.summary.cancelled = True

    def is_cancelled(self) -> bool:
        return self._cancelled

    def close(self) -> None:
        if self._progress_bar is not None:
            self._progress_bar.close()
            self._progress_bar = None


__all__ = ['ImportContext']
