"""Fetchers package for reading Notion HTML export archives."""

from .base_fetcher import (
    ArchiveReadError,
    DuplicateEntryError,
    ExportError,
    FetcherError,
    MissingIdentifierError,
    UnresolvedReferenceError,
    WrongExportFormatError,
)
from .notion_ids import classify_entry, folder_ids, get_notion_id, strip_notion_id
from .zip_fetcher import ArchiveEntry, ArchiveWalker, list_archives, normalize_archive_path

__all__ = [
    'FetcherError',
    'MissingIdentifierError',
    'UnresolvedReferenceError',
    'WrongExportFormatError',
    'ArchiveReadError',
    'DuplicateEntryError',
    'ExportError',
    'get_notion_id',
    'strip_notion_id',
    'classify_entry',
    'folder_ids',
    'ArchiveEntry',
    'ArchiveWalker',
    'list_archives',
    'normalize_archive_path',
]
