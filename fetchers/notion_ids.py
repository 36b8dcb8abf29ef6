"""Identifier extraction and entry classification for Notion export file names."""

import re
from typing import Optional

from models import EntryKind

# A trailing " <32 hex>" token, optionally followed by an extension.
NOTION_ID_RE = re.compile(r'^(?P<title>.*?)\s(?P<id>[0-9a-f]{32})(?P<ext>\.[^.\s/]+)?$', re.IGNORECASE)

SUMMARY_FILE_NAME = 'index.html'

# Database CSVs, including the "_all" variant listing every row.
DATABASE_EXPORT_RE = re.compile(r'\s[0-9a-f]{32}(_all)?\.csv$', re.IGNORECASE)


def split_extension(name: str) -> tuple:
    """Split ``name`` into (stem, lowercase extension without dot)."""
    stem, dot, ext = name.rpartition('.')
    if not dot or not stem:
        return name, ''
    return stem, ext.lower()


def get_notion_id(name: str) -> Optional[str]:
    """Return the lowercase identifier embedded in a file or folder name."""
    match = NOTION_ID_RE.match(name.strip())
    if not match:
        return None
    return match.group('id').lower()


def strip_notion_id(name: str) -> str:
    """Remove the identifier token and the extension from a name."""
    match = NOTION_ID_RE.match(name.strip())
    if match:
        return match.group('title').strip()
    return split_extension(name)[0].strip()


def classify_entry(name: str, extension: str, parent: str) -> EntryKind:
    """Classify an archive entry by its name and location.

    Args:
        name: Base name of the entry
        extension: Lowercase extension without the dot
        parent: Folder of the entry inside its archive ('' at the root)

    Returns:
        EntryKind for the entry
    """
    has_id = get_notion_id(name) is not None

    if extension == 'md' and has_id:
        return EntryKind.WRONG_FORMAT
    if extension == 'csv' and DATABASE_EXPORT_RE.search(name):
        return EntryKind.DATABASE_EXPORT
    if name == SUMMARY_FILE_NAME:
        return EntryKind.SKIP
    # Only archives at the root of their parent are export continuations;
    # deeper ones were attached by the user.
    if extension == 'zip' and parent == '':
        return EntryKind.NESTED_ARCHIVE
    if extension == 'html':
        return EntryKind.PAGE
    return EntryKind.ATTACHMENT


def folder_ids(folder: str) -> list:
    """Identifiers of every id-carrying segment of an archive folder path."""
    ids = []
    for segment in folder.split('/'):
        notion_id = get_notion_id(segment) if segment else None
        if notion_id:
            ids.append(notion_id)
    return ids


__all__ = [
    'NOTION_ID_RE',
    'get_notion_id',
    'strip_notion_id',
    'classify_entry',
    'folder_ids',
    'split_extension',
]
