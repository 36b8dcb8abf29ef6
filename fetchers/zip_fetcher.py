"""Archive walker that enumerates Notion export zips, including continuation parts."""

import io
import logging
import posixpath
import struct
import zipfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Set, Union

from models import EntryKind
from .base_fetcher import ArchiveReadError, WrongExportFormatError
from .notion_ids import classify_entry, split_extension

logger = logging.getLogger('notion_markdown_migrator.fetchers.zip_fetcher')


@dataclass
class ArchiveEntry:
    """One file inside an open archive.

    Valid only while the visitor that received it is running; the backing
    archive is closed afterwards.
    """

    archive: zipfile.ZipFile
    info: zipfile.ZipInfo
    archive_path: str
    order: int

    @property
    def filepath(self) -> str:
        """Normalised path inside the archive."""
        return normalize_archive_path(self.info.filename)

    @property
    def name(self) -> str:
        return posixpath.basename(self.filepath)

    @property
    def basename(self) -> str:
        return split_extension(self.name)[0]

    @property
    def extension(self) -> str:
        return split_extension(self.name)[1]

    @property
    def parent(self) -> str:
        return posixpath.dirname(self.filepath)

    @property
    def fullpath(self) -> str:
        return f"{self.archive_path}/{self.filepath}"

    @property
    def size(self) -> int:
        return self.info.file_size

    @property
    def date_time(self) -> Optional[datetime]:
        try:
            return datetime(*self.info.date_time)
        except ValueError:
            return None

    @property
    def creation_time(self) -> Optional[datetime]:
        """Creation time from the extended timestamp extra field, when stored."""
        extra = self.info.extra
        offset = 0
        while offset + 4 <= len(extra):
            header_id, length = struct.unpack_from('<HH', extra, offset)
            data = extra[offset + 4:offset + 4 + length]
            offset += 4 + length
            if header_id != EXTENDED_TIMESTAMP_ID or not data:
                continue
            # Flag bits 0-2 announce mtime, atime and ctime, stored in that order
            flags, position = data[0], 1
            for bit in range(3):
                if not flags & (1 << bit):
                    continue
                if position + 4 > len(data):
                    return None
                if bit == 2:
                    return datetime.fromtimestamp(struct.unpack_from('<I', data, position)[0])
                position += 4
        return None

    def read_bytes(self) -> bytes:
        return self.archive.read(self.info)

    def read_text(self, encoding: str = 'utf-8') -> str:
        return self.read_bytes().decode(encoding, errors='replace')


EXTENDED_TIMESTAMP_ID = 0x5455

Visitor = Callable[[ArchiveEntry], None]

# Encrypted members raise RuntimeError, unknown compression NotImplementedError.
ARCHIVE_ERRORS = (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, RuntimeError, NotImplementedError)


def normalize_archive_path(path: str) -> str:
    """Normalise separators and dot segments of a path inside an archive."""
    path = path.replace('\\', '/')
    normalized = posixpath.normpath(path)
    if normalized in ('.', '/'):
        return ''
    return normalized.lstrip('/')


class ArchiveWalker:
    """
    Visits every importable entry of one or more export archives.

    Rules, applied per entry in order:
    1. Markdown pages carrying an identifier abort the whole walk
    2. CSV database exports and the generated index.html are skipped
    3. Zips at the root of their parent archive are walked recursively
    4. Everything else is handed to the visitor
    """

    def __init__(self, context, logger: Optional[logging.Logger] = None):
        """
        Initialize the walker.

        Args:
            context: ImportContext providing cancellation and failure reporting
            logger: Optional logger instance
        """
        self.context = context
        self.logger = logger or logging.getLogger('notion_markdown_migrator.fetchers.zip_fetcher')
        self._order = 0
        # Not reset by walk(): each failed archive is reported once per walker
        self.failed_archives: Set[str] = set()

    def walk(self, archives: Sequence[Union[str, Path]], visitor: Visitor) -> None:
        """Walk all top-level archives, reporting per-archive failures."""
        self._order = 0
        for archive_path in archives:
            if self.context.is_cancelled():
                return
            archive_path = str(archive_path)
            try:
                self._walk_file(archive_path, visitor)
            except WrongExportFormatError:
                raise
            except ArchiveReadError as e:
                self._report_failure(archive_path, e)

    def _walk_file(self, archive_path: str, visitor: Visitor) -> None:
        self.logger.info(f"Reading archive {archive_path}")
        try:
            with zipfile.ZipFile(archive_path) as archive:
                self._walk_archive(archive, archive_path, visitor)
        except ARCHIVE_ERRORS as e:
            raise ArchiveReadError(archive_path, e) from e

    def _walk_archive(self, archive: zipfile.ZipFile, archive_path: str, visitor: Visitor) -> None:
        for info in archive.infolist():
            if self.context.is_cancelled():
                return
            if info.is_dir():
                continue

            entry = ArchiveEntry(archive=archive, info=info, archive_path=archive_path, order=self._order)
            self._order += 1
            kind = classify_entry(entry.name, entry.extension, entry.parent)

            if kind == EntryKind.WRONG_FORMAT:
                self.context.cancel()
                raise WrongExportFormatError(entry.fullpath)

            if kind in (EntryKind.DATABASE_EXPORT, EntryKind.SKIP):
                self.logger.debug(f"Skipping {kind.value} entry {entry.fullpath}")
                continue

            if kind == EntryKind.NESTED_ARCHIVE:
                self._walk_nested(entry, visitor)
                continue

            visitor(entry)

    def _walk_nested(self, entry: ArchiveEntry, visitor: Visitor) -> None:
        self.logger.info(f"Reading nested archive {entry.fullpath}")
        try:
            with zipfile.ZipFile(io.BytesIO(entry.read_bytes())) as nested:
                self._walk_archive(nested, entry.fullpath, visitor)
        except WrongExportFormatError:
            raise
        except ARCHIVE_ERRORS as e:
            self._report_failure(entry.fullpath, ArchiveReadError(entry.fullpath, e))

    def _report_failure(self, archive_path: str, error: ArchiveReadError) -> None:
        if archive_path in self.failed_archives:
            self.logger.debug(f"Archive already reported as failed: {archive_path}")
            return
        self.failed_archives.add(archive_path)
        self.logger.error(str(error))
        self.context.report_failed(archive_path, error, kind='archive')


def list_archives(paths: List[Union[str, Path]]) -> List[str]:
    """Expand directories into the zip files they contain, sorted by name."""
    archives = []
    for path in paths:
        path = Path(path)
        if path.is_dir():
            archives.extend(str(p) for p in sorted(path.glob('*.zip')))
        else:
            archives.append(str(path))
    return archives


__all__ = ['ArchiveEntry', 'ArchiveWalker', 'normalize_archive_path', 'list_archives']
