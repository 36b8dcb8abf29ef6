"""Data models for the Notion HTML export to Markdown migration pipeline."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger('notion_markdown_migrator')


class EntryKind(Enum):
    """Classification of a single archive entry."""
    PAGE = "page"
    ATTACHMENT = "attachment"
    DATABASE_EXPORT = "database_export"
    NESTED_ARCHIVE = "nested_archive"
    SKIP = "skip"
    WRONG_FORMAT = "wrong_format"


class EntryStatus(Enum):
    """Outcome of processing one archive entry."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class HierarchyMode(Enum):
    """Placement of pages in the output tree."""
    NESTED = "nested"
    FLAT = "flat"


@dataclass
class PageInfo:
    """Metadata captured for one exported page during indexing."""

    id: str
    title: str
    parent_ids: List[str] = field(default_factory=list)
    archive_folder: str = ''
    source_path: str = ''
    order: int = 0
    ctime: Optional[datetime] = None
    mtime: Optional[datetime] = None
    icon: Optional[str] = None
    has_children: bool = False

    @property
    def parent_id(self) -> Optional[str]:
        """Identifier of the nearest containing page, if any."""
        return self.parent_ids[-1] if self.parent_ids else None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize page info to dictionary."""
        return {
            'id': self.id,
            'title': self.title,
            'parent_ids': list(self.parent_ids),
            'archive_folder': self.archive_folder,
            'source_path': self.source_path,
            'order': self.order,
            'ctime': self.ctime.isoformat() if self.ctime else None,
            'mtime': self.mtime.isoformat() if self.mtime else None,
            'icon': self.icon,
            'has_children': self.has_children,
        }


@dataclass
class AttachmentInfo:
    """Metadata captured for one non-page file referenced by a page."""

    path: str
    name_with_extension: str
    owner_id: Optional[str] = None
    parent_ids: List[str] = field(default_factory=list)
    target_parent_folder: str = ''
    source_path: str = ''
    order: int = 0

    @property
    def stem(self) -> str:
        name, dot, _ = self.name_with_extension.rpartition('.')
        return name if dot and name else self.name_with_extension

    @property
    def extension(self) -> str:
        name, dot, ext = self.name_with_extension.rpartition('.')
        return ext if dot and name else ''

    def to_dict(self) -> Dict[str, Any]:
        """Serialize attachment info to dictionary."""
        return {
            'path': self.path,
            'name_with_extension': self.name_with_extension,
            'owner_id': self.owner_id,
            'parent_ids': list(self.parent_ids),
            'target_parent_folder': self.target_parent_folder,
            'source_path': self.source_path,
            'order': self.order,
        }


@dataclass
class EntryResult:
    """Per-entry outcome reported by the import context."""

    source_path: str
    status: EntryStatus
    kind: str = 'note'
    reason: Optional[str] = None
    target_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source_path': self.source_path,
            'status': self.status.value,
            'kind': self.kind,
            'reason': self.reason,
            'target_path': self.target_path,
        }


@dataclass
class ImportSummary:
    """Aggregated outcome of one import run."""

    notes_succeeded: int = 0
    attachments_succeeded: int = 0
    notes_unchanged: int = 0
    skipped: List[EntryResult] = field(default_factory=list)
    failed: List[EntryResult] = field(default_factory=list)
    total_entries: int = 0
    duration: float = 0.0
    cancelled: bool = False
    output_directory: Optional[str] = None

    @property
    def succeeded(self) -> int:
        return self.notes_succeeded + self.attachments_succeeded

    @property
    def success_rate(self) -> float:
        """Fraction of processed entries that succeeded."""
        processed = self.succeeded + len(self.failed)
        if processed == 0:
            return 1.0
        return self.succeeded / processed

    def to_dict(self) -> Dict[str, Any]:
        """Serialize summary to dictionary."""
        return {
            'notes_succeeded': self.notes_succeeded,
            'attachments_succeeded': self.attachments_succeeded,
            'notes_unchanged': self.notes_unchanged,
            'skipped_count': len(self.skipped),
            'failed_count': len(self.failed),
            'skipped': [result.to_dict() for result in self.skipped],
            'failed': [result.to_dict() for result in self.failed],
            'total_entries': self.total_entries,
            'duration': self.duration,
            'success_rate': self.success_rate,
            'cancelled': self.cancelled,
            'output_directory': self.output_directory,
        }


__all__ = [
    'EntryKind',
    'EntryStatus',
    'HierarchyMode',
    'PageInfo',
    'AttachmentInfo',
    'EntryResult',
    'ImportSummary',
]
