"""First pass: record page and attachment metadata without reading page bodies."""

import logging
from typing import Optional

from fetchers.base_fetcher import DuplicateEntryError, MissingIdentifierError
from fetchers.notion_ids import folder_ids, get_notion_id, strip_notion_id
from models import AttachmentInfo, PageInfo
from .resolver_index import ResolverIndex, sanitize_title


class MetadataIndexer:
    """Populates a ResolverIndex from archive entries."""

    def __init__(self, index: ResolverIndex, logger: Optional[logging.Logger] = None):
        self.index = index
        self.logger = logger or logging.getLogger('notion_markdown_migrator.resolver.metadata_indexer')

    def index_entry(self, entry) -> int:
        """
        Register one archive entry.

        Args:
            entry: ArchiveEntry handed over by the archive walker

        Returns:
            Running total of indexed pages and attachments

        Raises:
            MissingIdentifierError: If a page entry has no identifier
            DuplicateEntryError: If the identifier or path is already indexed
        """
        if entry.extension == 'html':
            self._index_page(entry)
        else:
            self._index_attachment(entry)
        return self.index.total

    def _index_page(self, entry) -> None:
        page_id = get_notion_id(entry.name)
        if not page_id:
            raise MissingIdentifierError(f"No Notion identifier in page name: {entry.filepath}")

        existing = self.index.pages.get(page_id)
        if existing is not None:
            raise DuplicateEntryError(
                f"Identifier {page_id} already used by {existing.source_path}"
            )

        page = PageInfo(
            id=page_id,
            title=sanitize_title(strip_notion_id(entry.name)),
            parent_ids=folder_ids(entry.parent),
            archive_folder=entry.parent,
            source_path=entry.fullpath,
            order=entry.order,
            ctime=entry.creation_time,
            mtime=entry.date_time,
        )
        self.index.pages[page_id] = page
        self.logger.debug(f"Indexed page '{page.title}' ({page_id}) parent={page.parent_id}")

    def _index_attachment(self, entry) -> None:
        parent_ids = folder_ids(entry.parent)
        attachment = AttachmentInfo(
            path=entry.filepath,
            name_with_extension=entry.name,
            owner_id=parent_ids[-1] if parent_ids else None,
            parent_ids=parent_ids,
            source_path=entry.fullpath,
            order=entry.order,
        )
        existing = self.index.attachments.get(entry.filepath)
        if existing is not None:
            raise DuplicateEntryError(f"Attachment {entry.filepath} already read from {existing.source_path}")

        self.index.attachments[entry.filepath] = attachment
        if attachment.owner_id is None:
            self.logger.debug(f"Attachment without owning page: {entry.fullpath}")


__all__ = ['MetadataIndexer']
