"""Shared identifier/path index and output path policy for one import run."""

import logging
import re
from typing import Dict, List, Optional

from models import AttachmentInfo, HierarchyMode, PageInfo

INVALID_FILENAME_CHARS = re.compile(r'[*"\\/<>:|?#^\[\]]')
TRAILING_DOTS_AND_SPACES = re.compile(r'[. ]+$')

DEFAULT_ATTACHMENT_FOLDER = './'


def sanitize_title(title: str) -> str:
    """
    Make a page title safe to use as a file or folder name.

    Args:
        title: Raw title taken from the export file name

    Returns:
        Sanitized title, never empty
    """
    sanitized = INVALID_FILENAME_CHARS.sub(' ', title or '')
    sanitized = re.sub(r'\s+', ' ', sanitized).strip()
    return sanitized or 'Untitled'


def folder_name(title: str) -> str:
    """Folder form of a title; most file systems drop trailing dots and spaces."""
    return TRAILING_DOTS_AND_SPACES.sub('', title) or 'Untitled'


class ResolverIndex:
    """
    Identifier → page and archive path → attachment maps for one import.

    Mutated during indexing and duplicate resolution only; read-only while
    pages are converted.
    """

    def __init__(
        self,
        attachment_folder: str = DEFAULT_ATTACHMENT_FOLDER,
        single_line_breaks: bool = False,
        hierarchy_mode: HierarchyMode = HierarchyMode.NESTED,
        logger: Optional[logging.Logger] = None
    ):
        self.pages: Dict[str, PageInfo] = {}
        self.attachments: Dict[str, AttachmentInfo] = {}
        self.attachment_folder = attachment_folder if attachment_folder is not None else DEFAULT_ATTACHMENT_FOLDER
        self.single_line_breaks = single_line_breaks
        self.hierarchy_mode = hierarchy_mode
        # Entries already reported as skipped while indexing
        self.skipped_paths = set()
        self._cyclic = set()
        self.logger = logger or logging.getLogger('notion_markdown_migrator.resolver')

    @property
    def total(self) -> int:
        return len(self.pages) + len(self.attachments)

    def ancestors(self, page: PageInfo) -> Optional[List[PageInfo]]:
        """
        Resolved ancestors of a page, outermost first.

        The walk stops at the first identifier missing from the index. Returns
        None when the chain loops back on itself.
        """
        chain: List[PageInfo] = []
        visited = {page.id}
        current = page

        while current.parent_id:
            parent_id = current.parent_id
            if parent_id in visited:
                if page.id not in self._cyclic:
                    self._cyclic.add(page.id)
                    self.logger.warning(
                        f"Cyclic ancestry for page '{page.title}' ({page.id}); placing it at the top level"
                    )
                return None
            parent = self.pages.get(parent_id)
            if parent is None:
                break
            visited.add(parent_id)
            chain.insert(0, parent)
            current = parent

        return chain

    def depth(self, page: PageInfo) -> int:
        chain = self.ancestors(page)
        return len(chain) if chain else 0

    def path_for(self, page: PageInfo) -> str:
        """
        Output-relative folder of a page's note.

        Returns:
            '' for the output root, otherwise a path ending in '/'
        """
        if self.hierarchy_mode == HierarchyMode.FLAT:
            return ''

        chain = self.ancestors(page)
        if chain is None:
            return ''

        path = self.container_path(page, chain)
        if page.has_children:
            path += f"{folder_name(page.title)}/"
        return path

    def container_path(self, page: PageInfo, chain: Optional[List[PageInfo]] = None) -> str:
        """Folder made of the page's ancestors only, ignoring its own folder."""
        if self.hierarchy_mode == HierarchyMode.FLAT:
            return ''
        if chain is None:
            chain = self.ancestors(page)
        if not chain:
            return ''
        return ''.join(f"{folder_name(ancestor.title)}/" for ancestor in chain)

    def note_path(self, page: PageInfo) -> str:
        return f"{self.path_for(page)}{page.title}.md"

    def attachment_path(self, attachment: AttachmentInfo) -> str:
        return f"{attachment.target_parent_folder}{attachment.name_with_extension}"

    def owner_of(self, attachment: AttachmentInfo) -> Optional[PageInfo]:
        """Nearest indexed page whose folder contains the attachment."""
        for owner_id in reversed(attachment.parent_ids):
            owner = self.pages.get(owner_id)
            if owner is not None:
                return owner
        return None

    def folder_paths(self) -> List[str]:
        """Every output folder the import needs, parents before children."""
        folders = {''}
        for page in self.pages.values():
            folders.add(self.path_for(page))
        for attachment in self.attachments.values():
            folders.add(attachment.target_parent_folder)
        return sorted(folders, key=lambda folder: (folder.count('/'), folder))


__all__ = [
    'ResolverIndex',
    'sanitize_title',
    'folder_name',
    'DEFAULT_ATTACHMENT_FOLDER',
]
