"""Second stage over the index: folder notes, unique names and attachment targets."""

import logging
import posixpath
from collections import defaultdict
from typing import Dict, Optional, Set

from models import AttachmentInfo, HierarchyMode, PageInfo
from .resolver_index import ResolverIndex, folder_name


class DuplicateResolver:
    """
    Makes every output path of an indexed import unique.

    Steps, in order:
    1. Parent pages are moved into their own folder (optional)
    2. Page titles are de-duplicated per output folder with " 2", " 3", ...
    3. Attachments get a target folder and a de-duplicated file name

    Collisions are broken by depth then archive order, so identical input
    always yields identical paths.
    """

    def __init__(
        self,
        index: ResolverIndex,
        parent_pages_in_subfolders: bool = True,
        logger: Optional[logging.Logger] = None
    ):
        self.index = index
        self.parent_pages_in_subfolders = parent_pages_in_subfolders
        self.logger = logger or logging.getLogger('notion_markdown_migrator.resolver.duplicate_resolver')
        # output folder -> casefolded names already taken in it
        self._reserved: Dict[str, Set[str]] = defaultdict(set)
        self.renamed = 0

    def resolve(self) -> None:
        """Run all resolution steps; must finish before anything is written."""
        self._reserved.clear()
        self.renamed = 0

        if self.parent_pages_in_subfolders and self.index.hierarchy_mode == HierarchyMode.NESTED:
            self._move_parents_to_subfolders()

        self._dedupe_pages()
        self._place_attachments()

        self.logger.info(
            f"Resolved {len(self.index.pages)} pages and {len(self.index.attachments)} attachments "
            f"({self.renamed} renamed)"
        )

    def _move_parents_to_subfolders(self) -> None:
        for page in self.index.pages.values():
            parent = self._resolved_parent(page)
            if parent is not None:
                parent.has_children = True

        for attachment in self.index.attachments.values():
            owner = self.index.owner_of(attachment)
            if owner is not None:
                owner.has_children = True

    def _resolved_parent(self, page: PageInfo) -> Optional[PageInfo]:
        chain = self.index.ancestors(page)
        return chain[-1] if chain else None

    def _dedupe_pages(self) -> None:
        pages = sorted(
            self.index.pages.values(),
            key=lambda page: (self.index.depth(page), page.order)
        )

        for page in pages:
            original = page.title
            if page.has_children:
                # A folder note also claims its folder name one level up.
                outer = self.index.container_path(page)
                title = self._free_page_title(outer, original)
                self._reserve_page(outer, title)
                page.title = title
                self._reserve_page(self.index.path_for(page), title)
            else:
                folder = self.index.path_for(page)
                title = self._free_page_title(folder, original)
                self._reserve_page(folder, title)
                page.title = title

            if page.title != original:
                self.renamed += 1
                self.logger.debug(f"Renamed page '{original}' to '{page.title}' ({page.id})")

    def _free_page_title(self, folder: str, title: str) -> str:
        candidate = title
        counter = 2
        while self._page_taken(folder, candidate):
            candidate = f"{title} {counter}"
            counter += 1
        return candidate

    def _page_taken(self, folder: str, title: str) -> bool:
        taken = self._reserved[folder]
        return any(key in taken for key in self._page_keys(title))

    def _reserve_page(self, folder: str, title: str) -> None:
        self._reserved[folder].update(self._page_keys(title))

    @staticmethod
    def _page_keys(title: str) -> Set[str]:
        # The note file, and the folder that may share its name.
        return {f"{title}.md".casefold(), folder_name(title).casefold()}

    def _place_attachments(self) -> None:
        attachments = sorted(self.index.attachments.values(), key=lambda att: att.order)

        for attachment in attachments:
            folder = self._attachment_folder(attachment)
            attachment.target_parent_folder = folder

            original = attachment.name_with_extension
            name = original
            counter = 2
            while name.casefold() in self._reserved[folder]:
                name = self._numbered_name(attachment, counter)
                counter += 1

            self._reserved[folder].add(name.casefold())
            attachment.name_with_extension = name
            if name != original:
                self.renamed += 1
                self.logger.debug(f"Renamed attachment '{original}' to '{name}' in '{folder}'")

    @staticmethod
    def _numbered_name(attachment: AttachmentInfo, counter: int) -> str:
        if attachment.extension:
            return f"{attachment.stem} {counter}.{attachment.extension}"
        return f"{attachment.stem} {counter}"

    def _attachment_folder(self, attachment: AttachmentInfo) -> str:
        """
        Output folder for an attachment.

        '' or '/' puts it at the output root; './' or './sub' puts it
        relative to the owning note's folder; anything else is a folder
        relative to the output root.
        """
        setting = (self.index.attachment_folder or '').strip()

        if setting in ('', '/'):
            return ''

        if setting == '.' or setting.startswith('./'):
            owner = self.index.owner_of(attachment)
            base = self.index.path_for(owner) if owner is not None else ''
            return _join_folder(base, setting[2:] if setting.startswith('./') else '')

        return _join_folder('', setting)


def _join_folder(base: str, sub: str) -> str:
    sub = sub.strip('/')
    if not sub:
        return base
    normalized = posixpath.normpath(posixpath.join(base or '.', sub))
    if normalized in ('.', '') or normalized.startswith('..'):
        return ''
    return normalized + '/'


__all__ = ['DuplicateResolver']
