"""Rewrites links and image sources of a page to the resolved output layout."""

import logging
import posixpath
from typing import Any, Dict, Optional
from urllib.parse import quote, unquote, urlparse

from bs4 import BeautifulSoup, NavigableString

from fetchers.notion_ids import get_notion_id
from fetchers.zip_fetcher import normalize_archive_path
from models import PageInfo
from resolver.resolver_index import ResolverIndex


class LinkProcessor:
    """
    Resolves page-to-page and page-to-attachment references through the index.

    Runs after the index is final: every relative ``href``/``src`` is mapped
    to the output path of its target, relative to the folder of the note
    being converted. Page links whose target is unknown degrade to their
    plain text.
    """

    def __init__(self, index: ResolverIndex, logger: Optional[logging.Logger] = None):
        self.index = index
        self.logger = logger or logging.getLogger('notion_markdown_migrator.converters.link_processor')

    def process(self, soup: BeautifulSoup, page: PageInfo) -> Dict[str, Any]:
        """
        Rewrite all anchors and images of ``soup`` in place.

        Args:
            soup: Parsed page body
            page: Page being converted

        Returns:
            Link statistics for the page
        """
        stats = {
            'links_internal': 0,
            'links_external': 0,
            'links_attachment': 0,
            'broken_links': [],
        }
        note_folder = self.index.path_for(page)

        for anchor in soup.find_all('a', href=True):
            self._process_anchor(anchor, page, note_folder, stats)

        for image in soup.find_all('img', src=True):
            target = self._attachment_target(image['src'], page, note_folder)
            if target is not None:
                image['src'] = target
                stats['links_attachment'] += 1

        if stats['broken_links']:
            self.logger.debug(
                f"{len(stats['broken_links'])} unresolved links in '{page.title}': {stats['broken_links']}"
            )
        return stats

    def _process_anchor(self, anchor, page: PageInfo, note_folder: str, stats: Dict[str, Any]) -> None:
        href = anchor['href'].strip()
        if not href or href.startswith('#'):
            return
        if _is_external(href):
            stats['links_external'] += 1
            return

        path = unquote(urlparse(href).path)
        if path.lower().endswith('.html'):
            target = self.resolve_page_link(path, note_folder)
            if target is None:
                stats['broken_links'].append(href)
                anchor.replace_with(NavigableString(anchor.get_text()))
            else:
                anchor['href'] = target
                stats['links_internal'] += 1
            return

        target = self._attachment_target(href, page, note_folder)
        if target is not None:
            anchor['href'] = target
            stats['links_attachment'] += 1

    def resolve_page_link(self, path: str, note_folder: str) -> Optional[str]:
        """Relative output link to the page named by ``path``, or None."""
        notion_id = get_notion_id(posixpath.basename(path))
        target = self.index.pages.get(notion_id) if notion_id else None
        if target is None:
            return None
        return relative_link(note_folder, self.index.note_path(target))

    def _attachment_target(self, src: str, page: PageInfo, note_folder: str) -> Optional[str]:
        if _is_external(src) or src.startswith('#') or src.startswith('data:'):
            return None
        path = unquote(urlparse(src).path)
        archive_path = normalize_archive_path(posixpath.join(page.archive_folder, path))
        attachment = self.index.attachments.get(archive_path)
        if attachment is None:
            return None
        return relative_link(note_folder, self.index.attachment_path(attachment))


def relative_link(from_folder: str, target_path: str) -> str:
    """URL-quoted path to ``target_path`` as seen from ``from_folder``."""
    start = from_folder.rstrip('/') or '.'
    relative = posixpath.relpath(target_path, start)
    return quote(relative, safe='/')


def _is_external(url: str) -> bool:
    parsed = urlparse(url)
    return bool(parsed.scheme) or url.startswith('//')


__all__ = ['LinkProcessor', 'relative_link']
