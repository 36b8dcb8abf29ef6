"""HTML cleaner that rewrites Notion export blocks into plain, convertible markup."""

import logging
from typing import Optional

from bs4 import BeautifulSoup, NavigableString, Tag

logger = logging.getLogger('notion_markdown_migrator.converters.html_cleaner')

TEX_ANNOTATION = {'encoding': 'application/x-tex'}
LIST_TAGS = ('ul', 'ol')


class HtmlCleaner:
    """
    Normalises the block vocabulary of a Notion page body.

    Callouts and toggles become ``blockquote`` elements carrying
    ``data-callout`` attributes, equations become placeholders carrying their
    TeX source, to-do items carry ``data-task``, and the one-item lists
    Notion emits per bullet are merged back together.
    """

    def __init__(self, logger: logging.Logger = None):
        """Initialize HTML cleaner with optional logger."""
        self.logger = logger or logging.getLogger('notion_markdown_migrator.converters.html_cleaner')

    def clean(self, root: Tag, remove_table_of_contents: bool = True) -> Tag:
        """
        Clean a parsed page body in place.

        Args:
            root: Page body element
            remove_table_of_contents: Drop TOC blocks instead of flattening them

        Returns:
            The same element, cleaned
        """
        self.logger.debug("Cleaning Notion HTML")

        for element in root.find_all(['script', 'style', 'header']):
            element.decompose()

        self._process_table_of_contents(root, remove_table_of_contents)
        self._process_equations(root)
        self._process_toggles(root)
        self._process_callouts(root)
        self._process_todos(root)
        self._process_bookmarks(root)
        self._process_images(root)
        self._process_highlights(root)
        self._remove_decorations(root)
        self._unwrap_layout(root)
        self._merge_adjacent_lists(root)

        return root

    def _new_tag(self, element: Tag, name: str, **attrs) -> Tag:
        return BeautifulSoup('', 'lxml').new_tag(name, attrs=attrs)

    def _process_table_of_contents(self, root: Tag, remove: bool) -> None:
        for nav in root.find_all('nav', class_='table_of_contents'):
            if remove:
                nav.decompose()
                continue

            items = self._new_tag(nav, 'ul')
            for link in nav.find_all('a'):
                text = link.get_text(' ', strip=True)
                if not text:
                    continue
                item = self._new_tag(nav, 'li')
                anchor = self._new_tag(nav, 'a', href=link.get('href', ''))
                anchor.string = text
                item.append(anchor)
                items.append(item)
            nav.replace_with(items)

    def _process_equations(self, root: Tag) -> None:
        for figure in root.find_all('figure', class_='equation'):
            figure.replace_with(self._new_tag(figure, 'div', **{
                'class': 'equation-block',
                'data-tex': self._tex_source(figure),
            }))

        for token in root.find_all('span', class_='notion-text-equation-token'):
            token.replace_with(self._new_tag(token, 'span', **{
                'class': 'equation-inline',
                'data-tex': self._tex_source(token),
            }))

    @staticmethod
    def _tex_source(element: Tag) -> str:
        annotation = element.find('annotation', attrs=TEX_ANNOTATION)
        if annotation is not None:
            return annotation.get_text().strip()
        return element.get_text(' ', strip=True)

    def _process_toggles(self, root: Tag) -> None:
        # Innermost first so nested toggles are already converted.
        for details in reversed(root.find_all('details')):
            summary = details.find('summary')
            title = summary.get_text(' ', strip=True) if summary else ''
            if summary is not None:
                summary.decompose()

            quote = self._new_tag(details, 'blockquote', **{
                'data-callout': 'note',
                'data-fold': '-',
                'data-title': title,
            })
            for child in list(details.children):
                quote.append(child.extract())

            container = details.parent
            if (container is not None and container.name == 'li'
                    and container.parent is not None and 'toggle' in container.parent.get('class', [])):
                container.parent.replace_with(quote)
            else:
                details.replace_with(quote)

    def _process_callouts(self, root: Tag) -> None:
        for figure in reversed(root.find_all('figure', class_='callout')):
            icon = figure.find(class_='icon')
            glyph = ''
            if icon is not None:
                glyph = icon.get('alt', '') if icon.name == 'img' else icon.get_text(strip=True)
                icon_holder = icon.parent if icon.parent is not figure else icon
                icon_holder.decompose()

            quote = self._new_tag(figure, 'blockquote', **{
                'data-callout': 'note',
                'data-title': glyph,
            })
            for child in list(figure.children):
                quote.append(child.extract())
            figure.replace_with(quote)

    def _process_todos(self, root: Tag) -> None:
        for todo_list in root.find_all('ul', class_='to-do-list'):
            for item in todo_list.find_all('li', recursive=False):
                checked = bool(item.find(class_=['checkbox-on', 'to-do-children-checked']))
                for checkbox in item.find_all(class_='checkbox'):
                    checkbox.decompose()
                item['data-task'] = 'x' if checked else ' '

    def _process_bookmarks(self, root: Tag) -> None:
        for figure in root.find_all('figure', class_='bookmark'):
            link = figure.find('a', href=True)
            if link is None:
                figure.decompose()
                continue
            title = figure.find(class_='bookmark-title')
            text = title.get_text(' ', strip=True) if title else ''

            paragraph = self._new_tag(figure, 'p')
            anchor = self._new_tag(figure, 'a', href=link['href'])
            anchor.string = text or link['href']
            paragraph.append(anchor)
            figure.replace_with(paragraph)

    def _process_images(self, root: Tag) -> None:
        for figure in root.find_all('figure', class_='image'):
            image = figure.find('img')
            caption = figure.find('figcaption')
            if image is None:
                continue
            if caption is not None:
                if not image.get('alt'):
                    image['alt'] = caption.get_text(' ', strip=True)
                caption.decompose()
            wrapper = image.parent
            if wrapper is not None and wrapper.name == 'a':
                wrapper.unwrap()

    def _process_highlights(self, root: Tag) -> None:
        for element in root.find_all(['mark', 'span']):
            classes = element.get('class', [])
            if not any(cls.startswith('highlight-') for cls in classes):
                continue
            if any(cls.endswith('_background') for cls in classes):
                element.name = 'mark'
                element.attrs = {}
            else:
                # Coloured text has no Markdown equivalent.
                element.unwrap()

    def _remove_decorations(self, root: Tag) -> None:
        for element in root.find_all(['svg']):
            element.decompose()
        for element in root.find_all('span', class_='icon'):
            if element.find_parent(class_='link-to-page') or 'property-icon' in element.get('class', []):
                element.decompose()

    def _unwrap_layout(self, root: Tag) -> None:
        for element in root.find_all('div', class_=['column-list', 'column', 'indented', 'collection-content']):
            element.unwrap()
        for title in root.find_all(class_='collection-title'):
            title.name = 'h3'
            title.attrs = {}
        for element in root.find_all('figure', class_='link-to-page'):
            element.name = 'p'
            element.attrs = {}

    def _merge_adjacent_lists(self, root: Tag) -> None:
        for current in root.find_all(LIST_TAGS):
            if current.parent is None:
                continue
            sibling = self._next_tag(current)
            while sibling is not None and self._same_list(current, sibling):
                for item in sibling.find_all('li', recursive=False):
                    current.append(item.extract())
                following = self._next_tag(sibling)
                sibling.decompose()
                sibling = following

    @staticmethod
    def _next_tag(element: Tag) -> Optional[Tag]:
        sibling = element.next_sibling
        while isinstance(sibling, NavigableString) and not sibling.strip():
            sibling = sibling.next_sibling
        return sibling if isinstance(sibling, Tag) else None

    @staticmethod
    def _same_list(first: Tag, second: Tag) -> bool:
        if second.name != first.name:
            return False
        first_kind = set(first.get('class', [])) & {'bulleted-list', 'numbered-list', 'to-do-list', 'toggle'}
        second_kind = set(second.get('class', [])) & {'bulleted-list', 'numbered-list', 'to-do-list', 'toggle'}
        return first_kind == second_kind


__all__ = ['HtmlCleaner']
