"""Markdown converter for Notion HTML pages."""

import logging
import re
from typing import Any, Dict, Optional

from bs4 import BeautifulSoup, Tag
from markdownify import MarkdownConverter as MarkdownifyConverter
from markdownify import abstract_inline_conversion

from models import PageInfo
from resolver.resolver_index import ResolverIndex

from .html_cleaner import HtmlCleaner
from .language_detector import DEFAULT_LANGUAGES, DEFAULT_MINIMUM_LENGTH, LanguageDetector
from .link_processor import LinkProcessor
from .property_parser import PropertyParser, extract_icon, generate_frontmatter

logger = logging.getLogger('notion_markdown_migrator.converters.markdown_converter')

FENCED_CODE_RE = re.compile(r'(^```[\s\S]*?^```[ \t]*$)', re.MULTILINE)
BLOCK_SEPARATOR_RE = re.compile(r'\n\n(?!>)')
PLAIN_LANGUAGE_CLASSES = {'plain', 'plaintext', 'plain-text', 'text'}


class MarkdownConverter(MarkdownifyConverter):
    """
    Converts one exported Notion page to Markdown.

    This class extends markdownify.MarkdownConverter to provide:
    - Obsidian-style callouts for Notion callouts and toggles
    - Task list items, highlights and TeX equations
    - Code fences labelled from the export or by language detection
    - Links rewritten through the resolver index
    - YAML front matter for page properties and icon
    """

    def __init__(self, index: ResolverIndex, config: Dict[str, Any] = None,
                 logger: logging.Logger = None, **kwargs):
        """Initialize markdown converter with index, importer settings and logger."""
        markdownify_options = {
            'heading_style': 'ATX',
            'bullets': '-',
            'escape_asterisks': False,
            'escape_underscores': False,
            'wrap': False,
            'table_infer_header': True,
        }
        markdownify_options.update(kwargs)
        super().__init__(**markdownify_options)

        self.logger = logger or logging.getLogger('notion_markdown_migrator.converters.markdown_converter')
        self.config = config or {}
        self.index = index

        self.remove_table_of_contents = self.config.get('remove_table_of_contents', True)
        self.minimum_length = self.config.get('language_detection_minimum_length', DEFAULT_MINIMUM_LENGTH)
        self.icon_property_name = self.config.get('icon_property_name', 'sticker')

        self.html_cleaner = HtmlCleaner(self.logger)
        self.property_parser = PropertyParser(self.logger)
        self.link_processor = LinkProcessor(index, self.logger)
        self.language_detector = LanguageDetector(
            self.config.get('auto_detected_languages', DEFAULT_LANGUAGES), self.logger
        )
        self.last_link_stats: Optional[Dict[str, Any]] = None

    def convert_page(self, page: PageInfo, html_content: str) -> str:
        """
        Convert the HTML of ``page`` to Markdown text.

        Args:
            page: Indexed page being converted
            html_content: Exported HTML document

        Returns:
            Markdown, including front matter when the page has properties or an icon
        """
        self.logger.debug(f"Converting page '{page.title}' ({page.id})")

        soup = self._parse_html(html_content)
        icon = extract_icon(soup)
        page.icon = icon
        properties = self.property_parser.extract(soup)
        if icon and self.icon_property_name:
            properties[self.icon_property_name] = icon

        body = self._select_body(soup)
        self.html_cleaner.clean(body, self.remove_table_of_contents)
        self.last_link_stats = self.link_processor.process(body, page)

        markdown = self._post_process_markdown(self.convert_soup(body))
        frontmatter = generate_frontmatter(properties)
        if frontmatter and markdown:
            return f"{frontmatter}\n{markdown}"
        return frontmatter or markdown

    def _parse_html(self, html_content: str) -> BeautifulSoup:
        """Parse HTML content with BeautifulSoup."""
        return BeautifulSoup(html_content, 'lxml')

    @staticmethod
    def _select_body(soup: BeautifulSoup) -> Tag:
        body = soup.find('div', class_='page-body')
        if body is None:
            body = soup.body or soup
        return body

    def _post_process_markdown(self, markdown: str) -> str:
        """Collapse blank lines, apply line-break policy and terminate with one newline."""
        markdown = re.sub(r'\n{3,}', '\n\n', markdown).strip()
        if not markdown:
            return ''
        if self.index.single_line_breaks:
            markdown = self._collapse_block_separators(markdown)
        return markdown + '\n'

    @staticmethod
    def _collapse_block_separators(markdown: str) -> str:
        parts = FENCED_CODE_RE.split(markdown)
        # Odd indices are fenced code blocks.
        for i in range(0, len(parts), 2):
            parts[i] = BLOCK_SEPARATOR_RE.sub('\n', parts[i])
        return ''.join(parts)

    def _code_language(self, el: Tag, code: str) -> str:
        code_el = el.find('code')
        for element in (code_el, el):
            if element is None:
                continue
            for cls in element.get('class', []):
                if cls.startswith('language-'):
                    language = cls[len('language-'):].lower()
                    return '' if language in PLAIN_LANGUAGE_CLASSES else language

        if len(code) > self.minimum_length:
            return self.language_detector.detect(code) or ''
        return ''

    def convert_blockquote(self, el, text, parent_tags=None, **kwargs):
        """Render callouts as ``> [!type]`` blocks, other quotes as usual."""
        callout = el.get('data-callout')
        if not callout:
            return super().convert_blockquote(el, text, parent_tags)
        if '_inline' in (parent_tags or ()):
            return ' ' + text.strip() + ' '

        header = f"[!{callout}]{el.get('data-fold', '')}"
        title = el.get('data-title', '')
        if title:
            header += f" {title}"

        lines = [f"> {header}"]
        body = text.strip('\n')
        if body:
            lines.extend(f"> {line}" if line.strip() else '>' for line in body.split('\n'))
        return '\n\n' + '\n'.join(lines) + '\n\n'

    def convert_li(self, el, text, parent_tags=None, **kwargs):
        task = el.get('data-task')
        if task is not None:
            text = f"[{task}] " + (text or '').strip()
        return super().convert_li(el, text, parent_tags)

    def convert_pre(self, el, text, parent_tags=None, **kwargs):
        """Fenced code block with an explicit or detected language."""
        if not text:
            return ''
        code = el.get_text()
        language = self._code_language(el, code)

        body = code.strip('\n')
        fence = '```'
        while fence in body:
            fence += '`'
        return f"\n\n{fence}{language}\n{body}\n{fence}\n\n"

    convert_mark = abstract_inline_conversion(lambda self: '==')

    def convert_div(self, el, text, parent_tags=None, **kwargs):
        if 'equation-block' in el.get('class', []):
            return f"\n\n$$\n{el.get('data-tex', '')}\n$$\n\n"
        return super().convert_div(el, text, parent_tags)

    def convert_span(self, el, text, parent_tags=None, **kwargs):
        if 'equation-inline' in el.get('class', []):
            return f"${el.get('data-tex', '')}$"
        return text

    def convert_td(self, el, text, parent_tags=None, **kwargs):
        return super().convert_td(el, text.replace('|', '\\|'), parent_tags)

    def convert_th(self, el, text, parent_tags=None, **kwargs):
        return super().convert_th(el, text.replace('|', '\\|'), parent_tags)


__all__ = ['MarkdownConverter']
