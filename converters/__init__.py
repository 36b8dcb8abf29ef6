"""Converters package for Notion HTML to Markdown conversion."""

import logging

from .html_cleaner import HtmlCleaner
from .language_detector import LanguageDetector
from .link_processor import LinkProcessor, relative_link
from .markdown_converter import MarkdownConverter
from .property_parser import PropertyParser, extract_icon, generate_frontmatter


def convert_page(index, page, html_content, config=None, logger=None):
    """
    Convenience function to convert one indexed Notion page to Markdown.

    This runs the full conversion pipeline:
    1. Icon and property extraction into front matter
    2. HTML cleaning (callouts, toggles, equations, to-dos, lists)
    3. Link and image rewriting through the index
    4. Markdown generation using markdownify
    5. Post-processing (blank lines, optional single line breaks)

    Args:
        index: Finalised ResolverIndex
        page: PageInfo of the page being converted
        html_content: Exported HTML of the page
        config: Optional importer settings
        logger: Optional logger instance (uses module logger if not provided)

    Returns:
        str: Markdown text

    Example:
        >>> from converters import convert_page
        >>> markdown = convert_page(index, index.pages[page_id], html)
    """
    if logger is None:
        logger = logging.getLogger('notion_markdown_migrator.converters')

    converter = MarkdownConverter(index, config=config, logger=logger)
    return converter.convert_page(page, html_content)


__all__ = [
    'convert_page',
    'MarkdownConverter',
    'HtmlCleaner',
    'LanguageDetector',
    'LinkProcessor',
    'PropertyParser',
    'extract_icon',
    'generate_frontmatter',
    'relative_link',
]
