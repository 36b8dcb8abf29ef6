"""Markdown export package: writes notes, attachments and folders to the output tree."""

from .markdown_exporter import MarkdownExporter, format_bytes

__all__ = [
    'MarkdownExporter',
    'format_bytes',
]
