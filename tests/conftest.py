"""Shared fixtures: synthetic Notion export archives built in tmp_path."""

import io
import posixpath
import zipfile
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pytest

from fetchers.notion_ids import split_extension
from models import HierarchyMode
from resolver import DuplicateResolver, MetadataIndexer, ResolverIndex

HOME_ID = '0123456789abcdef0123456789abcdef'
CHILD_ID = 'fedcba9876543210fedcba9876543210'
OTHER_ID = '11111111111111111111111111111111'
DB_ID = '22222222222222222222222222222222'

ZIP_DATE = (2021, 5, 6, 7, 8, 10)


def page_html(body='', title='Page', header=''):
    """Minimal Notion page document."""
    return (
        '<!DOCTYPE html><html><head><meta charset="utf-8"/><title>{title}</title></head>'
        '<body><article class="page sans"><header>{header}<h1 class="page-title">{title}</h1></header>'
        '<div class="page-body">{body}</div></article></body></html>'
    ).format(title=title, header=header, body=body)


def zip_bytes(files):
    """Bytes of a zip holding ``files`` (archive path -> str or bytes), in order."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w') as archive:
        for name, content in files.items():
            info = zipfile.ZipInfo(name, date_time=ZIP_DATE)
            data = content.encode('utf-8') if isinstance(content, str) else content
            archive.writestr(info, data)
    return buffer.getvalue()


@pytest.fixture
def make_zip(tmp_path):
    """Factory writing a zip into tmp_path and returning its path as a string."""
    def _make_zip(name, files):
        path = tmp_path / name
        path.write_bytes(zip_bytes(files))
        return str(path)
    return _make_zip


@dataclass
class FakeEntry:
    """Archive entry stand-in for indexing without a real zip."""

    filepath: str
    order: int = 0
    archive_path: str = 'export.zip'
    date_time: Optional[datetime] = None
    creation_time: Optional[datetime] = None

    @property
    def name(self):
        return posixpath.basename(self.filepath)

    @property
    def extension(self):
        return split_extension(self.name)[1]

    @property
    def parent(self):
        return posixpath.dirname(self.filepath)

    @property
    def fullpath(self):
        return f"{self.archive_path}/{self.filepath}"


def build_index(paths, attachment_folder='./', parent_pages_in_subfolders=True,
                hierarchy_mode=HierarchyMode.NESTED, single_line_breaks=False):
    """Index ``paths`` in order and resolve output names."""
    index = ResolverIndex(
        attachment_folder=attachment_folder,
        single_line_breaks=single_line_breaks,
        hierarchy_mode=hierarchy_mode,
    )
    indexer = MetadataIndexer(index)
    for order, path in enumerate(paths):
        indexer.index_entry(FakeEntry(path, order=order))
    DuplicateResolver(index, parent_pages_in_subfolders=parent_pages_in_subfolders).resolve()
    return index
