"""Resolver package: the shared index, the indexing pass and duplicate resolution."""

from .duplicate_resolver import DuplicateResolver
from .metadata_indexer import MetadataIndexer
from .resolver_index import ResolverIndex, folder_name, sanitize_title

__all__ = [
    'ResolverIndex',
    'MetadataIndexer',
    'DuplicateResolver',
    'sanitize_title',
    'folder_name',
]
