"""Exception hierarchy shared by the archive readers, resolver and exporters."""


class FetcherError(Exception):
    """Base exception for archive and import errors."""
    pass


class MissingIdentifierError(FetcherError):
    """A page-like entry carries no embedded Notion identifier."""
    pass


class UnresolvedReferenceError(FetcherError):
    """An entry has no counterpart in the resolver index."""
    pass


class WrongExportFormatError(FetcherError):
    """A Markdown export was supplied where an HTML export is required.

    This is the only error that aborts the whole import.
    """

    USER_MESSAGE = (
        "Notion Markdown export detected. Please export your Notion data "
        "to HTML instead."
    )

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"{self.USER_MESSAGE} (found {path})")


class ArchiveReadError(FetcherError):
    """An archive could not be opened or iterated."""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to read archive {path}: {cause}")


class ExportError(FetcherError):
    """Writing a file or folder to the output directory failed."""
    pass


class DuplicateEntryError(FetcherError):
    """An identifier or attachment path was already indexed from another entry."""
    pass
