"""Exceptions raised by the package search index."""


class PackageSearchError(Exception):
    """Base class for package search errors."""


class IndexNotReadyError(PackageSearchError):
    """Raised when a query arrives before any snapshot has been published."""

    def __init__(self, message: str = "Search index is not ready") -> None:
        super().__init__(message)


class InvalidDocumentError(PackageSearchError, ValueError):
    """Raised when a document cannot be accepted by the store."""
