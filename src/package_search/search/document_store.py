"""In-memory document store feeding the index builder.

The store keeps package documents keyed by name in insertion order. Replacing
an existing package keeps its original slot, which is what the ranker uses
to break ties deterministically.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
import threading
from typing import Any

from package_search.domain.model import PackageDocument
from package_search.exceptions import InvalidDocumentError


logger = logging.getLogger(__name__)

StoredDocument = PackageDocument | Mapping[str, Any]


def document_name(doc: StoredDocument) -> str:
    """Return the stripped package name of ``doc`` (empty string when absent)."""
    if isinstance(doc, PackageDocument):
        return doc.package
    value = doc.get("package")
    return value.strip() if isinstance(value, str) else ""


class DocumentStore:
    """Thread-safe, insertion-ordered mapping of package name to document.

    Raw mappings are accepted as-is so that malformed crawler output reaches
    the builder, which skips what it cannot validate instead of failing the
    whole rebuild.
    """

    def __init__(self) -> None:
        self._documents: dict[str, StoredDocument] = {}
        self._lock = threading.Lock()

    def add_package(self, doc: StoredDocument) -> None:
        """Insert ``doc`` or fully replace the document with the same name."""
        if not isinstance(doc, (PackageDocument, Mapping)):
            raise InvalidDocumentError(f"Unsupported document type: {type(doc).__name__}")
        name = document_name(doc)
        if not name:
            raise InvalidDocumentError("Package document requires a non-empty 'package' name")

        stored = doc if isinstance(doc, PackageDocument) else dict(doc)
        with self._lock:
            replaced = name in self._documents
            self._documents[name] = stored
        logger.debug("%s package %s", "Replaced" if replaced else "Added", name)

    def remove_package(self, name: str) -> bool:
        """Remove the package ``name``; return False when it was not stored."""
        with self._lock:
            removed = self._documents.pop(name, None) is not None
        if removed:
            logger.debug("Removed package %s", name)
        return removed

    def get(self, name: str) -> StoredDocument | None:
        with self._lock:
            return self._documents.get(name)

    def all_documents(self) -> tuple[StoredDocument, ...]:
        """Return an insertion-ordered copy that later mutations do not affect."""
        with self._lock:
            return tuple(self._documents.values())

    def package_names(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._documents)

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._documents
