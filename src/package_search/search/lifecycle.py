"""Ownership of the published index snapshot.

Builds happen against a private copy of the document store; only the final
reference swap is shared state. Readers load the reference once per query and
never take a lock, so a rebuild never blocks a query and vice versa.
"""

from __future__ import annotations

from enum import Enum
import logging
import threading
from typing import Any

from package_search.config import Settings
from package_search.domain.search import PackageSearchResult, ServiceSearchQuery
from package_search.exceptions import IndexNotReadyError
from package_search.observability.metrics import (
    INDEX_BUILD_LATENCY,
    INDEX_DOC_COUNT,
    INDEX_SKIPPED_DOCUMENTS,
    SEARCH_LATENCY,
    SEARCH_REQUESTS,
    track_latency,
)
from package_search.observability.tracing import index_span
from package_search.search import ranker
from package_search.search.document_store import DocumentStore, StoredDocument
from package_search.search.indexer import IndexBuilder, IndexSnapshot
from package_search.search.query import parse_query
from package_search.search.sdk_registry import SdkLibraryRegistry


logger = logging.getLogger(__name__)


class IndexState(str, Enum):
    NOT_READY = "not_ready"
    READY = "ready"


class IndexLifecycleController:
    """Serve queries from the current snapshot and swap in rebuilt ones.

    Construct one instance at process start and hand it to whatever serves
    queries and whatever schedules rebuilds.
    """

    def __init__(
        self,
        store: DocumentStore | None = None,
        *,
        builder: IndexBuilder | None = None,
        sdk_registry: SdkLibraryRegistry | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.store = store if store is not None else DocumentStore()
        self.builder = builder or IndexBuilder()
        self.settings = settings
        if sdk_registry is None:
            libraries = settings.get_sdk_libraries() if settings is not None else None
            sdk_registry = SdkLibraryRegistry(libraries) if libraries else SdkLibraryRegistry()
        self.sdk_registry = sdk_registry

        self._snapshot: IndexSnapshot | None = None
        self._publish_lock = threading.Lock()
        self._generation_lock = threading.Lock()
        self._builds = 0
        self._discarded_builds = 0

    @property
    def state(self) -> IndexState:
        return IndexState.READY if self._snapshot is not None else IndexState.NOT_READY

    @property
    def is_ready(self) -> bool:
        return self._snapshot is not None

    @property
    def snapshot(self) -> IndexSnapshot:
        """Currently published snapshot; raises IndexNotReadyError before the first build."""
        current = self._snapshot
        if current is None:
            raise IndexNotReadyError()
        return current

    @property
    def stats(self) -> dict[str, Any]:
        current = self._snapshot
        return {
            "state": self.state.value,
            "documents_in_store": len(self.store),
            "documents_indexed": current.document_count if current else 0,
            "tokens": current.token_count if current else 0,
            "generation": current.generation if current else None,
            "built_at": current.built_at.isoformat() if current else None,
            "skipped_documents": len(current.errors) if current else 0,
            "builds": self._builds,
            "discarded_builds": self._discarded_builds,
        }

    def add_package(self, doc: StoredDocument) -> None:
        """Insert or replace a document; visible to queries after the next rebuild."""
        self.store.add_package(doc)

    def remove_package(self, name: str) -> bool:
        return self.store.remove_package(name)

    def mark_ready(self) -> IndexSnapshot:
        """Build from the current store contents and publish, entering the ready state."""
        snapshot = self.rebuild()
        logger.info("Search index ready with %d documents", snapshot.document_count)
        return snapshot

    def rebuild(self) -> IndexSnapshot:
        """Build a new snapshot off to the side, then swap it in atomically.

        A build that finishes after a newer one was published is discarded and
        the newer snapshot is returned instead.
        """
        with self._generation_lock:
            generation = self.builder.next_generation()
            documents = self.store.all_documents()

        with index_span("build", generation=generation, documents=len(documents)):
            with track_latency(INDEX_BUILD_LATENCY):
                snapshot = self.builder.build(documents, generation=generation)

        return self._publish(snapshot)

    def search(self, query: ServiceSearchQuery) -> PackageSearchResult:
        """Answer ``query`` from a single consistent snapshot.

        Raises:
            IndexNotReadyError: No snapshot has been published yet.
        """
        current = self._snapshot
        if current is None:
            SEARCH_REQUESTS.labels(order=query.order.value, status="not_ready").inc()
            raise IndexNotReadyError()

        with index_span("search", generation=current.generation, order=query.order.value) as span:
            with track_latency(SEARCH_LATENCY, order=query.order.value):
                result = ranker.search(current, query, self.sdk_registry)
            span.set_attribute("index.total_count", result.total_count)

        SEARCH_REQUESTS.labels(order=query.order.value, status="ok").inc()
        return result

    def search_text(self, text: str | None, **params: Any) -> PackageSearchResult:
        """Parse request parameters with the configured page sizes and search."""
        if self.settings is not None:
            params.setdefault("default_page_size", self.settings.default_page_size)
            params.setdefault("max_page_size", self.settings.max_page_size)
        return self.search(parse_query(text, analyzer=self.builder.analyzer, **params))

    def _publish(self, snapshot: IndexSnapshot) -> IndexSnapshot:
        with self._publish_lock:
            current = self._snapshot
            if current is not None and current.generation > snapshot.generation:
                self._discarded_builds += 1
                logger.info(
                    "Discarding index generation %d; generation %d already published",
                    snapshot.generation,
                    current.generation,
                )
                return current
            self._snapshot = snapshot
            self._builds += 1

        INDEX_DOC_COUNT.labels().set(snapshot.document_count)
        if snapshot.errors:
            INDEX_SKIPPED_DOCUMENTS.labels().inc(len(snapshot.errors))
        logger.info(
            "Published index generation %d (%d documents)",
            snapshot.generation,
            snapshot.document_count,
        )
        return snapshot
