"""Inverted index builder producing immutable snapshots.

A build consumes a store snapshot, analyzes every document's text content and
merges per-document term frequencies into a token -> postings mapping. The
resulting IndexSnapshot is never mutated; a rebuild always produces a new one.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
import itertools
import logging
from types import MappingProxyType

from pydantic import ValidationError

from package_search.domain.model import PackageDocument
from package_search.search.analyzers import Analyzer, get_analyzer
from package_search.search.document_store import StoredDocument, document_name
from package_search.search.models import Posting, PostingList


logger = logging.getLogger(__name__)

_EMPTY_POSTINGS: PostingList = ()


@dataclass(frozen=True)
class IndexSnapshot:
    """Fully built, read-only index state published to readers."""

    postings: Mapping[str, PostingList]
    documents: Mapping[str, PackageDocument]
    order: tuple[str, ...]
    built_at: datetime
    generation: int = 0
    errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def document_count(self) -> int:
        return len(self.order)

    @property
    def token_count(self) -> int:
        return len(self.postings)

    def postings_for(self, token: str) -> PostingList:
        return self.postings.get(token, _EMPTY_POSTINGS)


class IndexBuilder:
    """Build IndexSnapshot instances from document store contents."""

    def __init__(self, analyzer: Analyzer | None = None) -> None:
        self._analyzer = analyzer or get_analyzer("package")
        self._generations = itertools.count(1)

    @property
    def analyzer(self) -> Analyzer:
        return self._analyzer

    def next_generation(self) -> int:
        return next(self._generations)

    def build(self, documents: Iterable[StoredDocument], *, generation: int | None = None) -> IndexSnapshot:
        """Build a snapshot from ``documents`` in the given order.

        Documents failing validation are skipped and reported in
        ``IndexSnapshot.errors``; later documents with a duplicate name replace
        earlier ones but keep the earlier slot.
        """
        resolved_generation = generation if generation is not None else self.next_generation()
        accepted: dict[str, PackageDocument] = {}
        errors: list[str] = []

        for raw in documents:
            try:
                doc = _coerce_document(raw)
            except (ValidationError, TypeError, ValueError) as exc:
                name = _describe(raw)
                logger.warning("Skipping package %s during index build: %s", name, _short_error(exc))
                errors.append(f"{name}: {_short_error(exc)}")
                continue
            accepted[doc.package] = doc

        frequencies: dict[str, dict[str, int]] = {}
        for doc in accepted.values():
            counts = Counter(token.text for token in self._analyzer(doc.text_content))
            for token, count in counts.items():
                frequencies.setdefault(token, {})[doc.package] = count

        postings = {
            token: tuple(Posting(package=name, frequency=count) for name, count in per_doc.items())
            for token, per_doc in frequencies.items()
        }

        snapshot = IndexSnapshot(
            postings=MappingProxyType(postings),
            documents=MappingProxyType(dict(accepted)),
            order=tuple(accepted),
            built_at=datetime.now(timezone.utc),
            generation=resolved_generation,
            errors=tuple(errors),
        )
        logger.info(
            "Built index generation %d: %d documents, %d tokens, %d skipped",
            snapshot.generation,
            snapshot.document_count,
            snapshot.token_count,
            len(errors),
        )
        return snapshot


def _coerce_document(raw: StoredDocument) -> PackageDocument:
    if isinstance(raw, PackageDocument):
        return raw
    if isinstance(raw, Mapping):
        return PackageDocument.model_validate(dict(raw))
    raise TypeError(f"Unsupported document type: {type(raw).__name__}")


def _describe(raw: object) -> str:
    if isinstance(raw, (PackageDocument, Mapping)):
        return document_name(raw) or "<unnamed>"
    return repr(raw)


def _short_error(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        return "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors())
    return str(exc)
