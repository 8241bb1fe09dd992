"""Ranking over a published IndexSnapshot.

Text relevance is term overlap: every query term (a word plus its folded
plural variant) found in a package contributes one unit, regardless of how
often it occurs. The score is matched terms divided by distinct query terms,
so a package covering every term scores exactly 1.0. Other orders sort all
candidates by a document field, descending. Ties always keep document store
insertion order.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
import logging

from package_search.domain.model import PackageDocument
from package_search.domain.search import (
    PackageHit,
    PackageSearchResult,
    SearchOrder,
    ServiceSearchQuery,
)
from package_search.search.indexer import IndexSnapshot
from package_search.search.sdk_registry import SdkLibraryRegistry


logger = logging.getLogger(__name__)

_FIELD_ORDERS: dict[SearchOrder, Callable[[PackageDocument], float]] = {
    SearchOrder.POPULARITY: lambda doc: doc.popularity,
    SearchOrder.HEALTH: lambda doc: doc.health,
    SearchOrder.MAINTENANCE: lambda doc: doc.maintenance,
}

_TIMESTAMP_ORDERS: dict[SearchOrder, Callable[[PackageDocument], datetime | None]] = {
    SearchOrder.CREATED: lambda doc: doc.created,
    SearchOrder.UPDATED: lambda doc: doc.updated,
}


def search(
    snapshot: IndexSnapshot,
    query: ServiceSearchQuery,
    sdk_registry: SdkLibraryRegistry | None = None,
) -> PackageSearchResult:
    """Answer ``query`` against ``snapshot``.

    Args:
        snapshot: Published snapshot; read only.
        query: Parsed query (see ``parse_query``).
        sdk_registry: Registry scored independently of pagination.

    Returns:
        Result stamped with the snapshot build time.
    """
    candidates = [name for name in snapshot.order if _passes_filters(snapshot.documents[name], query)]

    if query.order.is_text:
        ranked = _rank_by_text(snapshot, query, candidates)
    else:
        ranked = _rank_by_field(snapshot, query.order, candidates)

    total_count = len(ranked)
    page = ranked[query.offset : query.offset + query.limit]
    sdk_hits = sdk_registry.match(query.terms) if sdk_registry is not None else []

    logger.debug(
        "Query %r order=%s matched %d packages (page %d:%d)",
        query.text,
        query.order.value,
        total_count,
        query.offset,
        query.offset + query.limit,
    )
    return PackageSearchResult(
        timestamp=snapshot.built_at,
        total_count=total_count,
        sdk_library_hits=sdk_hits,
        package_hits=page,
    )


def score_packages(snapshot: IndexSnapshot, terms: tuple[tuple[str, ...], ...]) -> dict[str, float]:
    """Return the overlap score of every package matching at least one term."""
    if not terms:
        return {}

    matched: dict[str, int] = {}
    for group in terms:
        packages: set[str] = set()
        for token in group:
            packages.update(posting.package for posting in snapshot.postings_for(token))
        for package in packages:
            matched[package] = matched.get(package, 0) + 1

    total = len(terms)
    return {package: count / total for package, count in matched.items()}


def _rank_by_text(snapshot: IndexSnapshot, query: ServiceSearchQuery, candidates: list[str]) -> list[PackageHit]:
    if not query.has_terms:
        return []
    scores = score_packages(snapshot, query.terms)
    # candidates are in insertion order and sorted() is stable
    matching = [name for name in candidates if name in scores]
    ordered = sorted(matching, key=lambda name: scores[name], reverse=True)
    return [PackageHit(package=name, score=scores[name]) for name in ordered]


def _rank_by_field(snapshot: IndexSnapshot, order: SearchOrder, candidates: list[str]) -> list[PackageHit]:
    documents = snapshot.documents
    if order in _FIELD_ORDERS:
        value_of = _FIELD_ORDERS[order]
        ordered = sorted(candidates, key=lambda name: value_of(documents[name]), reverse=True)
        return [PackageHit(package=name, score=value_of(documents[name])) for name in ordered]

    timestamp_of = _TIMESTAMP_ORDERS[order]
    dated = [name for name in candidates if timestamp_of(documents[name]) is not None]
    undated = [name for name in candidates if timestamp_of(documents[name]) is None]
    dated.sort(key=lambda name: timestamp_of(documents[name]).timestamp(), reverse=True)
    return [PackageHit(package=name) for name in (*dated, *undated)]


def _passes_filters(doc: PackageDocument, query: ServiceSearchQuery) -> bool:
    if doc.is_discontinued and not query.include_discontinued:
        return False
    if query.platform and not doc.has_platform(query.platform):
        return False
    if query.tag and not doc.has_tag(query.tag):
        return False
    return True
