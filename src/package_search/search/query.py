"""Query parsing: raw request parameters to a clamped ServiceSearchQuery."""

from __future__ import annotations

import logging

from package_search.domain.search import SearchOrder, ServiceSearchQuery
from package_search.search.analyzers import Analyzer, KeywordAnalyzer, get_analyzer, group_terms


logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

_LABEL_ANALYZER = KeywordAnalyzer()


def parse_query(
    query: str | None = None,
    order: SearchOrder | str | None = SearchOrder.TEXT,
    offset: int | str | None = 0,
    limit: int | str | None = 0,
    *,
    platform: str | None = None,
    tag: str | None = None,
    include_discontinued: bool = False,
    analyzer: Analyzer | None = None,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
) -> ServiceSearchQuery:
    """Build a ServiceSearchQuery without ever failing on malformed input.

    Args:
        query: Free text; tokenized with the same analyzer used for indexing.
        order: Requested order; unknown values fall back to ``text``.
        offset: Result offset, clamped to zero.
        limit: Page size; zero or negative means ``default_page_size`` and
            values above ``max_page_size`` are capped.
        platform: Optional platform label filter.
        tag: Optional tag label filter.
        include_discontinued: Keep discontinued packages in the candidate set.

    Returns:
        Parsed, immutable query.
    """
    text = query if isinstance(query, str) else None
    active_analyzer = analyzer or get_analyzer("package")
    terms = group_terms(active_analyzer(text)) if text else ()

    resolved_order = SearchOrder.from_value(order)
    if resolved_order is None:
        logger.debug("Unknown search order %r; falling back to text", order)
        resolved_order = SearchOrder.TEXT

    page_size = max(1, default_page_size)
    resolved_limit = _as_int(limit, 0)
    if resolved_limit <= 0:
        resolved_limit = page_size
    resolved_limit = min(resolved_limit, max(page_size, max_page_size))

    return ServiceSearchQuery(
        text=text,
        terms=terms,
        order=resolved_order,
        offset=max(0, _as_int(offset, 0)),
        limit=resolved_limit,
        platform=_normalize_label(platform),
        tag=_normalize_label(tag),
        include_discontinued=include_discontinued,
    )


def _as_int(value: int | str | None, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _normalize_label(value: str | None) -> str | None:
    if not isinstance(value, str):
        return None
    tokens = _LABEL_ANALYZER(value)
    return tokens[0].text if tokens else None
