"""Domain models for search queries and results.

Value objects are immutable (frozen=True). Result models serialize with the
camelCase keys downstream renderers consume: ``timestamp``, ``totalCount``,
``sdkLibraryHits`` and ``packageHits``.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SearchOrder(str, Enum):
    """Sort orders accepted by the ranker."""

    TEXT = "text"
    POPULARITY = "popularity"
    HEALTH = "health"
    MAINTENANCE = "maintenance"
    CREATED = "created"
    UPDATED = "updated"

    @classmethod
    def from_value(cls, value: "SearchOrder | str | None") -> "SearchOrder | None":
        """Resolve ``value`` to an order, returning None when it is unknown."""
        if isinstance(value, SearchOrder):
            return value
        if not value:
            return None
        normalized = str(value).strip().lower()
        if normalized == "recency":
            return cls.MAINTENANCE
        try:
            return cls(normalized)
        except ValueError:
            return None

    @property
    def is_text(self) -> bool:
        return self is SearchOrder.TEXT


class ServiceSearchQuery(BaseModel):
    """Value object representing a parsed, clamped search request.

    ``terms`` holds one group per query word; every token in a group is an
    equivalent normalized form of that word (e.g. ``("maps", "map")``).
    """

    model_config = ConfigDict(frozen=True)

    text: str | None = None
    terms: tuple[tuple[str, ...], ...] = ()
    order: SearchOrder = SearchOrder.TEXT
    offset: int = Field(default=0, ge=0)
    limit: int = Field(default=10, gt=0)
    platform: str | None = None
    tag: str | None = None
    include_discontinued: bool = False

    @property
    def has_terms(self) -> bool:
        return bool(self.terms)

    @classmethod
    def parse(
        cls,
        query: str | None = None,
        order: SearchOrder | str | None = SearchOrder.TEXT,
        offset: int | str | None = 0,
        limit: int | str | None = 0,
        **options: Any,
    ) -> "ServiceSearchQuery":
        """Shortcut for :func:`package_search.search.query.parse_query`."""
        from package_search.search.query import parse_query

        return parse_query(query, order, offset, limit, **options)


class PackageHit(BaseModel):
    """A ranked package line in a result page."""

    model_config = ConfigDict(frozen=True)

    package: str
    score: float | None = Field(default=None, ge=0.0)


class SdkLibraryHit(BaseModel):
    """A match against the fixed registry of SDK library names."""

    model_config = ConfigDict(frozen=True)

    library: str
    score: float = Field(ge=0.0)


class PackageSearchResult(BaseModel):
    """Response entity for a single query.

    ``timestamp`` is the build time of the snapshot that answered the query,
    not the wall-clock time of the call.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: datetime
    total_count: int = Field(alias="totalCount", ge=0)
    sdk_library_hits: list[SdkLibraryHit] = Field(default_factory=list, alias="sdkLibraryHits")
    package_hits: list[PackageHit] = Field(default_factory=list, alias="packageHits")

    def to_json(self) -> dict[str, Any]:
        """Return the wire representation consumed by renderers."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
