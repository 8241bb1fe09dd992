"""Domain layer - pure value objects with no infrastructure dependencies.

Key principles:
1. No dependencies on infrastructure (no HTTP, no indexing internals)
2. Type safety with Pydantic
3. Immutability for value objects
"""

from package_search.domain.model import PackageDocument
from package_search.domain.search import (
    PackageHit,
    PackageSearchResult,
    SdkLibraryHit,
    SearchOrder,
    ServiceSearchQuery,
)


__all__ = [
    "PackageDocument",
    "PackageHit",
    "PackageSearchResult",
    "SdkLibraryHit",
    "SearchOrder",
    "ServiceSearchQuery",
]
