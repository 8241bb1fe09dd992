"""Fixed registry of SDK library names matched alongside packages."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from package_search.domain.search import SdkLibraryHit
from package_search.search.analyzers import Analyzer, get_analyzer


DEFAULT_SDK_LIBRARIES: tuple[str, ...] = (
    "dart:async",
    "dart:collection",
    "dart:convert",
    "dart:core",
    "dart:developer",
    "dart:ffi",
    "dart:html",
    "dart:indexed_db",
    "dart:io",
    "dart:isolate",
    "dart:js",
    "dart:js_util",
    "dart:math",
    "dart:mirrors",
    "dart:svg",
    "dart:typed_data",
    "dart:web_audio",
    "dart:web_gl",
)


class SdkLibraryRegistry:
    """Token sets for each registered library, analyzed once at construction.

    Names look like ``dart:typed_data``; the scheme before the colon is not
    searchable.
    """

    def __init__(self, libraries: Iterable[str] = DEFAULT_SDK_LIBRARIES, analyzer: Analyzer | None = None) -> None:
        self._analyzer = analyzer or get_analyzer("package")
        names: list[str] = []
        for library in libraries:
            name = library.strip()
            if name and name not in names:
                names.append(name)
        self._libraries = tuple(names)
        self._tokens = {
            name: frozenset(token.text for token in self._analyzer(name.partition(":")[2] or name))
            for name in self._libraries
        }

    @property
    def libraries(self) -> tuple[str, ...]:
        return self._libraries

    def __len__(self) -> int:
        return len(self._libraries)

    def match(self, terms: Sequence[Sequence[str]]) -> list[SdkLibraryHit]:
        """Score every library by the fraction of query terms its name covers.

        Libraries matching no term are left out; ties keep registry order.
        """
        if not terms:
            return []
        hits: list[SdkLibraryHit] = []
        for name in self._libraries:
            tokens = self._tokens[name]
            matched = sum(1 for group in terms if any(token in tokens for token in group))
            if matched:
                hits.append(SdkLibraryHit(library=name, score=matched / len(terms)))
        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits
