"""Analyzer utilities for the package search index.

Analyzers follow Whoosh's composable tokenizer/filter design: a tokenizer
emits positioned tokens and a chain of filters rewrites the stream. The same
analyzer instance must be used at index time and at query time, otherwise
matches silently disappear.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, MutableMapping, Sequence
from dataclasses import dataclass, field
import re
from typing import Any, Protocol


@dataclass
class Token:
    """Represents a token emitted by analyzers."""

    text: str
    position: int
    start_char: int
    end_char: int
    attributes: MutableMapping[str, Any] = field(default_factory=dict)

    def copy_with(self, **updates: Any) -> Token:
        data = {
            "text": self.text,
            "position": self.position,
            "start_char": self.start_char,
            "end_char": self.end_char,
            "attributes": dict(self.attributes),
        }
        data.update(updates)
        return Token(**data)


class Analyzer(Protocol):
    """Protocol implemented by analyzers."""

    def __call__(self, text: str) -> list[Token]:  # pragma: no cover - interface definition
        ...


class Tokenizer(Protocol):
    """Protocol implemented by tokenizers."""

    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    """Protocol implemented by token filters."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class RegexTokenizer:
    """Regex-based tokenizer that yields alphanumeric runs.

    The default pattern splits on every non-alphanumeric character, including
    underscores, so ``json_annotation`` yields ``json`` and ``annotation``.
    """

    def __init__(self, pattern: str = r"[^\W_]+", flags: int = re.UNICODE) -> None:
        self.pattern = re.compile(pattern, flags)

    def __call__(self, text: str) -> Iterator[Token]:
        for position, match in enumerate(self.pattern.finditer(text)):
            yield Token(
                text=match.group(0),
                position=position,
                start_char=match.start(),
                end_char=match.end(),
            )


class LowercaseFilter:
    """Filter that lowercases token text."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            lowered = token.text.lower()
            yield token if lowered == token.text else token.copy_with(text=lowered)


class PluralFoldFilter:
    """Emit the naive singular next to tokens ending in a single ``s``.

    ``maps`` yields ``maps`` followed by ``map`` at the same position. Tokens
    shorter than ``min_length`` and tokens ending in ``ss`` pass through
    untouched. No other suffixes are folded.
    """

    def __init__(self, min_length: int = 4) -> None:
        self.min_length = min_length

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            yield token
            singular = fold_plural(token.text, self.min_length)
            if singular is not None:
                yield token.copy_with(
                    text=singular,
                    end_char=token.end_char - 1,
                    attributes={**token.attributes, "folded_from": token.text},
                )


def fold_plural(text: str, min_length: int = 4) -> str | None:
    """Return the singular form of ``text`` or ``None`` when the rule does not apply."""

    if len(text) < min_length or not text.endswith("s") or text.endswith("ss"):
        return None
    return text[:-1]


class AnalyzerPipeline:
    """Composable analyzer pipeline (tokenizer + filters).

    Positions are assigned by the tokenizer and kept through filtering so
    that tokens sharing a position can be treated as equivalents.
    """

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])

    def __call__(self, text: str) -> list[Token]:
        if not text:
            return []
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        return [token for token in stream if token.text]


class KeywordAnalyzer:
    """Analyzer that treats the entire input as a single lowercased token.

    Used for exact label comparisons such as platform and tag filters.
    """

    def __call__(self, text: str) -> list[Token]:
        if not text or not text.strip():
            return []
        value = text.strip().lower()
        return [Token(text=value, position=0, start_char=0, end_char=len(value))]


class PackageTextAnalyzer:
    """Default analyzer for package names, descriptions and labels."""

    def __init__(self, *, fold_plurals: bool = True) -> None:
        filters: list[TokenFilter] = [LowercaseFilter()]
        if fold_plurals:
            filters.append(PluralFoldFilter())
        self.pipeline = AnalyzerPipeline(RegexTokenizer(), filters)

    def __call__(self, text: str) -> list[Token]:
        return self.pipeline(text)


_ANALYZER_FACTORIES: dict[str, Callable[[], Analyzer]] = {
    "default": lambda: PackageTextAnalyzer(),
    "package": lambda: PackageTextAnalyzer(),
    "package-nofold": lambda: PackageTextAnalyzer(fold_plurals=False),
    "keyword": lambda: KeywordAnalyzer(),
}


def get_analyzer(name: str | None) -> Analyzer:
    """Return analyzer by name, defaulting to the package text analyzer."""

    if name is None:
        return _ANALYZER_FACTORIES["default"]()
    normalized = name.lower()
    if normalized not in _ANALYZER_FACTORIES:
        msg = f"Unknown analyzer '{name}'. Available: {sorted(_ANALYZER_FACTORIES)}"
        raise ValueError(msg)
    return _ANALYZER_FACTORIES[normalized]()


_DEFAULT_ANALYZER = PackageTextAnalyzer()


def tokenize(text: str | None) -> list[str]:
    """Return the normalized token texts for ``text`` in stream order."""

    if not text:
        return []
    return [token.text for token in _DEFAULT_ANALYZER(text)]


def group_terms(tokens: Iterable[Token]) -> tuple[tuple[str, ...], ...]:
    """Group tokens sharing a position into equivalence sets.

    Each group is one query term; duplicate groups are collapsed while the
    first-seen order is kept.
    """

    by_position: dict[int, list[str]] = {}
    for token in tokens:
        bucket = by_position.setdefault(token.position, [])
        if token.text not in bucket:
            bucket.append(token.text)

    seen: set[frozenset[str]] = set()
    groups: list[tuple[str, ...]] = []
    for texts in by_position.values():
        key = frozenset(texts)
        if key in seen:
            continue
        seen.add(key)
        groups.append(tuple(texts))
    return tuple(groups)
