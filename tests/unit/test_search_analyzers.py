"""Unit tests for analyzer pipelines and filters."""

import pytest

from package_search.search import analyzers
from package_search.search.analyzers import (
    AnalyzerPipeline,
    KeywordAnalyzer,
    LowercaseFilter,
    PackageTextAnalyzer,
    PluralFoldFilter,
    RegexTokenizer,
    Token,
    fold_plural,
    get_analyzer,
    group_terms,
    tokenize,
)


@pytest.mark.unit
class TestToken:
    def test_copy_with_keeps_original_attributes(self):
        token = Token(text="Maps", position=2, start_char=10, end_char=14, attributes={"field": "name"})

        clone = token.copy_with(text="maps")
        clone.attributes["field"] = "description"

        assert clone.text == "maps"
        assert clone.position == 2
        assert token.text == "Maps"
        assert token.attributes["field"] == "name"


@pytest.mark.unit
class TestRegexTokenizer:
    """Tokenizer splits on every non-alphanumeric boundary."""

    def test_emits_tokens_with_offsets(self):
        tokens = list(RegexTokenizer()("http client"))

        assert [t.text for t in tokens] == ["http", "client"]
        assert [t.position for t in tokens] == [0, 1]
        assert (tokens[1].start_char, tokens[1].end_char) == (5, 11)

    def test_splits_on_underscores_and_punctuation(self):
        tokens = list(RegexTokenizer()("json_annotation, dart:async/io-utils"))

        assert [t.text for t in tokens] == ["json", "annotation", "dart", "async", "io", "utils"]


@pytest.mark.unit
class TestLowercaseFilter:
    def test_lowercases_and_reuses_lowercase_tokens(self):
        raw = [
            Token(text="Flutter", position=0, start_char=0, end_char=7),
            Token(text="web2", position=1, start_char=8, end_char=12),
        ]

        filtered = list(LowercaseFilter()(raw))

        assert filtered[0].text == "flutter"
        assert filtered[1] is raw[1]


@pytest.mark.unit
class TestPluralFolding:
    @pytest.mark.parametrize(
        ("word", "expected"),
        [
            ("maps", "map"),
            ("widgets", "widget"),
            ("class", None),
            ("bus", None),
            ("map", None),
            ("sass", None),
            ("boxes", "boxe"),
        ],
    )
    def test_fold_plural_rule(self, word, expected):
        assert fold_plural(word) == expected

    def test_filter_emits_singular_at_same_position(self):
        tokens = list(PluralFoldFilter()([Token(text="maps", position=3, start_char=0, end_char=4)]))

        assert [(t.text, t.position) for t in tokens] == [("maps", 3), ("map", 3)]
        assert tokens[1].attributes["folded_from"] == "maps"


@pytest.mark.unit
class TestPackageTextAnalyzer:
    def test_normalizes_case_punctuation_and_plurals(self):
        assert tokenize("Google Maps, for Flutter!") == ["google", "maps", "map", "for", "flutter"]

    @pytest.mark.parametrize("text", ["", None, "   ", "!!! ---"])
    def test_empty_or_malformed_input_yields_nothing(self, text):
        assert tokenize(text) == []

    def test_without_folding(self):
        analyzer = PackageTextAnalyzer(fold_plurals=False)

        assert [t.text for t in analyzer("maps")] == ["maps"]

    def test_pipeline_keeps_tokenizer_positions(self):
        pipeline = AnalyzerPipeline(RegexTokenizer(), [LowercaseFilter(), PluralFoldFilter()])

        tokens = pipeline("Maps tools")

        assert [(t.text, t.position) for t in tokens] == [("maps", 0), ("map", 0), ("tools", 1), ("tool", 1)]


@pytest.mark.unit
class TestGroupTerms:
    def test_groups_equivalent_tokens_and_drops_duplicates(self):
        tokens = get_analyzer("package")("maps Maps map")

        assert group_terms(tokens) == (("maps", "map"), ("map",))

    def test_empty_stream(self):
        assert group_terms([]) == ()


@pytest.mark.unit
class TestAnalyzerRegistry:
    def test_keyword_analyzer_lowercases_whole_value(self):
        assert [t.text for t in KeywordAnalyzer()("  Flutter Web ")] == ["flutter web"]

    def test_unknown_analyzer_raises(self):
        with pytest.raises(ValueError, match="Unknown analyzer"):
            get_analyzer("stemmer")

    def test_default_analyzer(self, monkeypatch):
        monkeypatch.setattr(analyzers, "_ANALYZER_FACTORIES", analyzers._ANALYZER_FACTORIES.copy())

        assert isinstance(get_analyzer(None), PackageTextAnalyzer)
