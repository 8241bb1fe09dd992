"""Unit tests for the JSON-lines document source."""

import logging

import pytest

from package_search.sources import JsonLinesDocumentSource


@pytest.mark.unit
class TestJsonLinesDocumentSource:
    def test_reads_objects_and_skips_bad_lines(self, tmp_path, caplog):
        path = tmp_path / "packages.jsonl"
        path.write_text(
            '{"package": "maps", "popularity": 0.5}\n'
            "\n"
            "not json\n"
            "[1, 2]\n"
            '{"package": "map"}\n'
        )

        with caplog.at_level(logging.WARNING, logger="package_search.sources"):
            documents = JsonLinesDocumentSource(path)()

        assert documents == [{"package": "maps", "popularity": 0.5}, {"package": "map"}]
        assert "invalid JSON" in caplog.text
        assert "expected an object" in caplog.text

    def test_missing_file_yields_nothing(self, tmp_path, caplog):
        source = JsonLinesDocumentSource(str(tmp_path / "absent.jsonl"))

        with caplog.at_level(logging.WARNING, logger="package_search.sources"):
            assert source() == []

        assert "does not exist" in caplog.text

    def test_iterates_lazily(self, tmp_path):
        path = tmp_path / "packages.jsonl"
        path.write_text('{"package": "a"}\n{"package": "b"}\n')

        iterator = JsonLinesDocumentSource(path).iter_documents()

        assert next(iterator) == {"package": "a"}
