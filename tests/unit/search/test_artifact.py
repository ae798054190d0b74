"""Unit tests for writing and loading the index artifact."""

from __future__ import annotations

import orjson
import pytest

from docsite_search.config import SearchSettings
from docsite_search.errors import ArtifactLoadError
from docsite_search.search.artifact import (
    ARTIFACT_FORMAT,
    ARTIFACT_VERSION,
    dump_artifact,
    index_to_dict,
    load_artifact,
    parse_artifact,
    write_artifact,
)
from docsite_search.search.engine import QueryEngine
from docsite_search.search.indexer import build_index


pytestmark = pytest.mark.unit

QUERIES = ["routing", "guide", "cookies headers", "request", "radix tree", "", "zzz"]


def _ranking(index, query: str) -> list[tuple[str, float]]:
    return [(result.document.url, result.score) for result in QueryEngine(index).search(query)]


class TestRoundTrip:
    @pytest.mark.parametrize("filename", ["search_index.json", "search_index.js"])
    def test_loaded_index_ranks_like_the_built_one(self, guide_index, tmp_path, filename) -> None:
        path = write_artifact(guide_index, tmp_path / filename)

        loaded = load_artifact(path)

        for query in QUERIES:
            assert _ranking(loaded, query) == _ranking(guide_index, query)

    def test_round_trip_preserves_documents_and_lengths(self, docs_corpus, tmp_path) -> None:
        index = build_index(docs_corpus)

        loaded = load_artifact(write_artifact(index, tmp_path / "index.json"))

        assert list(loaded.documents) == list(docs_corpus)
        assert loaded.field_lengths == index.field_lengths
        assert loaded.schema == index.schema
        assert loaded.analyzer_config == index.analyzer_config

    def test_artifact_carries_analyzer_settings(self, guide_corpus) -> None:
        index = build_index(guide_corpus, SearchSettings(apply_stemming=False, use_stopwords=False))

        loaded = parse_artifact(dump_artifact(index))

        assert QueryEngine(loaded).tokenize_query("the Routing") == ("the", "routing")

    def test_write_creates_parent_directories_and_leaves_no_temp_file(self, guide_index, tmp_path) -> None:
        target = tmp_path / "public" / "search" / "index.json"

        write_artifact(guide_index, target)

        assert target.exists()
        assert [p.name for p in target.parent.iterdir()] == ["index.json"]


class TestFormat:
    def test_payload_layout(self, guide_index) -> None:
        payload = orjson.loads(dump_artifact(guide_index))

        assert payload["format"] == ARTIFACT_FORMAT
        assert payload["version"] == ARTIFACT_VERSION
        assert payload["postings"]["title"]["guide"] == [[0, 1], [1, 1]]
        assert payload["documents"][0]["url"] == "/docs/routing/"
        assert payload == index_to_dict(guide_index)

    def test_script_wrapper(self, guide_index, tmp_path) -> None:
        path = write_artifact(guide_index, tmp_path / "search_index.js")
        text = path.read_text(encoding="utf-8")

        assert text.startswith("window.searchIndex = {")
        assert text.rstrip().endswith("};")

    def test_parse_accepts_text_and_bytes(self, guide_index) -> None:
        data = dump_artifact(guide_index, as_script=True)

        assert parse_artifact(data.decode("utf-8")).doc_count == 2
        assert parse_artifact(data).doc_count == 2


class TestLoadFailures:
    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ArtifactLoadError, match="cannot read file") as excinfo:
            load_artifact(tmp_path / "missing.json")

        assert excinfo.value.source.endswith("missing.json")

    @pytest.mark.parametrize(
        "data",
        [b"", b"{not json", b"window.searchIndex = ;", b"\xff\xfe\x00"],
    )
    def test_garbage_is_rejected(self, data) -> None:
        with pytest.raises(ArtifactLoadError):
            parse_artifact(data, source="test")

    def test_non_object_payload(self) -> None:
        with pytest.raises(ArtifactLoadError, match="JSON object"):
            parse_artifact(b"[1, 2, 3]")

    def test_wrong_format_and_version(self, guide_index) -> None:
        payload = index_to_dict(guide_index)

        with pytest.raises(ArtifactLoadError, match="unexpected format"):
            parse_artifact(orjson.dumps({**payload, "format": "lunr"}))
        with pytest.raises(ArtifactLoadError, match="unsupported version"):
            parse_artifact(orjson.dumps({**payload, "version": 99}))

    def test_missing_section(self, guide_index) -> None:
        payload = index_to_dict(guide_index)
        del payload["postings"]

        with pytest.raises(ArtifactLoadError, match="malformed"):
            parse_artifact(orjson.dumps(payload))

    def test_posting_for_unknown_document(self, guide_index) -> None:
        payload = index_to_dict(guide_index)
        payload["postings"]["body"]["radix"] = [[7, 1]]

        with pytest.raises(ArtifactLoadError, match="unknown document 7"):
            parse_artifact(orjson.dumps(payload))

    def test_postings_for_unknown_field(self, guide_index) -> None:
        payload = index_to_dict(guide_index)
        payload["postings"]["tags"] = {"go": [[0, 1]]}

        with pytest.raises(ArtifactLoadError, match="unknown field"):
            parse_artifact(orjson.dumps(payload))

    def test_error_message_names_the_source(self) -> None:
        with pytest.raises(ArtifactLoadError) as excinfo:
            parse_artifact(b"{", source="https://example.org/search_index.json")

        assert str(excinfo.value).startswith("Failed to load search index from https://example.org/search_index.json")

    @pytest.mark.parametrize(
        ("section", "value"),
        [
            ("postings", []),
            ("analyzer", []),
            ("schema", []),
            ("documents", [[0, "/a/"]]),
            ("analyzer", {"min_token_length": 0}),
        ],
    )
    def test_wrong_shapes_are_load_errors(self, guide_index, section, value) -> None:
        payload = {**index_to_dict(guide_index), section: value}

        with pytest.raises(ArtifactLoadError, match="malformed"):
            parse_artifact(orjson.dumps(payload))

    def test_field_postings_given_as_list(self, guide_index) -> None:
        payload = index_to_dict(guide_index)
        payload["postings"]["body"] = [["radix", [[0, 1]]]]

        with pytest.raises(ArtifactLoadError, match="must be an object keyed by term"):
            parse_artifact(orjson.dumps(payload))


class TestWriteFailures:
    def test_failed_replace_leaves_no_temp_file(self, guide_index, tmp_path) -> None:
        target = tmp_path / "search_index.json"
        target.mkdir()

        with pytest.raises(OSError):
            write_artifact(guide_index, target)

        assert sorted(p.name for p in tmp_path.iterdir()) == ["search_index.json"]
        assert target.is_dir()
