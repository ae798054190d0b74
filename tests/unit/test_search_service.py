"""Unit tests for the search service."""

from __future__ import annotations

import orjson
import pytest

from docsite_search.config import SearchSettings
from docsite_search.corpus import Corpus
from docsite_search.domain.search import SearchHit, SearchResponse, SearchStatus
from docsite_search.search.artifact import index_to_dict, write_artifact
from docsite_search.search.indexer import build_index
from docsite_search.service_layer.search_service import SearchService
from docsite_search.service_layer.session import FileArtifactSource, SearchSession, SessionState


pytestmark = pytest.mark.unit


@pytest.fixture
def guide_service(guide_index, tmp_path) -> SearchService:
    path = write_artifact(guide_index, tmp_path / "search_index.json")
    return SearchService(SearchSession(FileArtifactSource(path)))


@pytest.fixture
def docs_service(docs_corpus, tmp_path) -> SearchService:
    path = write_artifact(build_index(docs_corpus), tmp_path / "docs_index.js")
    return SearchService(SearchSession(FileArtifactSource(path)))


class TestSearchService:
    def test_hits_carry_title_url_snippet_and_score(self, guide_service):
        response = guide_service.search("routing")

        assert response.status is SearchStatus.OK
        assert response.available
        (hit,) = response.hits
        assert hit.title == "Routing Guide"
        assert hit.url == "/docs/routing/"
        assert hit.section == "docs"
        assert hit.snippet == "radix tree <mark>routing</mark>"
        assert hit.score > 0

    def test_multiple_hits_are_ranked(self, guide_service):
        response = guide_service.search("guide")

        assert [hit.url for hit in response.hits] == ["/docs/routing/", "/docs/request/"]

    def test_no_match_is_ok_with_no_hits(self, guide_service):
        response = guide_service.search("websocket")

        assert response.status is SearchStatus.OK
        assert response.hits == []
        assert response.error is None

    def test_missing_index_is_unavailable_not_empty(self, tmp_path):
        service = SearchService(SearchSession(FileArtifactSource(tmp_path / "missing.json")))

        response = service.search("routing")

        assert response.status is SearchStatus.UNAVAILABLE
        assert not response.available
        assert response.hits == []
        assert "missing.json" in response.error

    @pytest.mark.parametrize("section", ["postings", "analyzer"])
    def test_wrongly_shaped_index_is_unavailable(self, guide_index, tmp_path, section):
        payload = {**index_to_dict(guide_index), section: []}
        path = tmp_path / "search_index.json"
        path.write_bytes(orjson.dumps(payload))
        session = SearchSession(FileArtifactSource(path))

        response = SearchService(session).search("routing")

        assert response.status is SearchStatus.UNAVAILABLE
        assert "malformed" in response.error
        assert session.state is SessionState.FAILED

    def test_unavailable_even_for_short_queries(self, tmp_path):
        service = SearchService(SearchSession(FileArtifactSource(tmp_path / "missing.json")))

        assert service.search("").status is SearchStatus.UNAVAILABLE

    @pytest.mark.parametrize("query", ["", "   ", "r", " r "])
    def test_short_queries_return_no_hits(self, guide_service, query):
        response = guide_service.search(query)

        assert response.status is SearchStatus.OK
        assert response.hits == []
        assert response.query == query

    def test_min_query_chars_is_configurable(self, guide_index, tmp_path):
        path = write_artifact(guide_index, tmp_path / "search_index.json")
        service = SearchService(SearchSession(FileArtifactSource(path)), SearchSettings(min_query_chars=8))

        assert service.search("routing").hits == []
        assert len(service.search("routing guide").hits) == 2

    def test_results_are_capped(self, docs_service):
        assert len(docs_service.search("request routing middleware").hits) == 4
        assert len(docs_service.search("request routing middleware", max_results=2).hits) == 2

    def test_default_cap_is_eight(self, tmp_path):
        corpus = Corpus.from_entries([(f"/p{i}/", f"Page {i}", "radix", "") for i in range(12)])
        path = write_artifact(build_index(corpus), tmp_path / "index.json")
        service = SearchService(SearchSession(FileArtifactSource(path)))

        hits = service.search("radix").hits

        assert [hit.url for hit in hits] == [f"/p{i}/" for i in range(8)]

    def test_snippet_falls_back_to_description(self, tmp_path):
        corpus = Corpus.from_entries([("/a/", "Cookies", "", "", "Reading cookies from a request")])
        path = write_artifact(build_index(corpus), tmp_path / "index.json")
        service = SearchService(SearchSession(FileArtifactSource(path)))

        (hit,) = service.search("cookies").hits

        assert hit.snippet == "Reading <mark>cookies</mark> from a request"

    def test_long_body_snippet_is_trimmed(self, tmp_path):
        body = "filler " * 30 + "the radix tree matcher " + "filler " * 30
        corpus = Corpus.from_entries([("/a/", "Router", body, "")])
        path = write_artifact(build_index(corpus), tmp_path / "index.json")
        service = SearchService(SearchSession(FileArtifactSource(path)))

        (hit,) = service.search("radix tree").hits

        assert hit.snippet.startswith("...")
        assert hit.snippet.endswith("...")
        assert "<mark>radix tree</mark>" in hit.snippet


class TestSearchResponse:
    def test_serializes_status_as_string(self):
        response = SearchResponse(query="q", hits=[SearchHit(title="T", url="/t/", score=1.5)])

        payload = orjson.loads(response.model_dump_json())

        assert payload["status"] == "ok"
        assert payload["hits"][0] == {"title": "T", "url": "/t/", "section": "", "snippet": "", "score": 1.5}

    def test_unavailable_factory(self):
        response = SearchResponse.unavailable("q", "boom")

        assert response.status is SearchStatus.UNAVAILABLE
        assert response.error == "boom"
        assert response.hits == []
