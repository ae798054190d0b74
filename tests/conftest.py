"""Shared test fixtures and configuration."""

import os

import pytest

from docsite_search.config import SearchSettings
from docsite_search.corpus import Corpus
from docsite_search.search.indexer import build_index
from docsite_search.search.models import SearchIndex


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Keep developer DOCSITE_SEARCH_* variables and .env files out of tests."""
    for key in list(os.environ):
        if key.upper().startswith("DOCSITE_SEARCH_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def guide_corpus() -> Corpus:
    """Two-page corpus: both titles contain 'guide', only the first mentions routing."""
    return Corpus.from_entries(
        [
            ("/docs/routing/", "Routing Guide", "radix tree routing", "docs"),
            ("/docs/request/", "Request Guide", "headers and cookies", "docs"),
        ]
    )


@pytest.fixture
def guide_index(guide_corpus) -> SearchIndex:
    return build_index(guide_corpus, SearchSettings())


@pytest.fixture
def docs_corpus() -> Corpus:
    """A slightly larger corpus for ranking tests."""
    return Corpus.from_entries(
        [
            (
                "/getting-started/",
                "Getting Started",
                "Install the framework and create your first application. Routing is covered later.",
                "guide",
                "First steps",
            ),
            (
                "/routing/",
                "Routing",
                "The router matches request paths using a radix tree. Routing supports parameters and "
                "wildcards. Group routes to share middleware.",
                "guide",
                "How requests reach handlers",
            ),
            (
                "/middleware/",
                "Middleware",
                "Middleware wraps handlers. Logger middleware records every request; recover middleware "
                "catches panics.",
                "guide",
                "",
            ),
            (
                "/context/",
                "Context",
                "The context carries the request, response writer, path parameters and cookies.",
                "reference",
                "",
            ),
            ("/empty/", "", "", "reference"),
        ]
    )
