"""Search service implementing the Query UI contract.

Takes a raw query string and returns an ordered list of
``{title, url, snippet, score}`` hits. Load failures come back as an
``UNAVAILABLE`` response, never as an empty hit list, so the UI can show a
"search unavailable" state instead of "no results".
"""

import logging

from docsite_search.config import SearchSettings
from docsite_search.domain.search import SearchHit, SearchResponse
from docsite_search.errors import ArtifactLoadError
from docsite_search.observability.context import log_scope
from docsite_search.search.snippet import build_snippet
from docsite_search.service_layer.session import SearchSession


logger = logging.getLogger(__name__)


class SearchService:
    """High-level search facade over a ``SearchSession``."""

    def __init__(self, session: SearchSession, settings: SearchSettings | None = None):
        """Initialize the service.

        Args:
            session: Owner of the loaded index
            settings: Result limits and snippet sizing (defaults to the session's settings)
        """
        self.session = session
        self.settings = settings or session.settings

    def search(self, raw_query: str, max_results: int | None = None) -> SearchResponse:
        """Run ``raw_query`` and build the hits the search UI renders.

        Args:
            raw_query: Text typed by the user
            max_results: Override for ``settings.max_results``

        Returns:
            SearchResponse with status OK (possibly no hits) or UNAVAILABLE
        """
        query = raw_query.strip()
        limit = max_results if max_results is not None else self.settings.max_results

        with log_scope(query=query):
            try:
                engine = self.session.engine()
            except ArtifactLoadError as exc:
                return SearchResponse.unavailable(raw_query, str(exc))

            if len(query) < self.settings.min_query_chars:
                logger.debug("Query shorter than %d characters", self.settings.min_query_chars)
                return SearchResponse(query=raw_query)

            hits = [
                SearchHit(
                    title=result.document.title,
                    url=result.document.url,
                    section=result.document.section,
                    snippet=build_snippet(
                        result.document.body or result.document.description,
                        query,
                        max_chars=self.settings.snippet_length,
                        context_chars=self.settings.snippet_context,
                    ),
                    score=result.score,
                )
                for result in engine.search(query, limit=limit)
            ]

        logger.debug("Search returned %d hits", len(hits))
        return SearchResponse(query=raw_query, hits=hits)
