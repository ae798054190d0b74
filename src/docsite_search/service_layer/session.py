"""Page-session ownership of the loaded search index.

A ``SearchSession`` is the one explicitly-owned holder of the in-memory
index: it is constructed by whoever owns the page session, loads the artifact
lazily on first use, hands out a ``QueryEngine`` bound to it, and drops it on
``close()``. Nothing is kept in module globals.

A failed load is remembered rather than retried automatically; the caller
(the search UI) may call ``retry()`` once.
"""

from __future__ import annotations

from enum import Enum
import logging
from pathlib import Path
from types import TracebackType
from typing import Protocol

import httpx

from docsite_search.config import SearchSettings
from docsite_search.errors import ArtifactLoadError, SessionClosedError
from docsite_search.search.artifact import load_artifact, parse_artifact
from docsite_search.search.engine import QueryEngine
from docsite_search.search.models import SearchIndex


logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 10.0
MAX_RETRIES = 1


class ArtifactSource(Protocol):
    """Where the session fetches its artifact from."""

    @property
    def location(self) -> str:  # pragma: no cover - interface definition
        ...

    def fetch(self) -> SearchIndex:  # pragma: no cover - interface definition
        ...


class FileArtifactSource:
    """Artifact read from the local filesystem."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    @property
    def location(self) -> str:
        return str(self.path)

    def fetch(self) -> SearchIndex:
        return load_artifact(self.path)


class HttpArtifactSource:
    """Artifact fetched over HTTP, the way the browser loads it at page load."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._client = client

    @property
    def location(self) -> str:
        return self.url

    def fetch(self) -> SearchIndex:
        try:
            if self._client is not None:
                response = self._client.get(self.url, timeout=self.timeout)
            else:
                with httpx.Client(follow_redirects=True) as client:
                    response = client.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ArtifactLoadError(self.url, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise ArtifactLoadError(self.url, f"fetch failed: {exc}") from exc
        return parse_artifact(response.content, source=self.url)


class SessionState(str, Enum):
    UNLOADED = "unloaded"
    READY = "ready"
    FAILED = "failed"
    CLOSED = "closed"


class SearchSession:
    """Lazily loads one index per session and owns it until ``close()``."""

    def __init__(self, source: ArtifactSource, settings: SearchSettings | None = None) -> None:
        self.source = source
        self.settings = settings or SearchSettings()
        self.state = SessionState.UNLOADED
        self.last_error: ArtifactLoadError | None = None
        self._index: SearchIndex | None = None
        self._engine: QueryEngine | None = None
        self._retries_left = MAX_RETRIES

    def __enter__(self) -> SearchSession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def retries_left(self) -> int:
        return self._retries_left

    def index(self) -> SearchIndex:
        """Return the loaded index, fetching it on first use.

        Raises:
            ArtifactLoadError: The artifact could not be fetched or parsed (now or earlier).
            SessionClosedError: The session was closed.
        """

        if self.state is SessionState.CLOSED:
            raise SessionClosedError("Search session is closed")
        if self.state is SessionState.FAILED and self.last_error is not None:
            raise self.last_error
        if self._index is None:
            self._index = self._load()
        return self._index

    def engine(self) -> QueryEngine:
        """Return the query engine bound to this session's index."""

        index = self.index()
        if self._engine is None:
            self._engine = QueryEngine.from_settings(index, self.settings)
        return self._engine

    def retry(self) -> SearchIndex:
        """Attempt one more load after a failure.

        Only ``MAX_RETRIES`` retries are allowed per session; further calls
        re-raise the last load error.
        """

        if self.state is SessionState.CLOSED:
            raise SessionClosedError("Search session is closed")
        if self.state is not SessionState.FAILED:
            return self.index()
        if self._retries_left <= 0 and self.last_error is not None:
            raise self.last_error
        self._retries_left -= 1
        logger.info("Retrying search index load from %s", self.source.location)
        self.state = SessionState.UNLOADED
        self.last_error = None
        return self.index()

    def close(self) -> None:
        """Drop the loaded index; the session cannot be used afterwards."""

        if self.state is SessionState.CLOSED:
            return
        self._index = None
        self._engine = None
        self.state = SessionState.CLOSED
        logger.debug("Search session for %s closed", self.source.location)

    def _load(self) -> SearchIndex:
        try:
            index = self.source.fetch()
        except ArtifactLoadError as exc:
            self.state = SessionState.FAILED
            self.last_error = exc
            logger.warning("Search index unavailable: %s", exc)
            raise
        self.state = SessionState.READY
        logger.info("Loaded search index from %s: %d documents", self.source.location, index.doc_count)
        return index
