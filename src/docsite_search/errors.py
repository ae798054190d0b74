"""Exception hierarchy shared by the build and query sides."""

from __future__ import annotations

from pathlib import Path


class DocsiteSearchError(Exception):
    """Base class for every error raised by docsite-search."""


class CorpusLoadError(DocsiteSearchError):
    """Raised when a content file cannot be read or parsed."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class IndexBuildError(DocsiteSearchError, ValueError):
    """Raised when a document cannot be added to the index."""


class ArtifactLoadError(DocsiteSearchError):
    """Raised when an index artifact is unreachable or malformed."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to load search index from {source}: {reason}")


class SessionClosedError(DocsiteSearchError, RuntimeError):
    """Raised when a closed search session is used."""
