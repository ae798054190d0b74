"""Domain models for the Query UI contract.

Value objects are immutable (frozen=True) and carry no infrastructure
dependencies, so the search UI can serialize them straight to JSON.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SearchStatus(str, Enum):
    """Outcome of a search call, independent of how many hits it produced."""

    OK = "ok"
    UNAVAILABLE = "unavailable"


class SearchHit(BaseModel):
    """Value object for a single result row."""

    model_config = ConfigDict(frozen=True)

    title: str
    url: str
    section: str = ""
    snippet: str = ""
    score: float


class SearchResponse(BaseModel):
    """Value object for a complete search response.

    ``status`` distinguishes "the index could not be loaded" from "the index
    loaded and nothing matched"; the latter is ``OK`` with no hits.
    """

    model_config = ConfigDict(frozen=True)

    query: str
    status: SearchStatus = SearchStatus.OK
    hits: list[SearchHit] = Field(default_factory=list)
    error: str | None = None

    @property
    def available(self) -> bool:
        return self.status is SearchStatus.OK

    @classmethod
    def unavailable(cls, query: str, error: str) -> "SearchResponse":
        return cls(query=query, status=SearchStatus.UNAVAILABLE, error=error)
