"""Query-time ranking over a loaded ``SearchIndex``.

Multi-token policy: by default a document matches when it contains at least
one query token (OR), and its score is multiplied by the fraction of distinct
query tokens it contains (coordination), so pages covering more of the query
rank higher. ``MatchPolicy.ALL`` switches to strict AND.

Per-token weight is ``field boost * tf_weight * idf`` summed over fields:

- ``tf_weight`` is the raw term frequency, or the BM25 saturated frequency
  normalized by field length when ``length_normalization`` is on;
- ``idf`` is 1.0 unless ``idf_weighting`` is on.

Results are ordered by descending score; equal scores keep corpus order.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
import heapq
import logging

from docsite_search.config import SearchSettings
from docsite_search.corpus import Document
from docsite_search.search.models import SearchIndex
from docsite_search.search.stats import calculate_idf, compute_field_length_stats, saturated_tf


logger = logging.getLogger(__name__)


def _ranking_key(item: tuple[int, float]) -> tuple[float, int]:
    doc_id, score = item
    return -score, doc_id


class MatchPolicy(str, Enum):
    """How multi-token queries select documents."""

    ANY = "any"
    ALL = "all"


@dataclass(frozen=True)
class RankedResult:
    """A matching document and its score."""

    document: Document
    score: float

    @property
    def doc_id(self) -> int:
        return self.document.id


class QueryEngine:
    """Rank documents of one immutable index.

    The engine keeps no per-query state; every ``search`` call is independent
    and only reads the index.
    """

    def __init__(
        self,
        index: SearchIndex,
        *,
        match_policy: MatchPolicy | str = MatchPolicy.ANY,
        length_normalization: bool = True,
        idf_weighting: bool = True,
        k1: float = 1.2,
        b: float = 0.75,
    ) -> None:
        self.index = index
        self.match_policy = MatchPolicy(match_policy)
        self.length_normalization = length_normalization
        self.idf_weighting = idf_weighting
        self.k1 = k1
        self.b = b
        self._analyzer = index.analyzer()
        self._field_stats = compute_field_length_stats(index.field_lengths)

    @classmethod
    def from_settings(cls, index: SearchIndex, settings: SearchSettings) -> QueryEngine:
        return cls(
            index,
            match_policy=settings.match_policy,
            length_normalization=settings.length_normalization,
            idf_weighting=settings.idf_weighting,
        )

    def tokenize_query(self, query: str) -> tuple[str, ...]:
        """Analyze ``query`` with the index's analyzer, dropping repeated terms."""

        seen: set[str] = set()
        terms: list[str] = []
        for term in self._analyzer.terms(query or ""):
            if term in seen:
                continue
            seen.add(term)
            terms.append(term)
        return tuple(terms)

    def search(self, query: str, *, limit: int | None = None) -> Iterator[RankedResult]:
        """Yield ranked results for ``query``.

        The returned iterator is single-pass: scoring runs on the first
        ``next()`` and iterating again requires calling ``search`` again. An
        empty query, a query with no usable tokens, or one whose tokens are all
        unknown yields nothing.
        """

        terms = self.tokenize_query(query)
        if not terms or (limit is not None and limit <= 0):
            return

        scores = self._score(terms)
        if not scores:
            logger.debug("No documents matched %d query terms", len(terms))
            return

        if limit is not None and limit < len(scores):
            ordered = heapq.nsmallest(limit, scores.items(), key=_ranking_key)
        else:
            ordered = sorted(scores.items(), key=_ranking_key)

        for doc_id, score in ordered:
            yield RankedResult(document=self.index.get_document(doc_id), score=score)

    def _score(self, terms: tuple[str, ...]) -> dict[int, float]:
        doc_scores: dict[int, float] = defaultdict(float)
        matched_terms: dict[int, set[str]] = defaultdict(set)
        total_docs = self.index.doc_count

        for term in terms:
            idf = calculate_idf(self.index.inverted.document_frequency(term), total_docs) if self.idf_weighting else 1.0
            for schema_field in self.index.schema:
                if schema_field.boost <= 0:
                    continue
                postings = self.index.inverted.get_postings(schema_field.name, term)
                if not postings:
                    continue
                doc_lengths = self.index.field_lengths.get(schema_field.name, {})
                stats = self._field_stats.get(schema_field.name)
                avg_length = stats.average_length if stats else 0.0
                for posting in postings:
                    if self.length_normalization:
                        doc_length = doc_lengths.get(posting.doc_id, posting.frequency)
                        weight = saturated_tf(posting.frequency, doc_length, avg_length, k1=self.k1, b=self.b)
                    else:
                        weight = float(posting.frequency)
                    if weight <= 0:
                        continue
                    doc_scores[posting.doc_id] += schema_field.boost * weight * idf
                    matched_terms[posting.doc_id].add(term)

        term_count = len(terms)
        ranked: dict[int, float] = {}
        for doc_id, score in doc_scores.items():
            matched = len(matched_terms[doc_id])
            if self.match_policy is MatchPolicy.ALL and matched < term_count:
                continue
            ranked[doc_id] = score * (matched / term_count)
        return ranked
