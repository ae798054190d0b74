"""Search data models."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from docsite_search.corpus import Corpus, Document
from docsite_search.search.analyzers import AnalyzerConfig, StandardAnalyzer, build_analyzer
from docsite_search.search.schema import Schema


@dataclass(frozen=True, slots=True)
class Posting:
    """A posting represents a term occurring ``frequency`` times in a document field."""

    doc_id: int
    frequency: int

    def to_list(self) -> list[int]:
        """Compact ``[doc_id, frequency]`` form used by the artifact."""
        return [self.doc_id, self.frequency]

    @classmethod
    def from_list(cls, data: Any) -> Posting:
        doc_id, frequency = data
        return cls(doc_id=int(doc_id), frequency=int(frequency))


@dataclass(frozen=True)
class InvertedIndex:
    """Per-field mapping of term to postings ordered by document id."""

    postings: Mapping[str, Mapping[str, tuple[Posting, ...]]]

    def get_postings(self, field_name: str, term: str) -> tuple[Posting, ...]:
        """Return postings for a specific term in a field."""
        return self.postings.get(field_name, {}).get(term, ())

    def field_postings(self, field_name: str) -> Mapping[str, tuple[Posting, ...]]:
        return self.postings.get(field_name, MappingProxyType({}))

    def terms(self) -> set[str]:
        """Every term present in any field."""
        vocabulary: set[str] = set()
        for terms in self.postings.values():
            vocabulary.update(terms)
        return vocabulary

    def __contains__(self, term: object) -> bool:
        return any(term in terms for terms in self.postings.values())

    def document_frequency(self, term: str) -> int:
        """Number of distinct documents containing ``term`` in any field."""
        doc_ids: set[int] = set()
        for terms in self.postings.values():
            doc_ids.update(posting.doc_id for posting in terms.get(term, ()))
        return len(doc_ids)


@dataclass(frozen=True)
class SearchIndex:
    """Immutable, query-ready index: the document table plus its inverted index.

    ``field_lengths`` (tokens per document per field) is derived from the
    postings, so it never needs to be serialized.
    """

    documents: Corpus
    inverted: InvertedIndex
    schema: Schema
    analyzer_config: AnalyzerConfig
    field_lengths: Mapping[str, Mapping[int, int]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "field_lengths", _derive_field_lengths(self.inverted))

    @property
    def doc_count(self) -> int:
        return len(self.documents)

    def get_document(self, doc_id: int) -> Document:
        return self.documents[doc_id]

    def analyzer(self) -> StandardAnalyzer:
        """Return the analyzer this index was built with."""
        return build_analyzer(self.analyzer_config)

    def iter_documents(self) -> Iterator[Document]:
        return iter(self.documents)


def _derive_field_lengths(inverted: InvertedIndex) -> Mapping[str, Mapping[int, int]]:
    """Reconstruct per-document field lengths by summing term frequencies."""
    field_lengths: dict[str, Mapping[int, int]] = {}
    for field_name, terms in inverted.postings.items():
        doc_lengths: dict[int, int] = {}
        for posting_list in terms.values():
            for posting in posting_list:
                doc_lengths[posting.doc_id] = doc_lengths.get(posting.doc_id, 0) + posting.frequency
        field_lengths[field_name] = MappingProxyType(doc_lengths)
    return MappingProxyType(field_lengths)
