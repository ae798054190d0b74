"""Build-time index construction.

``IndexBuilder`` consumes the documents of one site build and produces an
immutable ``SearchIndex``. Every schema field of every document goes through
the same analyzer the query engine will later rebuild from the artifact, so a
token can only be a key if the query side would produce it too.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
import logging
from types import MappingProxyType

from docsite_search.config import SearchSettings
from docsite_search.corpus import Corpus, Document
from docsite_search.errors import IndexBuildError
from docsite_search.observability.context import log_scope
from docsite_search.search.analyzers import AnalyzerConfig, build_analyzer
from docsite_search.search.models import InvertedIndex, Posting, SearchIndex
from docsite_search.search.schema import Schema, create_default_schema


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexBuildStats:
    """Summary of a finished build."""

    documents_indexed: int
    empty_documents: int
    unique_terms: int
    total_postings: int


class IndexBuilder:
    """Accumulates postings document by document; ``build`` freezes the result."""

    def __init__(self, schema: Schema | None = None, analyzer_config: AnalyzerConfig | None = None) -> None:
        self.schema = schema or create_default_schema()
        self.analyzer_config = analyzer_config or AnalyzerConfig()
        self._analyzer = build_analyzer(self.analyzer_config)
        self._documents: list[Document] = []
        self._urls: set[str] = set()
        self._postings: dict[str, dict[str, dict[int, int]]] = defaultdict(lambda: defaultdict(dict))
        self._empty_documents = 0

    @classmethod
    def from_settings(cls, settings: SearchSettings) -> IndexBuilder:
        schema = create_default_schema(
            title_weight=settings.title_weight,
            description_weight=settings.description_weight,
            body_weight=settings.body_weight,
        )
        analyzer_config = AnalyzerConfig(
            min_token_length=settings.min_token_length,
            stopwords=AnalyzerConfig().stopwords if settings.use_stopwords else None,
            apply_stemming=settings.apply_stemming,
        )
        return cls(schema, analyzer_config)

    def __len__(self) -> int:
        return len(self._documents)

    def add_document(self, document: Document) -> int:
        """Tokenize and index one document; returns its id.

        Documents must arrive in corpus order (ids ``0, 1, 2, ...``) so postings
        stay sorted by insertion order without a final sort.
        """

        expected_id = len(self._documents)
        if document.id != expected_id:
            raise IndexBuildError(f"Document ids must be sequential: expected {expected_id}, got {document.id}")
        if not document.url:
            raise IndexBuildError(f"Document {document.id} ({document.title!r}) has no url")
        if document.url in self._urls:
            raise IndexBuildError(f"Duplicate document url: {document.url}")

        token_count = 0
        for schema_field in self.schema:
            frequencies = Counter(self._analyzer.terms(document.field_text(schema_field.name)))
            token_count += sum(frequencies.values())
            field_terms = self._postings[schema_field.name]
            for term, frequency in frequencies.items():
                field_terms[term][document.id] = frequency

        if token_count == 0:
            self._empty_documents += 1
            logger.debug("Document %s has no indexable text", document.url)

        self._documents.append(document)
        self._urls.add(document.url)
        return document.id

    def add_documents(self, documents: Iterable[Document]) -> None:
        for document in documents:
            with log_scope(document=document.url):
                self.add_document(document)

    def stats(self) -> IndexBuildStats:
        vocabulary: set[str] = set()
        total_postings = 0
        for terms in self._postings.values():
            vocabulary.update(terms)
            total_postings += sum(len(doc_map) for doc_map in terms.values())
        return IndexBuildStats(
            documents_indexed=len(self._documents),
            empty_documents=self._empty_documents,
            unique_terms=len(vocabulary),
            total_postings=total_postings,
        )

    def build(self) -> SearchIndex:
        postings = {
            field_name: MappingProxyType(
                {
                    term: tuple(Posting(doc_id=doc_id, frequency=frequency) for doc_id, frequency in doc_map.items())
                    for term, doc_map in terms.items()
                }
            )
            for field_name, terms in self._postings.items()
        }
        index = SearchIndex(
            documents=Corpus(self._documents),
            inverted=InvertedIndex(MappingProxyType(postings)),
            schema=self.schema,
            analyzer_config=self.analyzer_config,
        )
        stats = self.stats()
        logger.info(
            "Built search index: %d documents (%d empty), %d terms, %d postings",
            stats.documents_indexed,
            stats.empty_documents,
            stats.unique_terms,
            stats.total_postings,
        )
        return index


def build_index(corpus: Iterable[Document], settings: SearchSettings | None = None) -> SearchIndex:
    """Index a whole corpus in one call."""

    builder = IndexBuilder.from_settings(settings or SearchSettings())
    builder.add_documents(corpus)
    return builder.build()
