"""Index artifact serialization.

The artifact is the single static asset the browser fetches once per page
session. It carries everything the query side needs, including the analyzer
configuration and field weights, so no build-time settings leak into
query-time behaviour:

    {
      "format": "docsite-search",
      "version": 1,
      "analyzer": {"min_token_length": 2, "stopwords": [...], "apply_stemming": true},
      "schema": {"fields": [{"name": "title", "boost": 10.0}, ...]},
      "documents": [{"id": 0, "title": "...", "url": "...", ...}, ...],
      "postings": {"title": {"rout": [[0, 1]]}, "body": {...}}
    }

Postings are written as ``[doc_id, term_frequency]`` pairs to keep the asset
small. A ``.js`` target wraps the same JSON in ``window.searchIndex = ...;``
so themes can load it with a plain ``<script>`` tag.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from pathlib import Path
import re
from types import MappingProxyType
from typing import Any

import orjson

from docsite_search.corpus import Corpus, Document
from docsite_search.errors import ArtifactLoadError
from docsite_search.search.analyzers import AnalyzerConfig, build_analyzer
from docsite_search.search.models import InvertedIndex, Posting, SearchIndex
from docsite_search.search.schema import Schema


logger = logging.getLogger(__name__)

ARTIFACT_FORMAT = "docsite-search"
ARTIFACT_VERSION = 1
JS_GLOBAL = "window.searchIndex"

_JS_WRAPPER_PATTERN = re.compile(rf"\A\s*{re.escape(JS_GLOBAL)}\s*=\s*(.*?)\s*;?\s*\Z", re.DOTALL)


def index_to_dict(index: SearchIndex) -> dict[str, Any]:
    """Return the JSON-ready artifact payload for ``index``."""

    return {
        "format": ARTIFACT_FORMAT,
        "version": ARTIFACT_VERSION,
        "analyzer": index.analyzer_config.to_dict(),
        "schema": index.schema.to_dict(),
        "documents": [document.to_dict() for document in index.iter_documents()],
        "postings": {
            field_name: {term: [posting.to_list() for posting in postings] for term, postings in terms.items()}
            for field_name, terms in index.inverted.postings.items()
        },
    }


def dump_artifact(index: SearchIndex, *, as_script: bool = False) -> bytes:
    """Serialize ``index`` to artifact bytes (JSON, or a JS assignment when ``as_script``)."""

    payload = orjson.dumps(index_to_dict(index))
    if as_script:
        return JS_GLOBAL.encode("utf-8") + b" = " + payload + b";\n"
    return payload


def write_artifact(index: SearchIndex, path: Path | str) -> Path:
    """Atomically write the artifact; a ``.js`` suffix selects the script wrapper."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    data = dump_artifact(index, as_script=target.suffix == ".js")
    tmp_path = target.with_name(target.name + ".tmp")
    try:
        tmp_path.write_bytes(data)
        tmp_path.replace(target)
    finally:
        tmp_path.unlink(missing_ok=True)
    logger.info("Wrote search index artifact %s (%d bytes)", target, len(data))
    return target


def parse_artifact(data: bytes | str, *, source: str = "<memory>") -> SearchIndex:
    """Parse artifact bytes (JSON or JS-wrapped) into a ``SearchIndex``.

    Raises:
        ArtifactLoadError: The payload is not a well-formed artifact of a supported version.
    """

    if isinstance(data, bytes):
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ArtifactLoadError(source, f"not UTF-8: {exc}") from exc
    else:
        text = data
    wrapped = _JS_WRAPPER_PATTERN.match(text)
    if wrapped:
        text = wrapped.group(1)

    try:
        payload = orjson.loads(text)
    except orjson.JSONDecodeError as exc:
        raise ArtifactLoadError(source, f"invalid JSON: {exc}") from exc

    return index_from_dict(payload, source=source)


def index_from_dict(payload: Any, *, source: str = "<memory>") -> SearchIndex:
    """Rebuild a ``SearchIndex`` from a decoded artifact payload."""

    if not isinstance(payload, Mapping):
        raise ArtifactLoadError(source, "artifact must be a JSON object")
    if payload.get("format") != ARTIFACT_FORMAT:
        raise ArtifactLoadError(source, f"unexpected format {payload.get('format')!r}")
    if payload.get("version") != ARTIFACT_VERSION:
        raise ArtifactLoadError(source, f"unsupported version {payload.get('version')!r}")

    try:
        analyzer_config = AnalyzerConfig.from_dict(payload["analyzer"])
        build_analyzer(analyzer_config)  # rejects configs the query side cannot rebuild
        schema = Schema.from_dict(payload["schema"])
        documents = Corpus(Document.from_dict(entry) for entry in payload["documents"])
        inverted = _postings_from_dict(payload["postings"], schema, len(documents))
    except ArtifactLoadError:
        raise
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise ArtifactLoadError(source, f"malformed artifact: {exc!r}") from exc

    return SearchIndex(documents=documents, inverted=inverted, schema=schema, analyzer_config=analyzer_config)


def load_artifact(path: Path | str) -> SearchIndex:
    """Read and parse an artifact file."""

    artifact_path = Path(path)
    try:
        data = artifact_path.read_bytes()
    except OSError as exc:
        raise ArtifactLoadError(str(artifact_path), f"cannot read file: {exc}") from exc
    return parse_artifact(data, source=str(artifact_path))


def _postings_from_dict(raw: Mapping[str, Any], schema: Schema, doc_count: int) -> InvertedIndex:
    postings: dict[str, Mapping[str, tuple[Posting, ...]]] = {}
    if not isinstance(raw, Mapping):
        raise ValueError("postings must be an object keyed by field")
    for field_name, terms in raw.items():
        if field_name not in schema:
            raise ValueError(f"postings for unknown field '{field_name}'")
        if not isinstance(terms, Mapping):
            raise ValueError(f"postings for field '{field_name}' must be an object keyed by term")
        field_terms: dict[str, tuple[Posting, ...]] = {}
        for term, entries in terms.items():
            if not term:
                raise ValueError(f"empty term in field '{field_name}'")
            decoded = tuple(Posting.from_list(entry) for entry in entries)
            for posting in decoded:
                if not 0 <= posting.doc_id < doc_count:
                    raise ValueError(f"posting for '{term}' references unknown document {posting.doc_id}")
            field_terms[term] = decoded
        postings[field_name] = MappingProxyType(field_terms)
    return InvertedIndex(MappingProxyType(postings))
