"""Content corpus: the documents handed over by the static-site generator.

The search stack only depends on the ``(url, title, body, section)`` tuple
contract. The loaders in this module are adapters that turn the common ways a
site build exposes its pages (a JSON dump or a Markdown content tree) into
that contract. Any read or parse failure is fatal and names the offending
file.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
import logging
from pathlib import Path, PurePosixPath
import re
from typing import Any

import orjson

from docsite_search.errors import CorpusLoadError
from docsite_search.observability.context import log_scope
from docsite_search.utils.front_matter import FrontMatterError, parse_front_matter


logger = logging.getLogger(__name__)

_INDEX_PAGES = {"_index.md", "index.md"}
_HEADING_PATTERN = re.compile(r"^#[ \t]+(.+?)[ \t]*#*[ \t]*$", re.MULTILINE)
_FENCE_PATTERN = re.compile(r"^[ \t]*(```|~~~).*$", re.MULTILINE)
_IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK_PATTERN = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_HTML_TAG_PATTERN = re.compile(r"<[^>]+>")
_SHORTCODE_PATTERN = re.compile(r"\{[{%].*?[%}]\}", re.DOTALL)
_LINE_PREFIX_PATTERN = re.compile(r"^[ \t]{0,3}(?:#{1,6}[ \t]+|>[ \t]?|[-*+][ \t]+|\d+\.[ \t]+)", re.MULTILINE)
_EMPHASIS_PATTERN = re.compile(r"[*`]{1,3}|(?<!\w)_{1,3}|_{1,3}(?!\w)")
_BLANK_RUN_PATTERN = re.compile(r"\n{3,}")


@dataclass(frozen=True)
class Document:
    """One indexable page. ``id`` is its position in the corpus."""

    id: int
    title: str
    body: str
    url: str
    section: str = ""
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "url": self.url,
            "section": self.section,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Document:
        return cls(
            id=int(data["id"]),
            title=str(data.get("title") or ""),
            body=str(data.get("body") or ""),
            url=str(data["url"]),
            section=str(data.get("section") or ""),
            description=str(data.get("description") or ""),
        )

    def field_text(self, field_name: str) -> str:
        """Return the raw text of an indexed field."""
        value = getattr(self, field_name, None)
        if not isinstance(value, str):
            raise KeyError(f"Document has no text field '{field_name}'")
        return value


class Corpus(Sequence[Document]):
    """Ordered, immutable collection of documents with ids ``0..n-1``."""

    def __init__(self, documents: Iterable[Document] = ()) -> None:
        self._documents = tuple(documents)
        for position, document in enumerate(self._documents):
            if document.id != position:
                raise ValueError(f"Document ids must match corpus order: expected {position}, got {document.id}")

    def __getitem__(self, index):  # type: ignore[override]
        return self._documents[index]

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __repr__(self) -> str:
        return f"Corpus({len(self._documents)} documents)"

    @classmethod
    def from_entries(cls, entries: Iterable[Sequence[str]]) -> Corpus:
        """Build a corpus from ``(url, title, body, section[, description])`` tuples."""

        documents: list[Document] = []
        for position, entry in enumerate(entries):
            if len(entry) not in (4, 5):
                raise ValueError(
                    f"Corpus entry {position} must be (url, title, body, section[, description]), got {len(entry)} items"
                )
            url, title, body, section, *rest = entry
            documents.append(
                Document(
                    id=position,
                    title=title or "",
                    body=body or "",
                    url=url,
                    section=section or "",
                    description=(rest[0] if rest else "") or "",
                )
            )
        return cls(documents)

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> Corpus:
        """Build a corpus from mappings carrying url/title/body/section/description keys."""

        entries = []
        for position, record in enumerate(records):
            if not isinstance(record, Mapping) or not record.get("url"):
                raise ValueError(f"Corpus record {position} must be an object with a non-empty 'url'")
            entries.append(
                (
                    str(record["url"]),
                    str(record.get("title") or ""),
                    str(record.get("body") or ""),
                    str(record.get("section") or ""),
                    str(record.get("description") or ""),
                )
            )
        return cls.from_entries(entries)


def load_json_corpus(path: Path | str) -> Corpus:
    """Load a corpus from a JSON array of page objects."""

    corpus_path = Path(path)
    try:
        payload = orjson.loads(corpus_path.read_bytes())
    except OSError as exc:
        raise CorpusLoadError(corpus_path, f"cannot read corpus file: {exc}") from exc
    except orjson.JSONDecodeError as exc:
        raise CorpusLoadError(corpus_path, f"invalid JSON: {exc}") from exc

    if not isinstance(payload, list):
        raise CorpusLoadError(corpus_path, "corpus file must contain a JSON array of pages")

    try:
        corpus = Corpus.from_records(payload)
    except ValueError as exc:
        raise CorpusLoadError(corpus_path, str(exc)) from exc

    logger.info("Loaded %d documents from %s", len(corpus), corpus_path)
    return corpus


def load_markdown_corpus(content_root: Path | str) -> Corpus:
    """Walk a static-site content directory and build a corpus from its pages.

    Pages flagged ``draft: true`` are skipped, as are hidden directories and
    underscore-prefixed partials (except ``_index.md`` section pages).
    """

    root = Path(content_root)
    if not root.is_dir():
        raise CorpusLoadError(root, "content directory does not exist")

    entries: list[tuple[str, str, str, str, str]] = []
    skipped = 0
    for markdown_path in _discover_markdown_files(root):
        with log_scope(source=str(markdown_path)):
            entry = _load_markdown_page(root, markdown_path)
            if entry is None:
                logger.debug("Skipping draft page %s", markdown_path)
                skipped += 1
                continue
            entries.append(entry)

    corpus = Corpus.from_entries(entries)
    logger.info("Loaded %d documents from %s (%d drafts skipped)", len(corpus), root, skipped)
    return corpus


def _discover_markdown_files(root: Path) -> Iterator[Path]:
    for markdown_path in sorted(root.rglob("*.md")):
        relative = markdown_path.relative_to(root)
        if any(part.startswith(".") for part in relative.parts):
            continue
        if markdown_path.name.startswith("_") and markdown_path.name not in _INDEX_PAGES:
            continue
        yield markdown_path


def _load_markdown_page(root: Path, markdown_path: Path) -> tuple[str, str, str, str, str] | None:
    try:
        raw = markdown_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise CorpusLoadError(markdown_path, f"cannot read page: {exc}") from exc

    try:
        front_matter, markdown = parse_front_matter(raw)
    except FrontMatterError as exc:
        raise CorpusLoadError(markdown_path, str(exc)) from exc

    if front_matter.get("draft") is True:
        return None

    relative = PurePosixPath(markdown_path.relative_to(root).as_posix())
    url = _resolve_url(front_matter, relative)
    title = str(front_matter.get("title") or _first_heading(markdown) or _title_from_path(relative))
    description = str(front_matter.get("description") or "")
    section = str(front_matter.get("section") or _section_from_path(relative))
    return url, title, markdown_to_text(markdown), section, description


def _resolve_url(front_matter: Mapping[str, Any], relative: PurePosixPath) -> str:
    explicit = front_matter.get("url") or front_matter.get("path")
    if isinstance(explicit, str) and explicit.strip():
        explicit = explicit.strip()
        if "://" in explicit:
            return explicit
        return "/" + explicit.strip("/") + ("/" if explicit.strip("/") else "")

    if relative.name in _INDEX_PAGES:
        parts = relative.parent.parts
    else:
        parts = (*relative.parent.parts, relative.stem)
    if not parts:
        return "/"
    return "/" + "/".join(parts) + "/"


def _section_from_path(relative: PurePosixPath) -> str:
    parts = relative.parent.parts
    return parts[0] if parts else ""


def _first_heading(markdown: str) -> str | None:
    match = _HEADING_PATTERN.search(markdown)
    return match.group(1).strip() if match else None


def _title_from_path(relative: PurePosixPath) -> str:
    stem = relative.parent.name if relative.name in _INDEX_PAGES else relative.stem
    return stem.replace("-", " ").replace("_", " ").strip().title()


def markdown_to_text(markdown: str) -> str:
    """Reduce Markdown to the plain text a reader sees."""

    text = _SHORTCODE_PATTERN.sub(" ", markdown)
    text = _FENCE_PATTERN.sub("", text)
    text = _IMAGE_PATTERN.sub(r"\1", text)
    text = _LINK_PATTERN.sub(r"\1", text)
    text = _HTML_TAG_PATTERN.sub(" ", text)
    text = _LINE_PREFIX_PATTERN.sub("", text)
    text = _EMPHASIS_PATTERN.sub("", text)
    text = "\n".join(line.strip() for line in text.splitlines())
    return _BLANK_RUN_PATTERN.sub("\n\n", text).strip()
