"""Analyzer utilities shared by the index builder and the query engine.

The analyzer is the one contract both halves of the search stack must agree
on: any divergence between build-time and query-time tokenization silently
breaks matching. To keep them aligned the analyzer is never constructed from
ambient settings at query time. ``AnalyzerConfig`` is written into the index
artifact and ``build_analyzer`` recreates the exact same pipeline from it.

The design follows Whoosh's composable tokenizer/filter pipeline.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping, MutableMapping, Sequence
from dataclasses import dataclass, field
import re
from typing import Any, Protocol


@dataclass
class Token:
    """Represents a token emitted by analyzers."""

    text: str
    position: int
    start_char: int
    end_char: int
    attributes: MutableMapping[str, Any] = field(default_factory=dict)

    def copy_with(self, **updates: Any) -> Token:
        data = {
            "text": self.text,
            "position": self.position,
            "start_char": self.start_char,
            "end_char": self.end_char,
            "attributes": dict(self.attributes),
        }
        data.update(updates)
        return Token(**data)


class Analyzer(Protocol):
    """Protocol implemented by analyzers."""

    def __call__(self, text: str) -> list[Token]:  # pragma: no cover - interface definition
        ...


class Tokenizer(Protocol):
    """Protocol implemented by tokenizers."""

    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    """Protocol implemented by token filters."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


# Runs of letters and digits; underscores, hyphens and punctuation all split.
ALPHANUMERIC_PATTERN = r"[^\W_]+"


class RegexTokenizer:
    """Regex-based tokenizer that yields alphanumeric runs."""

    def __init__(self, pattern: str = ALPHANUMERIC_PATTERN, flags: int = re.UNICODE) -> None:
        self.pattern = re.compile(pattern, flags)

    def __call__(self, text: str) -> Iterator[Token]:
        for position, match in enumerate(self.pattern.finditer(text)):
            yield Token(
                text=match.group(0),
                position=position,
                start_char=match.start(),
                end_char=match.end(),
            )


class LowercaseFilter:
    """Filter that lowercases token text."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text.islower():
                yield token
            else:
                yield token.copy_with(text=token.text.lower())


class MinLengthFilter:
    """Drops tokens shorter than ``min_length`` characters."""

    def __init__(self, min_length: int) -> None:
        if min_length < 1:
            raise ValueError(f"min_length must be >= 1, got {min_length}")
        self.min_length = min_length

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if len(token.text) >= self.min_length:
                yield token


DEFAULT_STOPWORDS = (
    "a",
    "an",
    "and",
    "are",
    "as",
    "at",
    "be",
    "but",
    "by",
    "for",
    "if",
    "in",
    "into",
    "is",
    "it",
    "no",
    "not",
    "of",
    "on",
    "or",
    "such",
    "that",
    "the",
    "their",
    "then",
    "there",
    "these",
    "they",
    "this",
    "to",
    "was",
    "will",
    "with",
)

_SUFFIX_RULES: tuple[tuple[str, str], ...] = (
    ("ization", "ize"),
    ("ational", "ate"),
    ("fulness", "ful"),
    ("ousness", "ous"),
    ("iveness", "ive"),
    ("tional", "tion"),
    ("biliti", "ble"),
    ("entli", "ent"),
    ("izer", "ize"),
    ("ator", "ate"),
    ("ation", "ate"),
    ("ness", ""),
    ("ment", ""),
)

_SIMPLE_SUFFIXES: tuple[str, ...] = ("ingly", "edly", "ing", "ed", "ly", "es", "s")

# Stems never shrink below this many characters.
_MIN_STEM_LENGTH = 2


class StopFilter:
    """Removes stopwords from the stream."""

    def __init__(self, stopwords: Sequence[str] | None = None) -> None:
        vocab = stopwords if stopwords is not None else DEFAULT_STOPWORDS
        self.stopwords = frozenset(word.lower() for word in vocab)

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text not in self.stopwords:
                yield token


class PorterStemFilter:
    """Applies a minimal Porter-style stemming routine."""

    def __init__(self) -> None:
        self._stem = _build_porter_stemmer()

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            stemmed = self._stem(token.text)
            yield token if stemmed == token.text else token.copy_with(text=stemmed)


def _build_porter_stemmer() -> Callable[[str], str]:
    """Return a very small Porter-like stemmer suited for docs search."""

    def stem(word: str) -> str:
        if word.isdigit():
            return word
        return _strip_complex_suffix(word) or _strip_simple_suffix(word) or word

    return stem


def _strip_complex_suffix(word: str) -> str | None:
    for suffix, replacement in _SUFFIX_RULES:
        if word.endswith(suffix) and len(word) - len(suffix) >= _MIN_STEM_LENGTH:
            return word[: -len(suffix)] + replacement
    return None


def _strip_simple_suffix(word: str) -> str | None:
    for suffix in _SIMPLE_SUFFIXES:
        if word.endswith(suffix) and len(word) - len(suffix) >= _MIN_STEM_LENGTH:
            # "ss" endings (class, access) are not plurals
            if suffix == "s" and word.endswith("ss"):
                return None
            return word[: -len(suffix)]
    return None


class AnalyzerPipeline:
    """Composable analyzer pipeline (tokenizer + filters)."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])

    def __call__(self, text: str) -> list[Token]:
        if not text:
            return []
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        tokens = list(stream)
        for idx, token in enumerate(tokens):  # normalize positions post-filtering
            token.position = idx
        return tokens


@dataclass(frozen=True)
class AnalyzerConfig:
    """Serializable description of the analyzer pipeline.

    Travels inside the index artifact so the query side rebuilds the same
    pipeline the index was built with.
    """

    min_token_length: int = 2
    stopwords: tuple[str, ...] | None = DEFAULT_STOPWORDS
    apply_stemming: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "min_token_length": self.min_token_length,
            "stopwords": list(self.stopwords) if self.stopwords is not None else None,
            "apply_stemming": self.apply_stemming,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AnalyzerConfig:
        stopwords = data.get("stopwords")
        return cls(
            min_token_length=int(data.get("min_token_length", 2)),
            stopwords=tuple(str(word) for word in stopwords) if stopwords is not None else None,
            apply_stemming=bool(data.get("apply_stemming", True)),
        )


class StandardAnalyzer:
    """Default analyzer: alphanumeric split, lowercase, stopwords, stemming, min length."""

    def __init__(self, config: AnalyzerConfig | None = None) -> None:
        self.config = config or AnalyzerConfig()
        filters: list[TokenFilter] = [LowercaseFilter()]
        if self.config.stopwords:
            filters.append(StopFilter(self.config.stopwords))
        if self.config.apply_stemming:
            filters.append(PorterStemFilter())
        # Applied last: no emitted token, stemmed or not, is shorter than the minimum.
        filters.append(MinLengthFilter(self.config.min_token_length))
        self.pipeline = AnalyzerPipeline(RegexTokenizer(), filters)

    def __call__(self, text: str) -> list[Token]:
        return self.pipeline(text)

    def terms(self, text: str) -> list[str]:
        """Return just the token texts, in order."""
        return [token.text for token in self(text)]


def build_analyzer(config: AnalyzerConfig | None = None) -> StandardAnalyzer:
    """Return the analyzer described by ``config``."""

    return StandardAnalyzer(config)
