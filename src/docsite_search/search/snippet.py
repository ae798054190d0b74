"""Result snippets with highlighted query words.

A snippet is a window of at most ``max_chars`` characters that starts
``context_chars`` before the first match, nudged outward to whole words, with
``...`` marking trimmed edges. Highlighting wraps each match in
``<mark>...</mark>`` and HTML-escapes everything else, so the result can be
dropped into the results list as-is.
"""

from __future__ import annotations

from collections.abc import Sequence
import html
import re

from docsite_search.search.analyzers import ALPHANUMERIC_PATTERN


ELLIPSIS = "..."
DEFAULT_MAX_CHARS = 120
DEFAULT_CONTEXT_CHARS = 40

_WORD_PATTERN = re.compile(ALPHANUMERIC_PATTERN, re.UNICODE)
_WHITESPACE_PATTERN = re.compile(r"\s+")
# Do not move a window edge further than this to land on whitespace.
_MAX_BOUNDARY_SHIFT = 15


def highlight_terms(query: str) -> list[str]:
    """Return the raw strings to highlight for ``query``, longest first.

    The whole (trimmed) query comes first so multi-word matches win, then the
    individual words of two or more characters.
    """

    stripped = query.strip()
    if not stripped:
        return []
    candidates = [stripped, *(match.group(0) for match in _WORD_PATTERN.finditer(stripped))]
    seen: set[str] = set()
    terms: list[str] = []
    for candidate in candidates:
        key = candidate.lower()
        if len(candidate) < 2 or key in seen:
            continue
        seen.add(key)
        terms.append(candidate)
    return sorted(terms, key=len, reverse=True)


def find_first_match(text: str, terms: Sequence[str]) -> tuple[int, int] | None:
    """Return ``(start, length)`` of the earliest case-insensitive match of any term."""

    lowered = text.lower()
    best: tuple[int, int] | None = None
    for term in terms:
        if not term:
            continue
        position = lowered.find(term.lower())
        if position == -1:
            continue
        if best is None or position < best[0] or (position == best[0] and len(term) > best[1]):
            best = (position, len(term))
    return best


def _snap_start(text: str, start: int) -> int:
    if start <= 0:
        return 0
    window = text[max(0, start - _MAX_BOUNDARY_SHIFT) : start]
    boundaries = list(_WHITESPACE_PATTERN.finditer(window))
    if boundaries:
        return start - len(window) + boundaries[-1].end()
    return start


def _snap_end(text: str, end: int) -> int:
    if end >= len(text):
        return len(text)
    if text[end].isspace():
        return end
    # Pull back to the previous whitespace so the last word is not cut.
    lookback = text[max(0, end - _MAX_BOUNDARY_SHIFT) : end]
    boundaries = list(_WHITESPACE_PATTERN.finditer(lookback))
    if boundaries:
        return end - len(lookback) + boundaries[-1].start()
    return end


def extract_snippet(
    text: str,
    terms: Sequence[str],
    *,
    max_chars: int = DEFAULT_MAX_CHARS,
    context_chars: int = DEFAULT_CONTEXT_CHARS,
) -> tuple[str, bool, bool]:
    """Cut the snippet window out of ``text``.

    Returns:
        Tuple of (window_text, trimmed_start, trimmed_end).
    """

    if not text:
        return "", False, False

    match = find_first_match(text, terms)
    start = 0 if match is None else _snap_start(text, max(0, match[0] - context_chars))
    end = min(len(text), start + max_chars)
    if end < len(text):
        snapped = _snap_end(text, end)
        if match is None or snapped >= match[0] + match[1]:
            end = snapped

    window = text[start:end].strip()
    return window, start > 0, end < len(text)


def highlight(text: str, terms: Sequence[str], *, max_highlights: int | None = None) -> str:
    """HTML-escape ``text`` and wrap case-insensitive matches of ``terms`` in ``<mark>``."""

    if not text:
        return ""

    matches: list[tuple[int, int]] = []
    for term in terms:
        if not term or len(term) < 2:
            continue
        pattern = re.compile(re.escape(term), re.IGNORECASE)
        matches.extend((m.start(), m.end()) for m in pattern.finditer(text))

    # Earliest first, longest first at the same offset; drop overlaps.
    matches.sort(key=lambda span: (span[0], -(span[1] - span[0])))
    selected: list[tuple[int, int]] = []
    for start, end in matches:
        if selected and start < selected[-1][1]:
            continue
        selected.append((start, end))
        if max_highlights is not None and len(selected) >= max_highlights:
            break

    parts: list[str] = []
    cursor = 0
    for start, end in selected:
        parts.append(html.escape(text[cursor:start]))
        parts.append(f"<mark>{html.escape(text[start:end])}</mark>")
        cursor = end
    parts.append(html.escape(text[cursor:]))
    return "".join(parts)


def build_snippet(
    text: str,
    query: str,
    *,
    max_chars: int = DEFAULT_MAX_CHARS,
    context_chars: int = DEFAULT_CONTEXT_CHARS,
) -> str:
    """Build the highlighted snippet shown under a search result.

    This is the main entry point for snippet generation.
    """

    if not text:
        return ""
    terms = highlight_terms(query)
    window, trimmed_start, trimmed_end = extract_snippet(
        text, terms, max_chars=max_chars, context_chars=context_chars
    )
    snippet = highlight(window, terms)
    return (ELLIPSIS if trimmed_start else "") + snippet + (ELLIPSIS if trimmed_end else "")
