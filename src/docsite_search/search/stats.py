"""Statistical helpers for scoring.

Kept free of index types so the formulas can be unit tested on plain numbers.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import math


# Documents longer than this multiple of the average are scored as if they were exactly this long.
MAX_LENGTH_RATIO = 4.0


@dataclass(frozen=True)
class FieldLengthStats:
    """Aggregated token counts for one field across the corpus."""

    field: str
    total_terms: int
    document_count: int

    @property
    def average_length(self) -> float:
        if self.document_count == 0:
            return 0.0
        return self.total_terms / self.document_count


def compute_field_length_stats(field_lengths: Mapping[str, Mapping[int, int]]) -> dict[str, FieldLengthStats]:
    """Return aggregate stats for each field given per-document lengths."""

    stats: dict[str, FieldLengthStats] = {}
    for field_name, lengths in field_lengths.items():
        stats[field_name] = FieldLengthStats(
            field=field_name,
            total_terms=sum(max(length, 0) for length in lengths.values()),
            document_count=len(lengths),
        )
    return stats


def calculate_idf(doc_freq: int, total_docs: int, *, floor: float = 1e-6) -> float:
    """Return inverse document frequency with small-sample smoothing.

    The BM25 idf goes negative once a term appears in more than half the
    documents; docs sites are small enough for that to be common, so the
    value is shifted by one and floored to stay positive.
    """

    if total_docs <= 0:
        return 0.0
    df = max(0, min(doc_freq, total_docs))
    ratio = max((total_docs - df + 0.5) / (df + 0.5), floor)
    return max(math.log(ratio + floor) + 1.0, floor)


def saturated_tf(tf: int, doc_length: int, avg_doc_length: float, *, k1: float = 1.2, b: float = 0.75) -> float:
    """BM25 term-frequency component, normalized by field length.

    ``dl / avgdl`` is capped at ``MAX_LENGTH_RATIO`` so a very long page is
    not pushed below every short page that mentions the term once.
    """

    if tf <= 0:
        return 0.0
    ratio = min(doc_length / max(avg_doc_length, 1e-9), MAX_LENGTH_RATIO)
    return (tf * (k1 + 1)) / (tf + k1 * (1 - b + b * ratio))
