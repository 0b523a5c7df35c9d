"""Statistical helpers for BM25F consolidation.

The functions stay independent of the document store so they can be unit
tested on plain numbers.
"""

from __future__ import annotations

from dataclasses import dataclass
import math

from bm25f_search.errors import InvalidArgumentError


@dataclass(frozen=True)
class CorpusStats:
    """Aggregated weighted length statistics of the whole collection."""

    total_docs: int
    total_corpus_length: float

    @property
    def average_length(self) -> float:
        if self.total_docs == 0:
            return 0.0
        return self.total_corpus_length / self.total_docs


def length_normalization(doc_length: float, avg_doc_length: float, *, b: float) -> float:
    """Return ``(1 - b) + b * dl / avgdl``."""

    # Lengths are never negative, so a zero average means every document is empty.
    if avg_doc_length <= 0:
        return 1.0
    return (1 - b) + b * (doc_length / avg_doc_length)


def saturate(freq: float, norm: float, *, k1: float) -> float:
    """Return the BM25 saturated term weight for a field weighted frequency.

    Negative frequencies come from negatively weighted fields. Only the
    magnitude is transformed and the sign of ``freq`` is re-applied, because
    ``k1 * norm + freq`` can flip the sign of the plain quotient.
    """

    if freq == 0:
        return 0.0
    denominator = (k1 * norm) + freq
    if denominator == 0:
        msg = f"frequency {freq} cancels the saturation term k1 * norm = {k1 * norm}; adjust field weights or bm25Params"
        raise InvalidArgumentError(msg)
    magnitude = abs((freq * (k1 + 1)) / denominator)
    return math.copysign(magnitude, freq)


def calculate_idf(doc_freq: int, total_docs: int, *, k: float = 1.0) -> float:
    """Return ``ln((N - df) / N + k)``."""

    return math.log(((total_docs - doc_freq) / total_docs) + k)
