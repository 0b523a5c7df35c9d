"""In-memory document store and inverted index.

``DocumentStore`` keeps the per-document term frequencies and weighted
lengths together with the term -> document ids postings. Posting lists keep
the order in which documents were added.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import math
from types import MappingProxyType
from typing import Any

from bm25f_search.errors import DuplicateIdError, InvalidArgumentError


@dataclass(slots=True)
class DocumentRecord:
    """Term frequencies and weighted length of one document."""

    frequencies: dict[str, float] = field(default_factory=dict)
    length: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"freq": dict(self.frequencies), "length": self.length}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DocumentRecord:
        raw_freq = data.get("freq")
        if raw_freq is None:
            raw_freq = data.get("frequencies")
        if not isinstance(raw_freq, Mapping):
            raise InvalidArgumentError("document record must contain a 'freq' mapping")
        length = data.get("length", 0.0)
        if isinstance(length, bool) or not isinstance(length, (int, float)):
            raise InvalidArgumentError(f"document length must be a number, instead found: {length!r}")
        frequencies: dict[str, float] = {}
        for term, value in raw_freq.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidArgumentError(f"frequency of {term!r} must be a number, instead found: {value!r}")
            frequencies[str(term)] = float(value)
        return cls(frequencies=frequencies, length=float(length))


def normalize_doc_id(doc_id: Any) -> str:
    """Return the string key used for ``doc_id``.

    Ids are stored as strings so that ids survive a snapshot round trip, where
    every mapping key becomes a string. Integral floats map to the same key as
    the matching int, so ``1.0`` and ``1`` are one document.
    """

    if isinstance(doc_id, bool) or not isinstance(doc_id, (str, int, float)):
        msg = f"Document id must be a string or a number, instead found: {type(doc_id).__name__}"
        raise InvalidArgumentError(msg)
    if isinstance(doc_id, float):
        if not math.isfinite(doc_id):
            raise InvalidArgumentError(f"Document id must be a finite number, instead found: {doc_id!r}")
        if doc_id.is_integer():
            return str(int(doc_id))
    return str(doc_id)


class DocumentStore:
    """Document records plus the inverted index built from them."""

    def __init__(self) -> None:
        self._documents: dict[str, DocumentRecord] = {}
        self._postings: dict[str, list[str]] = {}
        self.total_corpus_length = 0.0

    def __contains__(self, doc_id: str) -> bool:
        return doc_id in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    @property
    def vocabulary_size(self) -> int:
        return len(self._postings)

    def records(self) -> Mapping[str, DocumentRecord]:
        return MappingProxyType(self._documents)

    def postings_by_term(self) -> Mapping[str, list[str]]:
        return MappingProxyType(self._postings)

    def get_document(self, doc_id: str) -> DocumentRecord | None:
        record = self._documents.get(doc_id)
        if record is None:
            return None
        return DocumentRecord(frequencies=dict(record.frequencies), length=record.length)

    def get_postings(self, term: str) -> list[str]:
        """Return a copy of the posting list for ``term``."""
        return list(self._postings.get(term, ()))

    def frequency(self, doc_id: str, term: str) -> float:
        return self._documents[doc_id].frequencies.get(term, 0.0)

    def add(self, doc_id: str, weighted_tokens: Sequence[tuple[Sequence[str], float]]) -> DocumentRecord:
        """Index one document from ``(tokens, field weight)`` pairs.

        The caller tokenizes every field first, so nothing here can fail
        half way through a document.
        """

        if doc_id in self._documents:
            raise DuplicateIdError(doc_id)

        record = DocumentRecord()
        freq = record.frequencies
        for tokens, weight in weighted_tokens:
            for token in tokens:
                if token not in freq:
                    freq[token] = weight
                    self._postings.setdefault(token, []).append(doc_id)
                else:
                    freq[token] += weight
            # Length can not be negative.
            record.length += len(tokens) * abs(weight)

        self._documents[doc_id] = record
        self.total_corpus_length += record.length
        return record

    def load(
        self,
        documents: Mapping[str, DocumentRecord],
        postings: Mapping[str, list[str]],
        total_corpus_length: float,
    ) -> None:
        self._documents = dict(documents)
        self._postings = {term: list(ids) for term, ids in postings.items()}
        self.total_corpus_length = total_corpus_length

    def clear(self) -> None:
        self._documents = {}
        self._postings = {}
        self.total_corpus_length = 0.0
