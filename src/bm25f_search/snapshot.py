"""Snapshot codec for exporting and re-importing engine learnings.

A snapshot is a JSON array with four objects::

    [config, {"totalCorpusLength": ..., "totalDocs": ...}, documents, invertedIndex]

``documents`` maps each id to ``{"freq": {term: weight}, "length": n}`` and
``invertedIndex`` maps each term to its ordered list of ids. The layout has no
version marker; callers track compatibility themselves.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import orjson

from bm25f_search.config import EngineConfig
from bm25f_search.errors import InvalidArgumentError
from bm25f_search.stats import CorpusStats
from bm25f_search.store import DocumentRecord


SNAPSHOT_ARITY = 4


@dataclass(frozen=True)
class Snapshot:
    """Decoded and validated snapshot contents."""

    config: EngineConfig
    stats: CorpusStats
    documents: dict[str, DocumentRecord]
    postings: dict[str, list[str]]


def encode_snapshot(
    config: EngineConfig | None,
    stats: CorpusStats,
    documents: Mapping[str, DocumentRecord],
    postings: Mapping[str, list[str]],
) -> str:
    payload = [
        config.to_wire() if config is not None else None,
        {"totalCorpusLength": stats.total_corpus_length, "totalDocs": stats.total_docs},
        {doc_id: record.to_dict() for doc_id, record in documents.items()},
        {term: list(ids) for term, ids in postings.items()},
    ]
    return orjson.dumps(payload).decode("utf-8")


def decode_snapshot(blob: Any) -> Snapshot:
    """Parse and validate ``blob`` without touching any engine state."""

    if not blob:
        raise InvalidArgumentError("undefined or empty snapshot encountered, import failed")
    if not isinstance(blob, (str, bytes, bytearray)):
        raise InvalidArgumentError(f"snapshot must be a JSON string, instead found: {type(blob).__name__}")
    try:
        parsed = orjson.loads(blob)
    except orjson.JSONDecodeError as exc:
        raise InvalidArgumentError(f"invalid snapshot JSON, can not import: {exc}") from exc

    if not isinstance(parsed, list) or len(parsed) != SNAPSHOT_ARITY:
        raise InvalidArgumentError("invalid snapshot encountered, can not import")
    if not all(isinstance(part, dict) for part in parsed):
        raise InvalidArgumentError("invalid snapshot encountered, can not import")

    raw_config, raw_stats, raw_documents, raw_postings = parsed
    config = EngineConfig.from_mapping(raw_config)

    documents: dict[str, DocumentRecord] = {}
    for doc_id, record in raw_documents.items():
        if not isinstance(record, dict):
            raise InvalidArgumentError(f"document {doc_id!r} must be an object")
        documents[doc_id] = DocumentRecord.from_dict(record)

    postings: dict[str, list[str]] = {}
    for term, ids in raw_postings.items():
        if not isinstance(ids, list):
            raise InvalidArgumentError(f"postings of {term!r} must be a list")
        resolved = [str(doc_id) for doc_id in ids]
        unknown = [doc_id for doc_id in resolved if doc_id not in documents]
        if unknown:
            raise InvalidArgumentError(f"postings of {term!r} reference unknown documents: {unknown}")
        postings[term] = resolved

    return Snapshot(
        config=config,
        stats=_decode_stats(raw_stats, documents),
        documents=documents,
        postings=postings,
    )


def _decode_stats(raw: Mapping[str, Any], documents: Mapping[str, DocumentRecord]) -> CorpusStats:
    total_docs = raw.get("totalDocs")
    if isinstance(total_docs, bool) or not isinstance(total_docs, int) or total_docs < 0:
        total_docs = len(documents)
    total_length = raw.get("totalCorpusLength")
    if isinstance(total_length, bool) or not isinstance(total_length, (int, float)):
        total_length = sum(record.length for record in documents.values())
    return CorpusStats(total_docs=total_docs, total_corpus_length=float(total_length))
