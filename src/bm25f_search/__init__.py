"""
In-memory BM25F text search.

This package provides a pure-Python search stack:
- pipeline: Preparatory task pipelines for field and query text
- analyzers: Ready-made tokenizers and filters (lowercase, stop, stemming)
- config: Field weights, BM25F parameters and environment settings
- store: Document frequencies and the inverted index
- stats: BM25 saturation and IDF helpers
- snapshot: JSON export/import of learnings
- engine: The search engine tying everything together
"""

from bm25f_search.config import BM25Params, EngineConfig, Settings
from bm25f_search.engine import BM25FSearchEngine, EngineState, RankedDocument
from bm25f_search.errors import (
    DuplicateIdError,
    InsufficientDataError,
    InvalidArgumentError,
    InvalidStateError,
    MissingFieldError,
    SearchEngineError,
)
from bm25f_search.pipeline import QUERY_PIPELINE


__all__ = [
    "QUERY_PIPELINE",
    "BM25FSearchEngine",
    "BM25Params",
    "DuplicateIdError",
    "EngineConfig",
    "EngineState",
    "InsufficientDataError",
    "InvalidArgumentError",
    "InvalidStateError",
    "MissingFieldError",
    "RankedDocument",
    "SearchEngineError",
    "Settings",
]
