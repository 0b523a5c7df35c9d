"""Error hierarchy raised by the BM25F search engine.

Every public operation validates its input before touching engine state, so
any of these errors leaves the engine exactly as it was before the call.
"""

from __future__ import annotations


class SearchEngineError(Exception):
    """Base error for the search engine."""


class InvalidArgumentError(SearchEngineError, ValueError):
    """Raised for malformed configuration, pipelines, queries or snapshots."""


class InvalidStateError(SearchEngineError, RuntimeError):
    """Raised when an operation is invoked out of lifecycle order."""


class DuplicateIdError(SearchEngineError, KeyError):
    """Raised when a document id is already present in the store."""

    def __init__(self, doc_id: str) -> None:
        super().__init__(doc_id)
        self.doc_id = doc_id

    def __str__(self) -> str:
        return f"Duplicate document encountered: {self.doc_id!r}"


class MissingFieldError(SearchEngineError, KeyError):
    """Raised when a document lacks one of the configured fields."""

    def __init__(self, field: str, doc_id: str | None = None) -> None:
        super().__init__(field)
        self.field = field
        self.doc_id = doc_id

    def __str__(self) -> str:
        if self.doc_id is None:
            return f"Missing field in the document: {self.field!r}"
        return f"Missing field {self.field!r} in document {self.doc_id!r}"


class InsufficientDataError(SearchEngineError, RuntimeError):
    """Raised when consolidation is attempted on too small a collection."""

    def __init__(self, document_count: int, minimum: int) -> None:
        super().__init__(
            f"Document collection is too small for consolidation: {document_count} < {minimum}; add more documents"
        )
        self.document_count = document_count
        self.minimum = minimum
