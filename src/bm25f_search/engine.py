"""In-memory BM25F search engine.

``BM25FSearchEngine`` owns one collection: its configuration, pipelines,
document store, inverted index and IDF table. Its lifecycle is strictly
ordered::

    define_config -> add_document ... -> consolidate -> search

Configuration is frozen once the first document has been added, documents can
no longer be added once the collection is consolidated, and search is only
available after consolidation. ``reset`` clears everything except pipelines.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import Enum
import logging
from typing import Any, NamedTuple

from bm25f_search.config import MIN_CONSOLIDATION_DOCUMENTS, EngineConfig, Settings
from bm25f_search.errors import (
    DuplicateIdError,
    InsufficientDataError,
    InvalidArgumentError,
    InvalidStateError,
    MissingFieldError,
)
from bm25f_search.pipeline import QUERY_PIPELINE, PipelineRunner, Transform
from bm25f_search.snapshot import decode_snapshot, encode_snapshot
from bm25f_search.stats import CorpusStats, calculate_idf, length_normalization, saturate
from bm25f_search.store import DocumentRecord, DocumentStore, normalize_doc_id


logger = logging.getLogger(__name__)


class RankedDocument(NamedTuple):
    """A ``(doc_id, score)`` pair produced by ``search``."""

    doc_id: str
    score: float


class EngineState(str, Enum):
    """Lifecycle phases of an engine instance."""

    CONFIGURING = "configuring"
    LEARNING = "learning"
    CONSOLIDATED = "consolidated"

    @property
    def accepts_documents(self) -> bool:
        return self is not EngineState.CONSOLIDATED

    @property
    def can_search(self) -> bool:
        return self is EngineState.CONSOLIDATED


class BM25FSearchEngine:
    """Field weighted BM25 engine for small in-memory collections."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self._pipelines = PipelineRunner()
        self._store = DocumentStore()
        self._idf: dict[str, float] = {}
        self._config: EngineConfig | None = None
        self._total_docs = 0
        self._avg_corpus_length = 0.0
        self._learning_started = False
        self._consolidated = False

    # Introspection -----------------------------------------------------

    @property
    def config(self) -> EngineConfig | None:
        return self._config

    @property
    def learning_started(self) -> bool:
        return self._learning_started

    @property
    def consolidated(self) -> bool:
        return self._consolidated

    @property
    def state(self) -> EngineState:
        if self._consolidated:
            return EngineState.CONSOLIDATED
        if self._learning_started:
            return EngineState.LEARNING
        return EngineState.CONFIGURING

    @property
    def document_count(self) -> int:
        return self._total_docs

    @property
    def vocabulary_size(self) -> int:
        return self._store.vocabulary_size

    @property
    def corpus_stats(self) -> CorpusStats:
        return CorpusStats(total_docs=self._total_docs, total_corpus_length=self._store.total_corpus_length)

    def get_document(self, doc_id: Any) -> DocumentRecord | None:
        """Return a copy of the record stored for ``doc_id``."""
        return self._store.get_document(normalize_doc_id(doc_id))

    def postings(self, term: str) -> list[str]:
        return self._store.get_postings(term)

    def idf(self, term: str) -> float | None:
        return self._idf.get(term)

    # Configuration -----------------------------------------------------

    def define_pipeline(self, transforms: Sequence[Transform], field: str | None = None) -> int:
        """Define the preparatory tasks for ``field``, or the default ones.

        The ``"search"`` field holds the tasks applied to query text; queries
        fall back to the default tasks when it is not defined.
        """

        return self._pipelines.define(transforms, field)

    def define_config(self, cfg: Mapping[str, Any]) -> bool:
        """Set field weights and BM25F parameters; allowed once, before learning.

        ``cfg`` holds ``fieldWeights`` (field name -> weight) and an optional
        ``bm25Params`` mapping with ``k1``, ``b`` and ``k``. Fields without a
        weight are ignored when documents are added.
        """

        if self._learning_started:
            raise InvalidStateError("config must be defined before learning/addition starts")
        self._config = EngineConfig.from_mapping(cfg)
        logger.info(
            "Search config defined: fields=%s params=%s",
            list(self._config.field_weights),
            self._config.bm25_params.model_dump(),
        )
        return True

    # Learning ----------------------------------------------------------

    def add_document(self, doc: Mapping[str, Any], doc_id: Any) -> int:
        """Add ``doc`` under ``doc_id`` and return the number of documents."""

        if self._config is None:
            raise InvalidStateError("config must be defined before adding a document")
        if self._consolidated:
            raise InvalidStateError("post consolidation adding/learning is not possible")
        if not isinstance(doc, Mapping):
            raise InvalidArgumentError(f"document must be a mapping, instead found: {type(doc).__name__}")
        key = normalize_doc_id(doc_id)
        if key in self._store:
            raise DuplicateIdError(key)

        weighted_tokens: list[tuple[list[str], float]] = []
        for field, weight in self._config.field_weights.items():
            if field not in doc or doc[field] is None:
                raise MissingFieldError(field, key)
            weighted_tokens.append((self._pipelines.tokens(doc[field], field), weight))

        record = self._store.add(key, weighted_tokens)
        self._learning_started = True
        self._total_docs += 1
        logger.debug(
            "Added document %s: terms=%d length=%.3f total=%d",
            key,
            len(record.frequencies),
            record.length,
            self._total_docs,
        )
        return self._total_docs

    def consolidate(self) -> bool:
        """Turn raw weighted frequencies into BM25 weights and compute IDF.

        Runs once per collection: normalized frequencies can not be normalized
        again, so a second call raises ``InvalidStateError``. Every weight is
        computed before any record is updated, so a failure leaves the
        collection untouched.
        """

        if self._consolidated:
            raise InvalidStateError("learnings are already consolidated")
        minimum = max(MIN_CONSOLIDATION_DOCUMENTS, self.settings.min_documents)
        if self._total_docs < minimum:
            raise InsufficientDataError(self._total_docs, minimum)
        params = self._config.bm25_params

        avg_length = self._store.total_corpus_length / self._total_docs
        records = self._store.records()
        saturated: dict[str, dict[str, float]] = {}
        for doc_id, record in records.items():
            norm = length_normalization(record.length, avg_length, b=params.b)
            saturated[doc_id] = {
                term: saturate(freq, norm, k1=params.k1) for term, freq in record.frequencies.items()
            }
        idf = {
            term: calculate_idf(len(ids), self._total_docs, k=params.k)
            for term, ids in self._store.postings_by_term().items()
        }

        # Nothing below can fail.
        for doc_id, frequencies in saturated.items():
            records[doc_id].frequencies = frequencies
        self._avg_corpus_length = avg_length
        self._idf = idf
        self._consolidated = True
        logger.info(
            "Consolidated %d documents: terms=%d avg_length=%.3f",
            self._total_docs,
            len(self._idf),
            self._avg_corpus_length,
        )
        return True

    # Search ------------------------------------------------------------

    def search(self, text: str, limit: int | None = None) -> list[RankedDocument]:
        """Return documents matching ``text`` ordered by descending score.

        At most ``max(limit, 1)`` results are returned; ``limit`` defaults to
        ``Settings.default_limit``. Documents with equal scores keep the order
        in which they were first scored, i.e. posting order of the earliest
        query token reaching them.
        """

        if not self._consolidated:
            raise InvalidStateError("search is not possible unless learnings are consolidated")
        if not isinstance(text, str):
            raise InvalidArgumentError(f"search text should be a string, instead found: {type(text).__name__}")
        if limit is None:
            limit = self.settings.default_limit
        elif isinstance(limit, bool) or not isinstance(limit, int):
            raise InvalidArgumentError(f"limit should be an integer, instead found: {type(limit).__name__}")

        tokens = self._pipelines.tokens(text, QUERY_PIPELINE)
        postings_by_term = self._store.postings_by_term()
        doc_scores: dict[str, float] = {}
        for token in tokens:
            ids = postings_by_term.get(token)
            if ids is None:
                continue
            idf = self._idf[token]
            for doc_id in ids:
                doc_scores[doc_id] = self._store.frequency(doc_id, token) * idf + doc_scores.get(doc_id, 0.0)

        ranked = sorted(
            (RankedDocument(doc_id=doc_id, score=score) for doc_id, score in doc_scores.items()),
            key=lambda entry: entry.score,
            reverse=True,
        )
        results = ranked[: max(limit, 1)]
        logger.debug("Search tokens=%d matches=%d returned=%d", len(tokens), len(ranked), len(results))
        return results

    # Persistence -------------------------------------------------------

    def reset(self) -> bool:
        """Forget all learnings and the config; pipelines are kept."""

        self._store.clear()
        self._idf = {}
        self._config = None
        self._total_docs = 0
        self._avg_corpus_length = 0.0
        self._learning_started = False
        self._consolidated = False
        logger.info("Search engine reset")
        return True

    def export_snapshot(self) -> str:
        """Serialize config, corpus totals, documents and index to JSON."""

        return encode_snapshot(
            self._config,
            self.corpus_stats,
            self._store.records(),
            self._store.postings_by_term(),
        )

    def import_snapshot(self, blob: str | bytes) -> bool:
        """Replace all learnings with the contents of ``blob``.

        The imported collection is treated as unconsolidated: search requires
        ``consolidate()``, which is only meaningful for snapshots exported
        before consolidation. Config can not be changed afterwards.
        """

        snapshot = decode_snapshot(blob)
        self.reset()
        self._learning_started = True
        self._config = snapshot.config
        self._total_docs = snapshot.stats.total_docs
        self._store.load(snapshot.documents, snapshot.postings, snapshot.stats.total_corpus_length)
        logger.info(
            "Imported snapshot: documents=%d terms=%d",
            self._total_docs,
            self._store.vocabulary_size,
        )
        return True

    # Aliases kept uniform with other learners.
    define_prep_tasks = define_pipeline
    learn = add_document
    predict = search
    export_json = export_snapshot
    import_json = import_snapshot
