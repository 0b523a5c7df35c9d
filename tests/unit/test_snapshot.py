"""Unit tests for snapshot export and import."""

from __future__ import annotations

import orjson
import pytest

from bm25f_search import (
    BM25FSearchEngine,
    DuplicateIdError,
    EngineState,
    InvalidArgumentError,
    InvalidStateError,
    MissingFieldError,
)
from bm25f_search.analyzers import standard_tasks
from bm25f_search.snapshot import decode_snapshot


CAMEL_CASE_EXPORT = (
    '[{"fldWeights":{"body":1},"bm25Params":{"k1":1.2,"b":0.75,"k":1}},'
    '{"totalCorpusLength":4,"totalDocs":3},'
    '{"a":{"freq":{"red":1,"fox":1},"length":2},"b":{"freq":{"fox":1},"length":1},"c":{"freq":{"dog":1},"length":1}},'
    '{"red":["a"],"fox":["a","b"],"dog":["c"]}]'
)


@pytest.fixture
def fresh_engine() -> BM25FSearchEngine:
    engine = BM25FSearchEngine()
    engine.define_pipeline(standard_tasks())
    return engine


class TestExport:
    def test_layout(self, learned_engine):
        config, stats, documents, index = orjson.loads(learned_engine.export_snapshot())

        assert config == {
            "fieldWeights": {"title": 2.0, "body": 1.0},
            "bm25Params": {"k1": 1.2, "b": 0.75, "k": 1.0},
        }
        assert stats == {"totalCorpusLength": 15.0, "totalDocs": 3}
        assert documents["d1"] == {"freq": {"cat": 3.0, "dog": 2.0}, "length": 5.0}
        assert index["cat"] == ["d1", "d2"]

    def test_export_before_config(self):
        config, stats, documents, index = orjson.loads(BM25FSearchEngine().export_snapshot())

        assert config is None
        assert stats == {"totalCorpusLength": 0.0, "totalDocs": 0}
        assert documents == {}
        assert index == {}

    def test_export_after_consolidation_holds_normalized_weights(self, consolidated_engine):
        _, _, documents, _ = orjson.loads(consolidated_engine.export_json())

        assert documents["d1"]["freq"]["dog"] == pytest.approx(1.375)


class TestImport:
    def test_round_trip_keeps_duplicate_and_missing_field_detection(self, learned_engine, fresh_engine):
        assert fresh_engine.import_snapshot(learned_engine.export_snapshot()) is True

        assert fresh_engine.state is EngineState.LEARNING
        assert fresh_engine.document_count == 3
        with pytest.raises(DuplicateIdError):
            fresh_engine.add_document({"title": "x", "body": "y"}, "d2")
        with pytest.raises(MissingFieldError):
            fresh_engine.add_document({"title": "x"}, "d4")
        assert fresh_engine.add_document({"title": "owl", "body": "night bird"}, "d4") == 4
        assert learned_engine.add_document({"title": "owl", "body": "night bird"}, "d4") == 4
        assert fresh_engine.export_snapshot() == learned_engine.export_snapshot()

    def test_round_trip_scores_match_after_consolidation(self, learned_engine, fresh_engine):
        fresh_engine.import_snapshot(learned_engine.export_snapshot())

        learned_engine.consolidate()
        fresh_engine.consolidate()

        assert fresh_engine.search("cat dog") == learned_engine.search("cat dog")

    def test_import_blocks_config_changes(self, learned_engine, fresh_engine):
        fresh_engine.import_snapshot(learned_engine.export_snapshot())

        with pytest.raises(InvalidStateError):
            fresh_engine.define_config({"fieldWeights": {"body": 1}})

    def test_import_does_not_restore_consolidation(self, consolidated_engine, fresh_engine):
        fresh_engine.import_snapshot(consolidated_engine.export_snapshot())

        assert not fresh_engine.consolidated
        with pytest.raises(InvalidStateError):
            fresh_engine.search("dog")

    def test_import_replaces_existing_learnings(self, consolidated_engine):
        consolidated_engine.import_snapshot(CAMEL_CASE_EXPORT)

        assert consolidated_engine.document_count == 3
        assert consolidated_engine.config.field_weights == {"body": 1.0}
        assert consolidated_engine.get_document("d1") is None
        assert consolidated_engine.idf("cat") is None

    def test_import_accepts_bytes(self, learned_engine, fresh_engine):
        assert fresh_engine.import_json(learned_engine.export_snapshot().encode("utf-8")) is True

    def test_imports_fld_weights_export(self):
        engine = BM25FSearchEngine()
        engine.define_pipeline([str.lower, str.split])
        engine.import_snapshot(CAMEL_CASE_EXPORT)
        engine.consolidate()

        results = engine.search("Fox")

        assert [entry.doc_id for entry in results] == ["b", "a"]

    def test_missing_totals_are_derived(self):
        snapshot = decode_snapshot(
            '[{"fieldWeights":{"body":1}},{},{"a":{"freq":{"x":1},"length":2}},{"x":["a"]}]'
        )

        assert snapshot.stats.total_docs == 1
        assert snapshot.stats.total_corpus_length == 2.0

    @pytest.mark.parametrize(
        "blob",
        [
            "",
            None,
            b"",
            "not json",
            "{}",
            "[1, 2, 3]",
            "[{}, {}, {}]",
            "[{}, {}, {}, []]",
            '[null, {}, {}, {}]',
            '[{"fieldWeights":{}}, {}, {}, {}]',
            '[{"fieldWeights":{"body":1}}, {}, {"a": []}, {}]',
            '[{"fieldWeights":{"body":1}}, {}, {"a": {"freq": {"x": "1"}, "length": 1}}, {}]',
            '[{"fieldWeights":{"body":1}}, {}, {}, {"x": "a"}]',
            '[{"fieldWeights":{"body":1}}, {}, {}, {"x": ["ghost"]}]',
        ],
    )
    def test_rejects_malformed_snapshots(self, learned_engine, blob):
        before = learned_engine.export_snapshot()

        with pytest.raises(InvalidArgumentError):
            learned_engine.import_snapshot(blob)

        assert learned_engine.export_snapshot() == before
        assert learned_engine.state is EngineState.LEARNING

    def test_rejects_non_text_blob(self, fresh_engine):
        with pytest.raises(InvalidArgumentError, match="JSON string"):
            fresh_engine.import_snapshot(12345)
