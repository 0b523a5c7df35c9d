"""Shared test fixtures and configuration."""

import os
from pathlib import Path
import sys

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))


# Pin every setting so a developer's environment can not leak into tests
TEST_ENV = {
    "BM25F_SEARCH_LOG_LEVEL": "info",
    "BM25F_SEARCH_LOG_JSON": "true",
    "BM25F_SEARCH_DEFAULT_LIMIT": "10",
    "BM25F_SEARCH_MIN_DOCUMENTS": "3",
}

for key, value in TEST_ENV.items():
    os.environ[key] = value

from bm25f_search import BM25FSearchEngine  # noqa: E402
from bm25f_search.analyzers import standard_tasks  # noqa: E402


PETS_CORPUS = {
    "d1": {"title": "cat dog", "body": "cat"},
    "d2": {"title": "bird", "body": "the cat sat on the mat"},
    "d3": {"title": "fish", "body": "fish swim in the sea"},
}


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Reset settings environment variables before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def engine() -> BM25FSearchEngine:
    """Engine with standard tasks and a title/body config, no documents yet."""
    instance = BM25FSearchEngine()
    instance.define_pipeline(standard_tasks())
    instance.define_config({"fieldWeights": {"title": 2, "body": 1}})
    return instance


@pytest.fixture
def learned_engine(engine: BM25FSearchEngine) -> BM25FSearchEngine:
    """Engine holding the pets corpus, not yet consolidated."""
    for doc_id, doc in PETS_CORPUS.items():
        engine.add_document(doc, doc_id)
    return engine


@pytest.fixture
def consolidated_engine(learned_engine: BM25FSearchEngine) -> BM25FSearchEngine:
    learned_engine.consolidate()
    return learned_engine
