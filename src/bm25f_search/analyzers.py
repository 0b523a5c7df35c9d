"""Ready-made preparatory tasks for search pipelines.

Each task is a plain callable so it can be passed straight to
``BM25FSearchEngine.define_pipeline``. Tokenizers turn text into a list of
tokens; filters take a list of tokens and return a new one. The engine does not
depend on this module; callers are free to use any other tokenizer.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
import re


class RegexTokenizer:
    """Regex-based tokenizer that yields word tokens."""

    def __init__(self, pattern: str = r"[\w']+", flags: int = re.UNICODE | re.MULTILINE) -> None:
        self.pattern = re.compile(pattern, flags)

    def __call__(self, text: str) -> list[str]:
        return self.pattern.findall(text)


class KeywordTokenizer:
    """Treats the entire input as a single token."""

    def __call__(self, text: str) -> list[str]:
        stripped = text.strip()
        if not stripped:
            return []
        return [stripped]


class LowercaseFilter:
    """Filter that lowercases tokens."""

    def __call__(self, tokens: Iterable[str]) -> list[str]:
        return [token if token.islower() else token.lower() for token in tokens]


DEFAULT_STOPWORDS = [
    "a",
    "an",
    "and",
    "are",
    "as",
    "at",
    "be",
    "but",
    "by",
    "for",
    "if",
    "in",
    "into",
    "is",
    "it",
    "no",
    "not",
    "of",
    "on",
    "or",
    "such",
    "that",
    "the",
    "their",
    "then",
    "there",
    "these",
    "they",
    "this",
    "to",
    "was",
    "will",
    "with",
]

_SUFFIX_RULES: tuple[tuple[str, str], ...] = (
    ("ization", "ize"),
    ("ational", "ate"),
    ("fulness", "ful"),
    ("ousness", "ous"),
    ("iveness", "ive"),
    ("tional", "tion"),
    ("biliti", "ble"),
    ("lessli", "less"),
    ("entli", "ent"),
    ("enci", "ence"),
    ("anci", "ance"),
    ("izer", "ize"),
    ("abli", "able"),
    ("alli", "al"),
    ("ator", "ate"),
    ("alism", "al"),
    ("aliti", "al"),
    ("ousli", "ous"),
    ("ration", "rate"),
    ("ation", "ate"),
    ("ness", ""),
    ("ment", ""),
    ("ance", "an"),
    ("ence", "en"),
    ("able", ""),
    ("ible", ""),
)

_SIMPLE_SUFFIXES: tuple[str, ...] = ("ingly", "edly", "ing", "ed", "ly", "es", "s")


class StopFilter:
    """Removes stopwords from the token list."""

    def __init__(self, stopwords: Sequence[str] | None = None) -> None:
        vocab = stopwords if stopwords is not None else DEFAULT_STOPWORDS
        self.stopwords = {word.lower() for word in vocab}

    def __call__(self, tokens: Iterable[str]) -> list[str]:
        return [token for token in tokens if token.lower() not in self.stopwords]


class PorterStemFilter:
    """Applies a minimal Porter-style stemming routine."""

    def __call__(self, tokens: Iterable[str]) -> list[str]:
        return [stem(token) for token in tokens]


def stem(word: str) -> str:
    """Strip one known suffix from ``word``, keeping at least two characters."""

    lower = word.lower()
    return _strip_complex_suffix(lower) or _strip_simple_suffix(lower) or lower


def _strip_complex_suffix(lower: str) -> str | None:
    for suffix, replacement in _SUFFIX_RULES:
        if lower.endswith(suffix) and len(lower) - len(suffix) >= 2:
            candidate = lower[: -len(suffix)] + replacement
            if len(candidate) >= 2:
                return candidate
    return None


def _strip_simple_suffix(lower: str) -> str | None:
    for suffix in _SIMPLE_SUFFIXES:
        if lower.endswith(suffix) and len(lower) - len(suffix) >= 2:
            candidate = lower[: -len(suffix)]
            if len(candidate) >= 2:
                return candidate
    return None


def standard_tasks(
    *,
    stopwords: Sequence[str] | None = None,
    apply_stemming: bool = True,
) -> list[Callable]:
    """Tokenize, lowercase, drop stopwords and optionally stem."""

    tasks: list[Callable] = [RegexTokenizer(), LowercaseFilter(), StopFilter(stopwords)]
    if apply_stemming:
        tasks.append(PorterStemFilter())
    return tasks


_TASK_FACTORIES: dict[str, Callable[[], list[Callable]]] = {
    "default": lambda: standard_tasks(),
    "english": lambda: standard_tasks(),
    "english-nostem": lambda: standard_tasks(apply_stemming=False),
    "keyword": lambda: [KeywordTokenizer(), LowercaseFilter()],
}


def get_tasks(name: str | None) -> list[Callable]:
    """Return a fresh list of tasks by name, defaulting to the standard set."""

    if name is None:
        return _TASK_FACTORIES["default"]()
    normalized = name.lower()
    if normalized not in _TASK_FACTORIES:
        msg = f"Unknown task set '{name}'. Available: {sorted(_TASK_FACTORIES)}"
        raise ValueError(msg)
    return _TASK_FACTORIES[normalized]()
