"""Logging helpers for applications embedding the search engine."""

from bm25f_search.observability.logging import JsonFormatter, configure_from_settings, configure_logging


__all__ = [
    "JsonFormatter",
    "configure_from_settings",
    "configure_logging",
]
