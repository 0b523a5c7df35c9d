"""Preparatory task pipelines applied to field text and query text.

A pipeline is an ordered list of callables; the output of each step is the
input of the next one. Pipelines can be defined per field, with a default
pipeline used for every field that has none. The ``search`` field name is
reserved for query text.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any

from bm25f_search.errors import InvalidArgumentError


QUERY_PIPELINE = "search"

Transform = Callable[[Any], Any]


class PipelineRunner:
    """Holds the default and field specific pipelines and executes them."""

    def __init__(self) -> None:
        self._default: tuple[Transform, ...] = ()
        self._fields: dict[str, tuple[Transform, ...]] = {}

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self._fields)

    def has_pipeline(self, field: str | None = None) -> bool:
        if field is None:
            return bool(self._default)
        return field in self._fields

    def define(self, transforms: Sequence[Transform], field: str | None = None) -> int:
        """Validate and store ``transforms``; return how many were defined."""

        if not isinstance(transforms, (list, tuple)):
            msg = f"Tasks should be a list, instead found: {type(transforms).__name__}"
            raise InvalidArgumentError(msg)
        for transform in transforms:
            if not callable(transform):
                msg = f"Tasks should contain callables, instead found: {type(transform).__name__}"
                raise InvalidArgumentError(msg)
        if field is not None and not isinstance(field, str):
            msg = f"Field should be a string, instead found: {type(field).__name__}"
            raise InvalidArgumentError(msg)

        steps = tuple(transforms)
        if field is None:
            self._default = steps
        else:
            self._fields[field] = steps
        return len(steps)

    def run(self, text: Any, field: str | None = None) -> Any:
        """Apply the pipeline for ``field`` (or the default one) to ``text``."""

        steps = self._fields.get(field, self._default) if field is not None else self._default
        output = text
        for step in steps:
            output = step(output)
        return output

    def tokens(self, text: Any, field: str | None = None) -> list[str]:
        """Run the pipeline and return its output as a list of string tokens."""

        return _as_tokens(self.run(text, field), field)


def _as_tokens(output: Any, field: str | None) -> list[str]:
    # Without any step the raw text comes back untouched.
    if isinstance(output, str):
        return output.split()
    if not isinstance(output, Iterable):
        msg = f"Pipeline for {field or 'default'!r} must produce tokens, instead found: {type(output).__name__}"
        raise InvalidArgumentError(msg)
    tokens = list(output)
    for token in tokens:
        if not isinstance(token, str):
            msg = f"Pipeline for {field or 'default'!r} produced a non-string token: {token!r}"
            raise InvalidArgumentError(msg)
    return tokens
