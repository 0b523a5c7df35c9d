"""Typed configuration for the BM25F engine.

``EngineConfig`` carries the field weights and BM25F tuning parameters of one
engine instance and is validated once, before the first document is added.
``Settings`` holds process level defaults loaded from ``BM25F_SEARCH_*``
environment variables.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
import math
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bm25f_search.errors import InvalidArgumentError


logger = logging.getLogger(__name__)

# Smallest collection consolidate() accepts; settings can only raise it.
MIN_CONSOLIDATION_DOCUMENTS = 3

# Accepted ranges; values outside them fall back to the default.
_PARAM_BOUNDS: dict[str, tuple[float, float]] = {
    "k1": (0.0, math.inf),
    "b": (0.0, 1.0),
    "k": (1.0, math.inf),
}


def _coerce_number(value: Any) -> float | None:
    """Return ``value`` as a finite float, or None when it is not numeric.

    ``None`` and booleans are not numbers here even though ``float()`` would
    accept a boolean.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


class BM25Params(BaseModel):
    """BM25F tuning parameters.

    Args:
        k1: Term frequency saturation; higher values delay saturation.
        b: Degree of length normalization; 0 disables it, 1 normalizes fully.
        k: IDF smoothing factor; keeps the logarithm positive when >= 1.
    """

    model_config = ConfigDict(frozen=True)

    k1: float = 1.2
    b: float = 0.75
    k: float = 1.0

    @field_validator("k1", "b", "k", mode="before")
    @classmethod
    def _default_when_invalid(cls, value: Any, info: ValidationInfo) -> float:
        default = cls.model_fields[info.field_name].default
        number = _coerce_number(value)
        if number is None:
            if value is not None:
                logger.warning("Ignoring non-numeric BM25 parameter %s=%r; using %s", info.field_name, value, default)
            return default
        low, high = _PARAM_BOUNDS[info.field_name]
        if not low <= number <= high:
            logger.warning("BM25 parameter %s=%s outside [%s, %s]; using %s", info.field_name, number, low, high, default)
            return default
        return number


class EngineConfig(BaseModel):
    """Field weights plus BM25F parameters; frozen once validated."""

    model_config = ConfigDict(frozen=True)

    field_weights: dict[str, float] = Field(
        validation_alias=AliasChoices("field_weights", "fieldWeights", "fldWeights"),
        serialization_alias="fieldWeights",
    )
    bm25_params: BM25Params = Field(
        default_factory=BM25Params,
        validation_alias=AliasChoices("bm25_params", "bm25Params"),
        serialization_alias="bm25Params",
    )

    @field_validator("field_weights", mode="before")
    @classmethod
    def _check_field_weights(cls, value: Any) -> dict[str, float]:
        if not isinstance(value, Mapping):
            raise ValueError(f"field weights must be a mapping, instead found: {type(value).__name__}")
        if not value:
            raise ValueError("field config has no field defined")
        weights: dict[str, float] = {}
        for field, weight in value.items():
            number = _coerce_number(weight)
            if number is None:
                raise ValueError(f"weight of field {field!r} should be a number, instead found: {weight!r}")
            if number == 0:
                logger.warning("Field %r has weight 0; its tokens will not contribute to scores", field)
            weights[field] = number
        return weights

    @field_validator("bm25_params", mode="before")
    @classmethod
    def _params_or_defaults(cls, value: Any) -> Any:
        if isinstance(value, BM25Params):
            return value
        if not isinstance(value, Mapping):
            return {}
        return dict(value)

    @classmethod
    def from_mapping(cls, cfg: Any) -> EngineConfig:
        """Validate a plain mapping such as ``{"fieldWeights": {...}}``."""

        if not isinstance(cfg, Mapping):
            msg = f"config must be a mapping, instead found: {type(cfg).__name__}"
            raise InvalidArgumentError(msg)
        try:
            return cls.model_validate(dict(cfg))
        except ValidationError as exc:
            raise InvalidArgumentError(f"invalid config: {_summarize(exc)}") from exc

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self.field_weights)

    def to_wire(self) -> dict[str, Any]:
        """Return the camelCase mapping used inside snapshots."""
        return self.model_dump(by_alias=True)


def _summarize(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "config"
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)


class Settings(BaseSettings):
    """Process level defaults loaded from ``BM25F_SEARCH_*`` variables."""

    model_config = SettingsConfigDict(
        env_prefix="BM25F_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")
    default_limit: int = Field(default=10, ge=1, description="Results returned by search when no limit is given")
    min_documents: int = Field(
        default=MIN_CONSOLIDATION_DOCUMENTS,
        ge=MIN_CONSOLIDATION_DOCUMENTS,
        description="Documents required before consolidation; can only be raised",
    )
