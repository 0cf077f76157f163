"""Normalize raw embedding-backend responses into an EmbeddingVector.

Backends answer in one of three shapes:

- ``flat``:   ``[0.1, 0.2, ...]``
- ``nested``: ``[[0.1, 0.2, ...], ...]`` (first row is used)
- ``named``:  ``{"data": <flat|nested>}`` or ``{"embedding": <flat|nested>}``

Everything else is ``unknown`` and raises EmbeddingError.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from numbers import Real
from typing import Any, Literal

from pdf_tutor.domain.errors import EmbeddingError
from pdf_tutor.domain.models import EmbeddingVector

ResponseShape = Literal["flat", "nested", "named", "unknown"]

_NAMED_FIELDS = ("data", "embedding")


def _is_number(x: Any) -> bool:
    return isinstance(x, Real) and not isinstance(x, bool)


def _is_row(x: Any) -> bool:
    return (
        isinstance(x, Sequence)
        and not isinstance(x, (str, bytes))
        and len(x) > 0
        and all(_is_number(v) for v in x)
    )


def classify_response(raw: Any) -> ResponseShape:
    if isinstance(raw, Mapping):
        return "named" if any(k in raw for k in _NAMED_FIELDS) else "unknown"
    if _is_row(raw):
        return "flat"
    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)) and raw and _is_row(raw[0]):
        return "nested"
    return "unknown"


def decode_embedding_response(raw: Any, _depth: int = 0) -> EmbeddingVector:
    shape = classify_response(raw)
    if shape == "flat":
        return EmbeddingVector(values=tuple(float(v) for v in raw))
    if shape == "nested":
        return EmbeddingVector(values=tuple(float(v) for v in raw[0]))
    if shape == "named" and _depth == 0:
        key = next(k for k in _NAMED_FIELDS if k in raw)
        return decode_embedding_response(raw[key], _depth + 1)
    preview = repr(raw)[:120]
    raise EmbeddingError(f"unrecognized embedding response shape: {preview}")
