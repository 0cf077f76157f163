# pdf_tutor/domain/models.py
# Domain models must be pure (no I/O, no external libs)
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from .errors import ValidationError
from .types import Vector

VectorKind = Literal["full", "page"]


def validate_filename(filename: str) -> str:
    """Reject ids that could escape a storage prefix (``..``, ``/``, ``\\``)."""
    if not filename or not filename.strip():
        raise ValidationError("filename must not be empty")
    if ".." in filename or "/" in filename or "\\" in filename:
        raise ValidationError(f"invalid filename '{filename}': contains illegal characters")
    return filename


def validate_page_number(page: int, max_pages: int | None = None) -> int:
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise ValidationError("page number must be a positive integer")
    if max_pages is not None and page > max_pages:
        raise ValidationError(f"page number exceeds maximum pages ({max_pages})")
    return page


def full_vector_id(filename: str) -> str:
    return f"{filename}:full"


def page_vector_id(filename: str, page_number: int) -> str:
    return f"{filename}:page:{page_number}"


@dataclass(frozen=True)
class ChunkedDocument:
    """
    A document split into per-page chunk lists, keyed by filename.

    - id:           the document filename (unique key, upsert semantics)
    - full_text:    all pages joined by a blank line
    - page_chunks:  {page_number: [chunk, ...]} with keys exactly 1..total_pages
    """

    id: str
    full_text: str
    page_chunks: Mapping[int, tuple[str, ...]]

    def __post_init__(self) -> None:
        expected = list(range(1, len(self.page_chunks) + 1))
        if sorted(self.page_chunks) != expected:
            raise ValidationError(
                f"page_chunks keys must be 1..{len(self.page_chunks)}, got {sorted(self.page_chunks)}"
            )

    @property
    def total_pages(self) -> int:
        return len(self.page_chunks)

    @property
    def total_chunks(self) -> int:
        return sum(len(chunks) for chunks in self.page_chunks.values())

    @property
    def page_numbers(self) -> range:
        return range(1, self.total_pages + 1)

    def chunks_for(self, page_number: int) -> tuple[str, ...]:
        return self.page_chunks.get(page_number, ())


@dataclass(frozen=True)
class EmbeddingVector:
    values: Vector

    def __post_init__(self) -> None:
        if not self.values:
            raise ValidationError("embedding vector must not be empty")

    @property
    def dimensions(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class VectorMetadata:
    filename: str
    kind: VectorKind
    timestamp: int  # epoch milliseconds
    page_number: int | None = None

    def as_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "filename": self.filename,
            "kind": self.kind,
            "timestamp": self.timestamp,
        }
        if self.page_number is not None:
            payload["page_number"] = self.page_number
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> VectorMetadata:
        page = payload.get("page_number")
        return cls(
            filename=str(payload.get("filename", "")),
            kind=payload.get("kind", "page"),
            timestamp=int(payload.get("timestamp", 0)),
            page_number=int(page) if page is not None else None,
        )


@dataclass(frozen=True)
class VectorRecord:
    id: str
    values: Vector
    metadata: VectorMetadata


@dataclass(frozen=True)
class VectorMatch:
    """One similarity hit; ``score`` is higher-is-better."""

    id: str
    score: float
    metadata: VectorMetadata


@dataclass(frozen=True)
class RelevantChunk:
    text: str
    score: float
    page_number: int | None = None


@dataclass(frozen=True)
class PromptSource:
    score: float
    page_number: int | None = None


@dataclass(frozen=True)
class AugmentedPromptData:
    original_goal: str
    relevant_text: str
    augmented_prompt: str
    sources: tuple[PromptSource, ...] = ()


@dataclass(frozen=True)
class McqQuestion:
    id: int
    page: int
    question: str
    options: tuple[str, str, str, str]
    correct: int
    explanation: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "page": self.page,
            "question": self.question,
            "options": list(self.options),
            "correct": self.correct,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class ExtractedPages:
    pages: tuple[str, ...]
    num_pages: int = field(default=-1)

    def __post_init__(self) -> None:
        if self.num_pages < 0:
            object.__setattr__(self, "num_pages", len(self.pages))
