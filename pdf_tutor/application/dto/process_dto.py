from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pdf_tutor.domain.models import validate_filename


class RunState(str, Enum):
    EXTRACTING = "extracting"
    CHUNKING = "chunking"
    EMBEDDING = "embedding"
    STORING = "storing"
    GENERATING = "generating"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ProcessDocumentRequest:
    filename: str  # Dokument-ID (Upload-Dateiname)
    content: bytes = field(repr=False)

    def __post_init__(self) -> None:
        validate_filename(self.filename)


@dataclass
class RunReport:
    """Outcome of one orchestration run; mutated by the run as it advances."""

    run_id: int
    filename: str
    state: RunState = RunState.EXTRACTING
    current_page: int | None = None
    total_pages: int = 0
    embedded_pages: list[int] = field(default_factory=list)
    skipped_pages: list[int] = field(default_factory=list)
    fallback_pages: list[int] = field(default_factory=list)
    error: str | None = None

    @property
    def finished(self) -> bool:
        return self.state in (RunState.DONE, RunState.FAILED)

    def as_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "filename": self.filename,
            "state": self.state.value,
            "total_pages": self.total_pages,
            "embedded_pages": list(self.embedded_pages),
            "skipped_pages": list(self.skipped_pages),
            "fallback_pages": list(self.fallback_pages),
            "error": self.error,
        }


@dataclass(frozen=True)
class DeleteDocumentResult:
    filename: str
    vector_ids: tuple[str, ...]
