from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..errors import ValidationError
from ..models import ChunkedDocument

# ---------- Parameters ----------


@dataclass(frozen=True)
class ChunkingParams:
    chunk_size: int = 400
    overlap: int = 50

    def __post_init__(self) -> None:
        _check_window(self.chunk_size, self.overlap)


def _check_window(chunk_size: int, overlap: int) -> None:
    if chunk_size <= 0:
        raise ValidationError(f"chunk_size must be > 0, got {chunk_size}")
    if overlap < 0 or overlap >= chunk_size:
        raise ValidationError(
            f"overlap must satisfy 0 <= overlap < chunk_size, got overlap={overlap}, "
            f"chunk_size={chunk_size}"
        )


# ---------- Sliding window ----------


def chunk_text(text: str, chunk_size: int, overlap: int) -> list[str]:
    """Split ``text`` into windows of ``chunk_size`` chars stepping by ``chunk_size - overlap``.

    Text that already fits (including the empty string) comes back as ``[text]``
    untouched. Longer text yields stripped windows; whitespace-only windows are
    dropped.
    """
    _check_window(chunk_size, overlap)
    if len(text) <= chunk_size:
        return [text]

    step = chunk_size - overlap
    chunks: list[str] = []
    for start in range(0, len(text), step):
        piece = text[start : start + chunk_size].strip()
        if piece:
            chunks.append(piece)
    return chunks


def build_chunked_document(
    filename: str, pages: Sequence[str], params: ChunkingParams | None = None
) -> ChunkedDocument:
    """Chunk every page separately; page numbers are 1-based."""
    p = params or ChunkingParams()
    page_chunks = {
        number: tuple(chunk_text(page, p.chunk_size, p.overlap))
        for number, page in enumerate(pages, start=1)
    }
    return ChunkedDocument(id=filename, full_text="\n\n".join(pages), page_chunks=page_chunks)


def representative_sample(text: str, limit: int = 2000) -> str:
    """Head, middle and tail of a long text, for a single whole-document embedding."""
    if len(text) <= limit:
        return text
    mid = len(text) // 2
    return f"{text[:1000]}...{text[mid - 250 : mid + 250]}...{text[-500:]}"


# Eigenschaften:
#
# - Kein I/O, keine Globals.
# - Deterministisch: gleiche Eingabe + Parameter → gleiche Chunks.
# - Überlappung exakt `overlap` Zeichen zwischen aufeinanderfolgenden Fenstern
#   (vor dem Strip).
