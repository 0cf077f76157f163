from typing import Protocol, runtime_checkable

from pdf_tutor.domain.models import ChunkedDocument


@runtime_checkable
class DocumentStorePort(Protocol):
    """Persistence for chunked documents, keyed by filename."""

    def store(self, document: ChunkedDocument) -> None:
        """Insert or replace the document with the same id."""
        ...

    def get(self, filename: str) -> ChunkedDocument | None: ...

    def delete(self, filename: str) -> None: ...
