"""Document-scoped vector operations on top of a VectorIndexPort.

Record ids are deterministic (``{filename}:full`` / ``{filename}:page:{n}``)
and are the only handle for later lookup and deletion, so deletion must be
given (or must look up) the pages that were actually written.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping

from pdf_tutor.application.ports.clock_port import ClockPort
from pdf_tutor.application.ports.document_store_port import DocumentStorePort
from pdf_tutor.application.ports.vector_index_port import VectorIndexPort
from pdf_tutor.domain.errors import ValidationError
from pdf_tutor.domain.models import (
    EmbeddingVector,
    VectorMatch,
    VectorMetadata,
    VectorRecord,
    full_vector_id,
    page_vector_id,
)

logger = logging.getLogger(__name__)


class VectorStore:
    def __init__(
        self,
        index: VectorIndexPort,
        clock: ClockPort,
        documents: DocumentStorePort | None = None,
        batch_size: int = 100,
        top_k: int = 3,
    ) -> None:
        if batch_size <= 0:
            raise ValidationError("batch_size must be > 0")
        self.index = index
        self.clock = clock
        self.documents = documents
        self.batch_size = batch_size
        self.top_k = top_k
        self._written_pages: dict[str, set[int]] = {}
        self._lock = threading.Lock()

    # ---------- writes ----------

    def upsert_page_vectors(self, filename: str, vectors: Mapping[int, EmbeddingVector]) -> None:
        ts = self.clock.timestamp_ms()
        records = [
            VectorRecord(
                id=page_vector_id(filename, page),
                values=vector.values,
                metadata=VectorMetadata(filename=filename, kind="page", timestamp=ts, page_number=page),
            )
            for page, vector in sorted(vectors.items())
        ]
        for start in range(0, len(records), self.batch_size):
            self.index.upsert(records[start : start + self.batch_size])
        with self._lock:
            self._written_pages.setdefault(filename, set()).update(vectors)
        logger.info("Upserted %d page vectors for: %s", len(records), filename)

    def upsert_full_text_vector(self, filename: str, vector: EmbeddingVector) -> None:
        record = VectorRecord(
            id=full_vector_id(filename),
            values=vector.values,
            metadata=VectorMetadata(filename=filename, kind="full", timestamp=self.clock.timestamp_ms()),
        )
        self.index.upsert([record])
        logger.info("Upserted full text vector for: %s", filename)

    # ---------- queries ----------

    def query_page_vector(
        self, filename: str, page_number: int, query: EmbeddingVector, top_k: int | None = None
    ) -> list[VectorMatch]:
        return self.index.query(
            query.values,
            top_k or self.top_k,
            {"filename": filename, "page_number": page_number, "kind": "page"},
        )

    def query_all_page_vectors(
        self, filename: str, query: EmbeddingVector, top_k: int | None = None
    ) -> list[VectorMatch]:
        return self.index.query(query.values, top_k or self.top_k, {"filename": filename, "kind": "page"})

    def query_full_text_vector(
        self, filename: str, query: EmbeddingVector, top_k: int | None = None
    ) -> list[VectorMatch]:
        return self.index.query(query.values, top_k or self.top_k, {"filename": filename, "kind": "full"})

    # ---------- deletion ----------

    def _pages_to_delete(self, filename: str, page_numbers: Iterable[int] | None) -> set[int]:
        pages: set[int] = set(page_numbers) if page_numbers is not None else set()
        if page_numbers is None and self.documents is not None:
            document = self.documents.get(filename)
            if document is not None:
                pages.update(document.page_numbers)
        with self._lock:
            pages.update(self._written_pages.get(filename, ()))
        return pages

    def delete_page_vectors(self, filename: str, page_numbers: Iterable[int]) -> list[str]:
        """Delete only the given page vectors (stale pages of a reprocessed document)."""
        pages = sorted(set(page_numbers))
        if not pages:
            return []
        ids = [page_vector_id(filename, p) for p in pages]
        self.index.delete(ids)
        with self._lock:
            written = self._written_pages.get(filename)
            if written is not None:
                written.difference_update(pages)
        logger.info("Deleted %d stale page vectors for: %s", len(ids), filename)
        return ids

    def delete_document_vectors(
        self, filename: str, page_numbers: Iterable[int] | None = None
    ) -> list[str]:
        """Delete the full-text vector and every page vector written for ``filename``.

        Pages come from ``page_numbers`` when given, else from the stored
        ChunkedDocument; pages this process wrote are always included.
        Returns the deleted ids.
        """
        pages = self._pages_to_delete(filename, page_numbers)
        ids = [full_vector_id(filename)] + [page_vector_id(filename, p) for p in sorted(pages)]
        self.index.delete(ids)
        with self._lock:
            self._written_pages.pop(filename, None)
        logger.info("Deleted %d vectors for: %s", len(ids), filename)
        return ids
