from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ...domain.models import validate_filename
from ..dto.process_dto import DeleteDocumentResult
from ..ports.document_store_port import DocumentStorePort
from ..services.page_results import PageResultStore
from ..services.run_locks import DocumentRunLocks
from ..services.vector_store import VectorStore

logger = logging.getLogger(__name__)


@dataclass
class DeleteDocument:
    """Remove everything stored for a document: vectors, chunk row and page results."""

    vectors: VectorStore
    documents: DocumentStorePort
    results: PageResultStore
    locks: DocumentRunLocks = field(default_factory=DocumentRunLocks)

    def execute(self, filename: str) -> DeleteDocumentResult:
        validate_filename(filename)
        with self.locks.hold(filename):
            # Vektoren zuerst: die Seitenzahl kommt aus dem gespeicherten Dokument
            ids = self.vectors.delete_document_vectors(filename)
            self.documents.delete(filename)
            self.results.delete(filename)
        logger.info("Deleted document: %s", filename)
        return DeleteDocumentResult(filename=filename, vector_ids=tuple(ids))
