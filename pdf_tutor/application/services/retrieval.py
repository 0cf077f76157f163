"""Retrieval: embed a query, look up similar vectors, ground a goal in chunk text."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pdf_tutor.application.ports.document_store_port import DocumentStorePort
from pdf_tutor.application.services.embedder import Embedder
from pdf_tutor.application.services.vector_store import VectorStore
from pdf_tutor.domain.errors import NotFoundError
from pdf_tutor.domain.models import (
    AugmentedPromptData,
    ChunkedDocument,
    EmbeddingVector,
    RelevantChunk,
    VectorMatch,
)
from pdf_tutor.domain.services.augmentation import MAX_CONTEXT_LENGTH, create_augmented_prompt

logger = logging.getLogger(__name__)


def resolve_chunks(document: ChunkedDocument, matches: Sequence[VectorMatch]) -> list[RelevantChunk]:
    """Map each hit to the chunk texts it stands for, keeping the hit's rank and score.

    A page hit yields that page's chunks; a full-text hit yields every chunk
    in page order. A page already contributed by a better hit is not repeated.
    """
    chunks: list[RelevantChunk] = []
    seen: set[int] = set()
    for match in matches:
        meta = match.metadata
        if meta.kind == "page" and meta.page_number is not None:
            pages = [meta.page_number]
        else:
            pages = list(document.page_numbers)
        for page in pages:
            if page in seen:
                continue
            seen.add(page)
            chunks.extend(
                RelevantChunk(text=text, score=match.score, page_number=page)
                for text in document.chunks_for(page)
                if text.strip()
            )
    return chunks


class Retrieval:
    def __init__(
        self,
        documents: DocumentStorePort,
        vectors: VectorStore,
        embedder: Embedder,
        max_context_length: int = MAX_CONTEXT_LENGTH,
    ) -> None:
        self.documents = documents
        self.vectors = vectors
        self.embedder = embedder
        self.max_context_length = max_context_length

    def _document(self, filename: str) -> ChunkedDocument:
        document = self.documents.get(filename)
        if document is None:
            raise NotFoundError(f"no stored document for '{filename}'")
        return document

    def _augment(
        self, document: ChunkedDocument, matches: Sequence[VectorMatch], goal: str
    ) -> AugmentedPromptData | None:
        chunks = resolve_chunks(document, matches)
        if not chunks:
            return None
        data = create_augmented_prompt(goal, chunks, self.max_context_length)
        if not data.sources:
            # first ranked chunk alone exceeds the context budget
            logger.debug("No chunk of %s fits into %d chars", document.id, self.max_context_length)
            return None
        return data

    def for_page(
        self,
        filename: str,
        page_number: int,
        goal: str,
        query: str | None = None,
        query_vector: EmbeddingVector | None = None,
    ) -> AugmentedPromptData | None:
        """Augment ``goal`` with context from one page.

        Returns None when the page has no vector (e.g. its embedding was
        skipped) or no chunk fits into the context budget. A precomputed
        ``query_vector`` is used as is, without another embedding call.
        Raises NotFoundError for an unknown document and EmbeddingError
        when the query itself cannot be embedded.
        """
        document = self._document(filename)
        if query_vector is None:
            query_vector = self.embedder.embed(query or goal)
        matches = self.vectors.query_page_vector(filename, page_number, query_vector)
        logger.debug("Page %d of %s: %d matches", page_number, filename, len(matches))
        return self._augment(document, matches, goal)

    def for_document(
        self, filename: str, goal: str, query: str | None = None
    ) -> AugmentedPromptData | None:
        document = self._document(filename)
        query_vector = self.embedder.embed(query or goal)
        matches = self.vectors.query_all_page_vectors(filename, query_vector)
        if not matches:
            matches = self.vectors.query_full_text_vector(filename, query_vector, top_k=1)
        return self._augment(document, matches, goal)
