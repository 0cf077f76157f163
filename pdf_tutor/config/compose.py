"""Dependency injection container with environment-driven wiring.

Single place where adapters are chosen; all other layers only see ports.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pdf_tutor.application.ports import (
    BlobStorePort,
    ClockPort,
    DocumentStorePort,
    EmbeddingBackendPort,
    LLMPort,
    NoopTelemetry,
    PageTextExtractorPort,
    TelemetryPort,
    VectorIndexPort,
)
from pdf_tutor.application.services.content_generation import McqGenerator, TranscriptGenerator
from pdf_tutor.application.services.embedder import Embedder
from pdf_tutor.application.services.page_results import PageResultStore
from pdf_tutor.application.services.retrieval import Retrieval
from pdf_tutor.application.services.run_locks import DocumentRunLocks
from pdf_tutor.application.services.vector_store import VectorStore
from pdf_tutor.config.settings import AppSettings
from pdf_tutor.domain.errors import ValidationError
from pdf_tutor.domain.services.chunking import ChunkingParams

if TYPE_CHECKING:
    from pdf_tutor.application.use_cases.delete_document import DeleteDocument
    from pdf_tutor.application.use_cases.get_page_content import GetPageContent
    from pdf_tutor.application.use_cases.process_document import ProcessDocument

logger = logging.getLogger(__name__)


class Container:
    """Lazily builds adapters from AppSettings and wires the use cases.

    Every ``get_*`` returns the same instance on repeated calls, so the
    use cases share one run-lock registry and one VectorStore.
    """

    def __init__(self, settings: AppSettings | None = None) -> None:
        self.settings = settings or AppSettings()
        self._embedding_backend: EmbeddingBackendPort | None = None
        self._llm: LLMPort | None = None
        self._vector_index: VectorIndexPort | None = None
        self._document_store: DocumentStorePort | None = None
        self._blob_store: BlobStorePort | None = None
        self._extractor: PageTextExtractorPort | None = None
        self._telemetry: TelemetryPort | None = None
        self._clock: ClockPort | None = None
        self._locks = DocumentRunLocks()
        self._vector_store: VectorStore | None = None
        self._process: ProcessDocument | None = None

    # ===== Adapters =====

    def get_embedding_backend(self) -> EmbeddingBackendPort:
        if self._embedding_backend is None:
            self._embedding_backend = self._build_embedding_backend()
        return self._embedding_backend

    def get_llm(self) -> LLMPort:
        if self._llm is None:
            from pdf_tutor.infrastructure.llm.openai_chat_adapter import OpenAIChatAdapter

            self._llm = OpenAIChatAdapter(
                base_url=self.settings.llm_base_url or None,
                api_key=self.settings.llm_api_key,
                model=self.settings.llm_model,
            )
        return self._llm

    def get_vector_index(self) -> VectorIndexPort:
        if self._vector_index is None:
            self._vector_index = self._build_vector_index()
        return self._vector_index

    def get_document_store(self) -> DocumentStorePort:
        if self._document_store is None:
            from pdf_tutor.infrastructure.documents.sql_document_store import SqlDocumentStore

            url = self.settings.document_db_url
            if url.startswith("sqlite:///") and not url.startswith("sqlite:///:memory:"):
                from pathlib import Path

                Path(url.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)
            self._document_store = SqlDocumentStore(url)
        return self._document_store

    def get_blob_store(self) -> BlobStorePort:
        if self._blob_store is None:
            self._blob_store = self._build_blob_store()
        return self._blob_store

    def get_extractor(self) -> PageTextExtractorPort:
        if self._extractor is None:
            from pdf_tutor.infrastructure.parsing.pypdf_page_extractor import PypdfPageExtractor

            self._extractor = PypdfPageExtractor()
        return self._extractor

    def get_telemetry(self) -> TelemetryPort:
        if self._telemetry is None:
            self._telemetry = self._build_telemetry()
        return self._telemetry

    def get_clock(self) -> ClockPort:
        if self._clock is None:
            from pdf_tutor.infrastructure.time.system_clock import SystemClock

            self._clock = SystemClock()
        return self._clock

    # ===== Application services =====

    def get_embedder(self) -> Embedder:
        s = self.settings
        return Embedder(
            self.get_embedding_backend(),
            max_retries=s.embedding_max_retries,
            retry_delay_s=s.embedding_retry_delay_s,
            inter_call_delay_s=s.embedding_call_delay_s,
            page_embedding_chars=s.page_embedding_chars,
        )

    def get_vector_store(self) -> VectorStore:
        if self._vector_store is None:
            self._vector_store = VectorStore(
                self.get_vector_index(),
                self.get_clock(),
                documents=self.get_document_store(),
                batch_size=self.settings.upsert_batch_size,
                top_k=self.settings.top_k_results,
            )
        return self._vector_store

    def get_page_results(self) -> PageResultStore:
        return PageResultStore(self.get_blob_store())

    def get_retrieval(self) -> Retrieval:
        return Retrieval(
            self.get_document_store(),
            self.get_vector_store(),
            self.get_embedder(),
            max_context_length=self.settings.max_context_length,
        )

    # ===== Use Cases =====

    def get_process_document(self) -> ProcessDocument:
        if self._process is None:
            from pdf_tutor.application.use_cases.process_document import ProcessDocument

            s = self.settings
            common = {
                "min_text_length": s.min_text_length,
                "max_input_text_length": s.max_input_text_length,
                "temperature": s.llm_temperature,
            }
            self._process = ProcessDocument(
                extractor=self.get_extractor(),
                embedder=self.get_embedder(),
                vectors=self.get_vector_store(),
                documents=self.get_document_store(),
                retrieval=self.get_retrieval(),
                transcripts=TranscriptGenerator(
                    self.get_llm(),
                    max_tokens=s.max_tokens_transcript,
                    sentences=s.transcript_sentences,
                    **common,
                ),
                mcqs=McqGenerator(
                    self.get_llm(), max_tokens=s.max_tokens_mcq, questions=s.mcq_questions, **common
                ),
                results=self.get_page_results(),
                clock=self.get_clock(),
                locks=self._locks,
                telemetry=self.get_telemetry(),
                chunking=ChunkingParams(chunk_size=s.chunk_size, overlap=s.chunk_overlap),
                store_full_text_vector=s.store_full_text_vector,
                max_concurrent_runs=s.max_concurrent_runs,
            )
        return self._process

    def get_delete_document(self) -> DeleteDocument:
        from pdf_tutor.application.use_cases.delete_document import DeleteDocument

        return DeleteDocument(
            vectors=self.get_vector_store(),
            documents=self.get_document_store(),
            results=self.get_page_results(),
            locks=self._locks,
        )

    def get_page_content(self) -> GetPageContent:
        from pdf_tutor.application.use_cases.get_page_content import GetPageContent

        return GetPageContent(results=self.get_page_results())

    def shutdown(self) -> None:
        if self._process is not None:
            self._process.shutdown(wait=True)

    # ===== Private Builder Methods =====

    def _build_embedding_backend(self) -> EmbeddingBackendPort:
        s = self.settings
        if s.embedding_backend == "openai":
            from pdf_tutor.infrastructure.embeddings.openai_embedding_backend import (
                OpenAIEmbeddingBackend,
            )

            return OpenAIEmbeddingBackend(
                base_url=s.embedding_base_url or s.llm_base_url or None,
                api_key=s.embedding_api_key or s.llm_api_key,
                model=s.embedding_model,
                dimensions=s.embedding_dimensions or None,
            )
        if s.embedding_backend == "local":
            from pdf_tutor.infrastructure.embeddings.sentence_transformers_backend import (
                SentenceTransformersEmbeddingBackend,
            )

            return SentenceTransformersEmbeddingBackend(
                model_name=s.embedding_model, device=s.embedding_device
            )
        raise ValidationError(f"Unknown EMBEDDING_BACKEND: {s.embedding_backend}")

    def _build_vector_index(self) -> VectorIndexPort:
        s = self.settings
        if s.vector_backend == "qdrant":
            from pdf_tutor.infrastructure.vectorstore.qdrant_vector_index import (
                QdrantConfig,
                QdrantVectorIndex,
            )

            return QdrantVectorIndex(
                QdrantConfig(
                    url=s.qdrant_url,
                    api_key=s.qdrant_api_key or None,
                    collection=s.collection,
                    prefer_grpc=s.qdrant_prefer_grpc,
                    timeout_s=s.qdrant_timeout_s,
                )
            )
        if s.vector_backend == "memory":
            from pdf_tutor.infrastructure.vectorstore.memory_vector_index import InMemoryVectorIndex

            return InMemoryVectorIndex(dim=s.embedding_dimensions or None)
        raise ValidationError(f"Unknown VECTOR_BACKEND: {s.vector_backend}")

    def _build_blob_store(self) -> BlobStorePort:
        s = self.settings
        if s.blobstore_backend == "minio":
            from pdf_tutor.infrastructure.blobstores.minio_adapter import MinioBlobStore, MinioConfig

            return MinioBlobStore(
                MinioConfig(
                    endpoint=s.minio_endpoint,
                    access_key=s.minio_access_key,
                    secret_key=s.minio_secret_key,
                    bucket_name=s.minio_bucket,
                    secure=s.minio_secure,
                )
            )
        if s.blobstore_backend == "local":
            from pdf_tutor.infrastructure.blobstores.local_blob_store import LocalBlobStore

            return LocalBlobStore(s.blob_dir)
        raise ValidationError(f"Unknown BLOBSTORE_BACKEND: {s.blobstore_backend}")

    def _build_telemetry(self) -> TelemetryPort:
        if not self.settings.telemetry_enabled:
            return NoopTelemetry()
        from pdf_tutor.infrastructure.telemetry.otel_adapter import OpenTelemetryAdapter, OtelConfig

        return OpenTelemetryAdapter(
            OtelConfig(
                otlp_endpoint=self.settings.otlp_endpoint or None,
                environment=self.settings.telemetry_environment,
            )
        )
