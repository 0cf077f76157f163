"""Application ports package.

Re-exports every boundary the pipeline depends on.
"""

from pdf_tutor.application.ports.blob_store_port import BlobStorePort
from pdf_tutor.application.ports.clock_port import ClockPort
from pdf_tutor.application.ports.document_store_port import DocumentStorePort
from pdf_tutor.application.ports.embedding_port import EmbeddingBackendPort
from pdf_tutor.application.ports.llm_port import ChatMessage, LLMPort, LLMResponse
from pdf_tutor.application.ports.page_extractor_port import PageTextExtractorPort
from pdf_tutor.application.ports.telemetry_port import NoopTelemetry, TelemetryPort
from pdf_tutor.application.ports.vector_index_port import VectorIndexPort

__all__ = [
    "BlobStorePort",
    "ClockPort",
    "DocumentStorePort",
    "EmbeddingBackendPort",
    "LLMPort",
    "ChatMessage",
    "LLMResponse",
    "NoopTelemetry",
    "PageTextExtractorPort",
    "TelemetryPort",
    "VectorIndexPort",
]
