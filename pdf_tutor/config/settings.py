"""Application settings with environment-driven configuration.

This is the ONLY place where environment variables are read. All other
layers receive settings via dependency injection.
"""

import os
from dataclasses import dataclass, field


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class AppSettings:
    # ===== Chunking =====
    chunk_size: int = field(default_factory=lambda: int(os.getenv("CHUNK_SIZE", "400")))
    chunk_overlap: int = field(default_factory=lambda: int(os.getenv("CHUNK_OVERLAP", "50")))

    # ===== Retrieval =====
    top_k_results: int = field(default_factory=lambda: int(os.getenv("TOP_K_RESULTS", "3")))
    max_context_length: int = field(
        default_factory=lambda: int(os.getenv("MAX_CONTEXT_LENGTH", "1500"))
    )

    # ===== Embedding =====
    embedding_backend: str = field(
        default_factory=lambda: os.getenv("EMBEDDING_BACKEND", "openai").lower()
    )
    # Supported: "openai" (any OpenAI-compatible /embeddings endpoint) | "local"
    embedding_model: str = field(
        default_factory=lambda: os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
    )
    embedding_base_url: str = field(default_factory=lambda: os.getenv("EMBEDDING_BASE_URL", ""))
    embedding_api_key: str = field(default_factory=lambda: os.getenv("EMBEDDING_API_KEY", ""))
    embedding_device: str = field(default_factory=lambda: os.getenv("EMBEDDING_DEVICE", "cpu"))
    embedding_max_retries: int = field(
        default_factory=lambda: int(os.getenv("EMBEDDING_MAX_RETRIES", "2"))
    )
    embedding_retry_delay_s: float = field(
        default_factory=lambda: float(os.getenv("EMBEDDING_RETRY_DELAY_S", "1.0"))
    )
    embedding_call_delay_s: float = field(
        default_factory=lambda: float(os.getenv("EMBEDDING_CALL_DELAY_S", "0.5"))
    )
    page_embedding_chars: int = field(
        default_factory=lambda: int(os.getenv("PAGE_EMBEDDING_CHARS", "1024"))
    )
    store_full_text_vector: bool = field(
        default_factory=lambda: _flag("STORE_FULL_TEXT_VECTOR", "true")
    )

    # ===== LLM =====
    llm_base_url: str = field(default_factory=lambda: os.getenv("LLM_BASE_URL", ""))
    # Empty = api.openai.com; vLLM/Ollama e.g. "http://localhost:8000/v1"
    llm_api_key: str = field(default_factory=lambda: os.getenv("LLM_API_KEY", "EMPTY"))
    llm_model: str = field(default_factory=lambda: os.getenv("LLM_MODEL", "gpt-4o-mini"))
    llm_temperature: float = field(
        default_factory=lambda: float(os.getenv("LLM_TEMPERATURE", "0.2"))
    )
    max_tokens_transcript: int = field(
        default_factory=lambda: int(os.getenv("MAX_TOKENS_TRANSCRIPT", "256"))
    )
    max_tokens_mcq: int = field(default_factory=lambda: int(os.getenv("MAX_TOKENS_MCQ", "512")))
    min_text_length: int = field(default_factory=lambda: int(os.getenv("MIN_TEXT_LENGTH", "20")))
    max_input_text_length: int = field(
        default_factory=lambda: int(os.getenv("MAX_INPUT_TEXT_LENGTH", "1000"))
    )
    transcript_sentences: int = field(
        default_factory=lambda: int(os.getenv("TRANSCRIPT_SENTENCES", "2"))
    )
    mcq_questions: int = field(default_factory=lambda: int(os.getenv("MCQ_QUESTIONS", "2")))

    # ===== Vector Store =====
    vector_backend: str = field(
        default_factory=lambda: os.getenv("VECTOR_BACKEND", "qdrant").lower()
    )
    # Supported: "qdrant" | "memory"
    qdrant_url: str = field(
        default_factory=lambda: os.getenv("QDRANT_URL", "http://localhost:6333")
    )
    qdrant_api_key: str = field(default_factory=lambda: os.getenv("QDRANT_API_KEY", ""))
    qdrant_prefer_grpc: bool = field(default_factory=lambda: _flag("QDRANT_PREFER_GRPC", "false"))
    qdrant_timeout_s: int = field(default_factory=lambda: int(os.getenv("QDRANT_TIMEOUT_S", "30")))
    collection: str = field(
        default_factory=lambda: os.getenv("VECTOR_COLLECTION", "pdf_tutor_pages")
    )
    embedding_dimensions: int = field(
        default_factory=lambda: int(os.getenv("EMBEDDING_DIMENSIONS", "0"))
    )
    # 0 = take the dimension of the first stored vector
    upsert_batch_size: int = field(
        default_factory=lambda: int(os.getenv("UPSERT_BATCH_SIZE", "100"))
    )

    # ===== Document / Blob Storage =====
    document_db_url: str = field(
        default_factory=lambda: os.getenv("DOCUMENT_DB_URL", "sqlite:///var/pdf_tutor.db")
    )
    blobstore_backend: str = field(
        default_factory=lambda: os.getenv("BLOBSTORE_BACKEND", "local").lower()
    )
    # Supported: "local" | "minio"
    blob_dir: str = field(default_factory=lambda: os.getenv("BLOB_DIR", "var/blobs"))
    minio_endpoint: str = field(
        default_factory=lambda: os.getenv("MINIO_ENDPOINT", "localhost:9000")
    )
    minio_access_key: str = field(default_factory=lambda: os.getenv("MINIO_ACCESS_KEY", ""))
    minio_secret_key: str = field(default_factory=lambda: os.getenv("MINIO_SECRET_KEY", ""))
    minio_bucket: str = field(default_factory=lambda: os.getenv("MINIO_BUCKET", "pdf-tutor"))
    minio_secure: bool = field(default_factory=lambda: _flag("MINIO_SECURE", "true"))

    # ===== Runtime =====
    max_concurrent_runs: int = field(
        default_factory=lambda: int(os.getenv("MAX_CONCURRENT_RUNS", "2"))
    )
    max_upload_mb: int = field(default_factory=lambda: int(os.getenv("MAX_UPLOAD_MB", "10")))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # ===== Telemetry =====
    telemetry_enabled: bool = field(default_factory=lambda: _flag("TELEMETRY_ENABLED", "false"))
    otlp_endpoint: str = field(default_factory=lambda: os.getenv("OTLP_ENDPOINT", ""))
    telemetry_environment: str = field(
        default_factory=lambda: os.getenv("TELEMETRY_ENVIRONMENT", "production")
    )
