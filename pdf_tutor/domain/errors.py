"""Domain errors (typed) for the ingest-and-generate pipeline.

Adapters translate third-party exceptions into this family so the
application layer never sees infrastructure types.
"""


class DomainError(Exception):
    """Base class for domain-specific errors."""


class ValidationError(DomainError):
    """Invalid input/domain state (e.g. overlap >= chunk size)."""


class UpstreamError(DomainError):
    """Transient backend failure; safe to retry."""


class EmbeddingError(DomainError):
    """Embedding backend exhausted its retries or returned an unknown shape."""


class ParseError(DomainError):
    """Generated text did not contain the expected JSON array."""


class NotFoundError(DomainError):
    """No stored document, vectors or page results for the requested id."""


class StorageError(DomainError):
    """Persistence call failed."""


class VectorStoreError(DomainError):
    """Vector index backend failed or is misconfigured."""


class LLMError(DomainError):
    """Text-generation backend failed or is misconfigured."""


class DocumentError(DomainError):
    """Page text extraction failed."""
