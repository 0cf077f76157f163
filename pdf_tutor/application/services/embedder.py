"""Embedder: raw embedding boundary + retry policy + response-shape normalization.

Retries are local to one call (bounded attempts, linear backoff). Across
calls the only throttle is a fixed delay between successive page embeddings.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, Sequence

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

from pdf_tutor.application.ports.embedding_port import EmbeddingBackendPort
from pdf_tutor.domain.errors import EmbeddingError, UpstreamError, ValidationError
from pdf_tutor.domain.models import EmbeddingVector
from pdf_tutor.domain.services.chunking import representative_sample
from pdf_tutor.domain.services.embedding_response import decode_embedding_response

logger = logging.getLogger(__name__)

_RETRYABLE_KINDS = frozenset(
    {
        "InferenceUpstreamError",
        "InternalServerError",
        "APIConnectionError",
        "APITimeoutError",
        "RateLimitError",
    }
)
_RETRYABLE_MARKERS = ("internal error", "upstream")


def is_retryable(exc: BaseException) -> bool:
    """Transient upstream/internal failures are retryable; bad input and auth are not."""
    if isinstance(exc, UpstreamError):
        return True
    if isinstance(exc, (EmbeddingError, ValidationError)):
        return False
    if type(exc).__name__ in _RETRYABLE_KINDS:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _RETRYABLE_MARKERS)


class Embedder:
    def __init__(
        self,
        backend: EmbeddingBackendPort,
        max_retries: int = 2,
        retry_delay_s: float = 1.0,
        inter_call_delay_s: float = 0.5,
        page_embedding_chars: int = 1024,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValidationError("max_retries must be >= 0")
        self.backend = backend
        self.max_retries = max_retries
        self.retry_delay_s = retry_delay_s
        self.inter_call_delay_s = inter_call_delay_s
        self.page_embedding_chars = page_embedding_chars
        self._sleep = sleep

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_incrementing(start=self.retry_delay_s, increment=self.retry_delay_s),
            retry=retry_if_exception(is_retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self._sleep,
            reraise=True,
        )

    def embed(self, text: str) -> EmbeddingVector:
        """Embed ``text`` (already truncated by the caller).

        Raises:
            EmbeddingError: retries exhausted, fatal backend error or unknown shape.
        """
        try:
            raw = self._retrying()(self.backend.embed, text)
        except EmbeddingError:
            raise
        except Exception as ex:  # noqa: BLE001
            if is_retryable(ex):
                raise EmbeddingError(
                    f"embedding failed after {self.max_retries + 1} attempts: {ex}"
                ) from ex
            raise EmbeddingError(f"embedding failed: {ex}") from ex
        vector = decode_embedding_response(raw)
        logger.debug("Generated embedding with %d dimensions", vector.dimensions)
        return vector

    def embed_pages(self, page_chunks: Mapping[int, Sequence[str]]) -> dict[int, EmbeddingVector]:
        """Best-effort per-page embeddings; failed pages are logged and left out."""
        vectors: dict[int, EmbeddingVector] = {}
        for i, page in enumerate(sorted(page_chunks)):
            if i > 0 and self.inter_call_delay_s > 0:
                self._sleep(self.inter_call_delay_s)
            page_text = " ".join(page_chunks[page])[: self.page_embedding_chars]
            try:
                vectors[page] = self.embed(page_text)
            except EmbeddingError as ex:
                logger.error("Failed to generate embedding for page %d: %s", page, ex)
                continue
            logger.info("Generated embedding for page %d", page)
        return vectors

    def embed_texts(self, texts: Sequence[str]) -> dict[str, EmbeddingVector]:
        """Embed each distinct text once, throttled like pages; failures are left out."""
        vectors: dict[str, EmbeddingVector] = {}
        for i, text in enumerate(dict.fromkeys(texts)):
            if i > 0 and self.inter_call_delay_s > 0:
                self._sleep(self.inter_call_delay_s)
            try:
                vectors[text] = self.embed(text)
            except EmbeddingError as ex:
                logger.error("Failed to embed query text: %s", ex)
        return vectors

    def embed_full_text(self, full_text: str) -> EmbeddingVector:
        return self.embed(representative_sample(full_text))
