"""Embedding backend for OpenAI-compatible ``/embeddings`` endpoints.

Returns the raw ``[[...]]`` rows; shape decoding happens in the Embedder.
Transient server errors surface as UpstreamError so the Embedder retries them.
"""

from dataclasses import dataclass
from importlib import import_module
from typing import Any

from pdf_tutor.application.ports.embedding_port import EmbeddingBackendPort
from pdf_tutor.domain.errors import EmbeddingError, UpstreamError

_TRANSIENT = frozenset(
    {"APIConnectionError", "APITimeoutError", "InternalServerError", "RateLimitError"}
)


@dataclass
class OpenAIEmbeddingBackend(EmbeddingBackendPort):
    base_url: str | None = None
    api_key: str = "EMPTY"
    model: str = "text-embedding-3-small"
    dimensions: int | None = None
    timeout_s: float = 30.0

    def __post_init__(self) -> None:
        self._client: Any | None = None

    def _get_client(self) -> Any:
        if self._client is None:
            module = import_module("openai")
            self._client = module.OpenAI(
                base_url=self.base_url, api_key=self.api_key, timeout=self.timeout_s
            )
        return self._client

    def embed(self, text: str) -> list[list[float]]:
        kwargs: dict[str, Any] = {"model": self.model, "input": [text]}
        if self.dimensions:
            kwargs["dimensions"] = self.dimensions
        try:
            resp: Any = self._get_client().embeddings.create(**kwargs)
        except Exception as ex:  # noqa: BLE001
            if type(ex).__name__ in _TRANSIENT:
                raise UpstreamError(f"embedding upstream error: {ex}") from ex
            raise EmbeddingError(f"embedding request failed: {ex}") from ex
        return [list(item.embedding) for item in resp.data]
