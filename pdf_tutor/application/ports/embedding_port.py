from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class EmbeddingBackendPort(Protocol):
    """Raw embedding boundary; the response shape is normalized by the Embedder."""

    def embed(self, text: str) -> Any: ...
