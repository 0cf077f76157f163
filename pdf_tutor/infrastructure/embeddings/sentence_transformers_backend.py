from dataclasses import dataclass
from typing import Any

from pdf_tutor.application.ports.embedding_port import EmbeddingBackendPort
from pdf_tutor.domain.errors import EmbeddingError


@dataclass
class SentenceTransformersEmbeddingBackend(EmbeddingBackendPort):
    """Local embeddings; returns a flat vector per call."""

    model_name: str = "sentence-transformers/all-MiniLM-L6-v2"
    device: str = "cpu"  # "cuda" falls verfügbar
    normalize: bool = True

    def __post_init__(self) -> None:
        self._model: Any | None = None

    def _get(self) -> Any:
        if self._model is None:
            try:
                from sentence_transformers import SentenceTransformer  # type: ignore
            except Exception as ex:  # pragma: no cover
                raise EmbeddingError("sentence-transformers not installed") from ex
            self._model = SentenceTransformer(self.model_name, device=self.device)
        return self._model

    def embed(self, text: str) -> list[float]:
        model = self._get()
        try:
            vector = model.encode(text, normalize_embeddings=self.normalize, convert_to_numpy=True)
        except Exception as ex:  # noqa: BLE001
            raise EmbeddingError(f"local embedding failed: {ex}") from ex
        return vector.tolist()
