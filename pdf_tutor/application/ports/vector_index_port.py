from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from pdf_tutor.domain.models import VectorMatch, VectorRecord

__all__ = ["VectorIndexPort", "VectorMatch", "VectorRecord"]


@runtime_checkable
class VectorIndexPort(Protocol):
    """Fixed-dimension vector index with metadata filtering and delete-by-id."""

    def upsert(self, records: Sequence[VectorRecord]) -> None: ...

    def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filters: Mapping[str, Any] | None = None,
    ) -> list[VectorMatch]:
        """Return at most ``top_k`` matches whose payload equals every filter, best first."""
        ...

    def delete(self, ids: Sequence[str]) -> None: ...
