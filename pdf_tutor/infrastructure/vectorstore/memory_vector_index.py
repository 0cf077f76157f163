"""In-process vector index (numpy cosine similarity).

Single-process only; used for local runs and tests.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np

from pdf_tutor.application.ports.vector_index_port import VectorIndexPort
from pdf_tutor.domain.errors import VectorStoreError
from pdf_tutor.domain.models import VectorMatch, VectorMetadata, VectorRecord


def _normalize(v: np.ndarray) -> np.ndarray:
    norm = float(np.linalg.norm(v))
    return v / norm if norm > 0 else v


class InMemoryVectorIndex(VectorIndexPort):
    def __init__(self, dim: int | None = None) -> None:
        self.dim = dim
        self._vectors: dict[str, np.ndarray] = {}
        self._meta: dict[str, VectorMetadata] = {}
        self._lock = threading.Lock()

    def _check_dim(self, n: int) -> None:
        if self.dim is None:
            self.dim = n
        elif n != self.dim:
            raise VectorStoreError(f"dimension mismatch: index has {self.dim}, got {n}")

    def __len__(self) -> int:
        return len(self._vectors)

    def ids(self) -> list[str]:
        with self._lock:
            return sorted(self._vectors)

    def upsert(self, records: Sequence[VectorRecord]) -> None:
        with self._lock:
            for r in records:
                self._check_dim(len(r.values))
                self._vectors[r.id] = _normalize(np.asarray(r.values, dtype=np.float32))
                self._meta[r.id] = r.metadata

    def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filters: Mapping[str, Any] | None = None,
    ) -> list[VectorMatch]:
        with self._lock:
            if self.dim is not None and len(vector) != self.dim:
                raise VectorStoreError(f"dimension mismatch: index has {self.dim}, got {len(vector)}")
            candidates = [
                rid
                for rid, meta in self._meta.items()
                if all(meta.as_payload().get(k) == v for k, v in (filters or {}).items())
            ]
            if not candidates or top_k <= 0:
                return []
            matrix = np.stack([self._vectors[rid] for rid in candidates])
            q = _normalize(np.asarray(vector, dtype=np.float32))
            scores = matrix @ q
            order = np.argsort(-scores)[:top_k]
            return [
                VectorMatch(id=candidates[i], score=float(scores[i]), metadata=self._meta[candidates[i]])
                for i in order
            ]

    def delete(self, ids: Sequence[str]) -> None:
        with self._lock:
            for rid in ids:
                self._vectors.pop(rid, None)
                self._meta.pop(rid, None)
