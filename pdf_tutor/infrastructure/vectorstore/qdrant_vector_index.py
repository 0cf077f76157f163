"""Qdrant vector index adapter.

Qdrant point ids must be unsigned ints or UUIDs, so every logical record id
(``{filename}:page:{n}``) maps to a deterministic UUIDv5; the logical id is
kept in the payload under ``record_id``.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from importlib import import_module
from typing import Any

from pdf_tutor.application.ports.vector_index_port import VectorIndexPort
from pdf_tutor.domain.errors import VectorStoreError
from pdf_tutor.domain.models import VectorMatch, VectorMetadata, VectorRecord

logger = logging.getLogger(__name__)

_ID_NAMESPACE = uuid.UUID("6f1c1b2e-4a0e-5b7e-9d2f-2f0b8c6a1e55")
RECORD_ID_KEY = "record_id"


def point_id(record_id: str) -> str:
    return str(uuid.uuid5(_ID_NAMESPACE, record_id))


@dataclass
class QdrantConfig:
    """Configuration for Qdrant client connection."""

    url: str = "http://localhost:6333"
    api_key: str | None = None
    collection: str = "pdf_tutor_pages"
    distance: str = "cosine"
    prefer_grpc: bool = False
    timeout_s: int = 30


class QdrantVectorIndex(VectorIndexPort):
    def __init__(self, cfg: QdrantConfig) -> None:
        self._cfg = cfg
        self._client = self._init_client(cfg)
        self._dim: int | None = None
        self._lock = threading.Lock()

    def _init_client(self, cfg: QdrantConfig) -> Any:
        try:
            qdrant_client = import_module("qdrant_client")
            return qdrant_client.QdrantClient(
                url=cfg.url,
                api_key=cfg.api_key,
                timeout=cfg.timeout_s,
                prefer_grpc=cfg.prefer_grpc,
            )
        except Exception as ex:
            raise VectorStoreError(f"Qdrant init failed: {ex}") from ex

    def _collection_dim(self) -> int | None:
        collections = self._client.get_collections()
        if not any(c.name == self._cfg.collection for c in collections.collections):
            return None
        info = self._client.get_collection(self._cfg.collection)
        return int(info.config.params.vectors.size)

    def _ensure_collection(self, dim: int) -> None:
        """Create the collection on first use; a fixed dimension is enforced afterwards."""
        with self._lock:
            if self._dim is None:
                models = import_module("qdrant_client.models")
                existing = self._collection_dim()
                if existing is None:
                    metric_map = {
                        "cosine": models.Distance.COSINE,
                        "euclid": models.Distance.EUCLID,
                        "dot": models.Distance.DOT,
                    }
                    self._client.create_collection(
                        collection_name=self._cfg.collection,
                        vectors_config=models.VectorParams(
                            size=dim,
                            distance=metric_map.get(self._cfg.distance.lower(), models.Distance.COSINE),
                        ),
                    )
                    logger.info("Created Qdrant collection %s (dim=%d)", self._cfg.collection, dim)
                    existing = dim
                self._dim = existing
        if self._dim != dim:
            raise VectorStoreError(
                f"Collection '{self._cfg.collection}' has dimension {self._dim}, got vector of {dim}"
            )

    def upsert(self, records: Sequence[VectorRecord]) -> None:
        if not records:
            return
        try:
            self._ensure_collection(len(records[0].values))
            models = import_module("qdrant_client.models")
            points = []
            for r in records:
                if len(r.values) != self._dim:
                    raise VectorStoreError(f"vector for {r.id} has wrong dimension {len(r.values)}")
                payload = r.metadata.as_payload()
                payload[RECORD_ID_KEY] = r.id
                points.append(models.PointStruct(id=point_id(r.id), vector=list(r.values), payload=payload))
            self._client.upsert(collection_name=self._cfg.collection, points=points, wait=True)
        except VectorStoreError:
            raise
        except Exception as ex:  # noqa: BLE001
            raise VectorStoreError(f"upsert: {ex}") from ex

    def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filters: Mapping[str, Any] | None = None,
    ) -> list[VectorMatch]:
        try:
            self._ensure_collection(len(vector))
            models = import_module("qdrant_client.models")
            query_filter = None
            if filters:
                query_filter = models.Filter(
                    must=[
                        models.FieldCondition(key=k, match=models.MatchValue(value=v))
                        for k, v in filters.items()
                    ]
                )
            response = self._client.query_points(
                collection_name=self._cfg.collection,
                query=list(vector),
                limit=top_k,
                query_filter=query_filter,
                with_payload=True,
                with_vectors=False,
            )
        except VectorStoreError:
            raise
        except Exception as ex:  # noqa: BLE001
            raise VectorStoreError(f"query: {ex}") from ex

        matches = []
        for hit in response.points:
            payload = dict(hit.payload or {})
            matches.append(
                VectorMatch(
                    id=str(payload.pop(RECORD_ID_KEY, hit.id)),
                    score=float(hit.score),
                    metadata=VectorMetadata.from_payload(payload),
                )
            )
        return matches

    def delete(self, ids: Sequence[str]) -> None:
        if not ids:
            return
        try:
            if self._dim is None and self._collection_dim() is None:
                return  # nothing was ever written
            models = import_module("qdrant_client.models")
            self._client.delete(
                collection_name=self._cfg.collection,
                points_selector=models.PointIdsList(points=[point_id(i) for i in ids]),
                wait=True,
            )
        except Exception as ex:  # noqa: BLE001
            raise VectorStoreError(f"delete: {ex}") from ex
