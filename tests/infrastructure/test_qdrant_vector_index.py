"""QdrantVectorIndex against an in-process fake of qdrant_client."""

import math
import sys
import types
from types import SimpleNamespace

import pytest

from pdf_tutor.domain.errors import VectorStoreError
from pdf_tutor.domain.models import VectorMetadata, VectorRecord


def _cos(a, b):
    na = math.sqrt(sum(x * x for x in a))
    nb = math.sqrt(sum(x * x for x in b))
    return sum(x * y for x, y in zip(a, b)) / (na * nb)


class FakeQdrantClient:
    instances: list["FakeQdrantClient"] = []

    def __init__(self, url, api_key=None, timeout=None, prefer_grpc=False):
        self.url = url
        self.collections: dict[str, int] = {}
        self.points: dict[str, dict] = {}
        FakeQdrantClient.instances.append(self)

    def get_collections(self):
        return SimpleNamespace(collections=[SimpleNamespace(name=n) for n in self.collections])

    def get_collection(self, name):
        size = self.collections[name]
        return SimpleNamespace(config=SimpleNamespace(params=SimpleNamespace(vectors=SimpleNamespace(size=size))))

    def create_collection(self, collection_name, vectors_config):
        self.collections[collection_name] = vectors_config.size

    def upsert(self, collection_name, points, wait=True):
        for p in points:
            self.points[p.id] = {"vector": p.vector, "payload": p.payload}

    def query_points(self, collection_name, query, limit, query_filter=None, with_payload=True, with_vectors=False):
        hits = []
        for pid, p in self.points.items():
            if query_filter and not all(p["payload"].get(c.key) == c.match.value for c in query_filter.must):
                continue
            hits.append(SimpleNamespace(id=pid, score=_cos(query, p["vector"]), payload=dict(p["payload"])))
        hits.sort(key=lambda h: -h.score)
        return SimpleNamespace(points=hits[:limit])

    def delete(self, collection_name, points_selector, wait=True):
        for pid in points_selector.points:
            self.points.pop(pid, None)


@pytest.fixture
def fake_qdrant(monkeypatch):
    FakeQdrantClient.instances.clear()
    root = types.ModuleType("qdrant_client")
    root.QdrantClient = FakeQdrantClient
    models = types.ModuleType("qdrant_client.models")
    models.Distance = SimpleNamespace(COSINE="Cosine", EUCLID="Euclid", DOT="Dot")
    models.VectorParams = lambda size, distance: SimpleNamespace(size=size, distance=distance)
    models.PointStruct = lambda id, vector, payload: SimpleNamespace(id=id, vector=vector, payload=payload)
    models.Filter = lambda must: SimpleNamespace(must=must)
    models.FieldCondition = lambda key, match: SimpleNamespace(key=key, match=match)
    models.MatchValue = lambda value: SimpleNamespace(value=value)
    models.PointIdsList = lambda points: SimpleNamespace(points=points)
    monkeypatch.setitem(sys.modules, "qdrant_client", root)
    monkeypatch.setitem(sys.modules, "qdrant_client.models", models)
    return FakeQdrantClient


def _rec(rid, values, page=None, kind="page"):
    return VectorRecord(
        id=rid,
        values=tuple(values),
        metadata=VectorMetadata(filename="a.pdf", kind=kind, timestamp=5, page_number=page),
    )


def _index():
    from pdf_tutor.infrastructure.vectorstore.qdrant_vector_index import QdrantConfig, QdrantVectorIndex

    return QdrantVectorIndex(QdrantConfig(url="http://qdrant:6333", collection="pages"))


def test_logical_ids_round_trip_through_uuid_point_ids(fake_qdrant):
    from pdf_tutor.infrastructure.vectorstore.qdrant_vector_index import point_id

    idx = _index()
    idx.upsert([_rec("a.pdf:page:1", [1, 0], page=1), _rec("a.pdf:full", [0, 1], kind="full")])

    client = fake_qdrant.instances[0]
    assert client.collections == {"pages": 2}
    assert point_id("a.pdf:page:1") in client.points
    assert point_id("a.pdf:page:1") == point_id("a.pdf:page:1")

    hits = idx.query([1, 0], top_k=5, filters={"filename": "a.pdf", "kind": "page"})
    assert [h.id for h in hits] == ["a.pdf:page:1"]
    assert hits[0].metadata.page_number == 1
    assert hits[0].metadata.kind == "page"


def test_delete_by_logical_id(fake_qdrant):
    idx = _index()
    idx.upsert([_rec("a.pdf:page:1", [1, 0], page=1), _rec("a.pdf:page:2", [1, 0], page=2)])
    idx.delete(["a.pdf:page:1", "a.pdf:full"])
    assert [h.id for h in idx.query([1, 0], top_k=5)] == ["a.pdf:page:2"]


def test_delete_before_any_write_is_noop(fake_qdrant):
    _index().delete(["a.pdf:full"])
    assert fake_qdrant.instances[0].collections == {}


def test_dimension_mismatch_raises(fake_qdrant):
    idx = _index()
    idx.upsert([_rec("x", [1, 0], page=1)])
    with pytest.raises(VectorStoreError):
        idx.upsert([_rec("y", [1, 0, 0], page=1)])
    with pytest.raises(VectorStoreError):
        idx.query([1, 0, 0], top_k=1)


def test_client_errors_become_vector_store_errors(fake_qdrant, monkeypatch):
    idx = _index()
    idx.upsert([_rec("x", [1, 0], page=1)])

    def boom(*args, **kwargs):
        raise ConnectionError("refused")

    monkeypatch.setattr(fake_qdrant.instances[0], "query_points", boom)
    with pytest.raises(VectorStoreError, match="refused"):
        idx.query([1, 0], top_k=1)


def test_missing_client_library_raises(monkeypatch):
    monkeypatch.setitem(sys.modules, "qdrant_client", None)
    with pytest.raises(VectorStoreError, match="init failed"):
        _index()
