import pytest

from pdf_tutor.application.services.vector_store import VectorStore
from pdf_tutor.domain.errors import ValidationError
from pdf_tutor.domain.models import EmbeddingVector
from pdf_tutor.domain.services.chunking import build_chunked_document
from pdf_tutor.infrastructure.vectorstore.memory_vector_index import InMemoryVectorIndex


class RecordingIndex(InMemoryVectorIndex):
    def __init__(self):
        super().__init__()
        self.batches: list[int] = []
        self.deleted: list[list[str]] = []

    def upsert(self, records):
        self.batches.append(len(records))
        super().upsert(records)

    def delete(self, ids):
        self.deleted.append(list(ids))
        super().delete(ids)


def _vec(*xs):
    return EmbeddingVector(values=tuple(float(x) for x in xs))


@pytest.fixture
def index():
    return RecordingIndex()


def test_page_upserts_are_batched(index, clock):
    store = VectorStore(index, clock, batch_size=100)
    store.upsert_page_vectors("a.pdf", {n: _vec(1, n) for n in range(1, 251)})
    assert index.batches == [100, 100, 50]
    assert len(index) == 250


def test_batch_size_must_be_positive(index, clock):
    with pytest.raises(ValidationError):
        VectorStore(index, clock, batch_size=0)


def test_metadata_and_ids(index, clock):
    store = VectorStore(index, clock)
    store.upsert_page_vectors("a.pdf", {2: _vec(1, 0)})
    store.upsert_full_text_vector("a.pdf", _vec(0, 1))

    page = store.query_page_vector("a.pdf", 2, _vec(1, 0))
    assert [m.id for m in page] == ["a.pdf:page:2"]
    assert page[0].metadata.kind == "page" and page[0].metadata.page_number == 2
    assert page[0].metadata.timestamp > 0

    full = store.query_full_text_vector("a.pdf", _vec(1, 0))
    assert [m.id for m in full] == ["a.pdf:full"]


def test_queries_are_scoped_to_filename(index, clock):
    store = VectorStore(index, clock, top_k=10)
    store.upsert_page_vectors("a.pdf", {1: _vec(1, 0), 2: _vec(0.9, 0.1)})
    store.upsert_page_vectors("b.pdf", {1: _vec(1, 0)})

    hits = store.query_all_page_vectors("a.pdf", _vec(1, 0))
    assert [h.id for h in hits] == ["a.pdf:page:1", "a.pdf:page:2"]


def test_delete_uses_stored_document_pages(index, clock, document_store):
    document_store.store(build_chunked_document("a.pdf", ["p1", "p2", "p3"]))
    writer = VectorStore(index, clock, documents=document_store)
    writer.upsert_page_vectors("a.pdf", {1: _vec(1, 0), 3: _vec(0, 1)})
    writer.upsert_full_text_vector("a.pdf", _vec(1, 1))

    # a fresh service (e.g. another worker) has no local page tracking
    other = VectorStore(index, clock, documents=document_store)
    ids = other.delete_document_vectors("a.pdf")

    assert ids == ["a.pdf:full", "a.pdf:page:1", "a.pdf:page:2", "a.pdf:page:3"]
    assert not [i for i in index.ids() if i.startswith("a.pdf:")]


def test_delete_without_stored_document_uses_written_pages(index, clock):
    store = VectorStore(index, clock)
    store.upsert_page_vectors("a.pdf", {n: _vec(1, n) for n in range(1, 131)})

    ids = store.delete_document_vectors("a.pdf")

    assert len(ids) == 131
    assert len(index) == 0


def test_delete_with_explicit_pages(index, clock):
    store = VectorStore(index, clock)
    ids = store.delete_document_vectors("a.pdf", page_numbers=[2, 1])
    assert ids == ["a.pdf:full", "a.pdf:page:1", "a.pdf:page:2"]


def test_delete_page_vectors_only_removes_given_pages(index, clock):
    store = VectorStore(index, clock)
    store.upsert_page_vectors("a.pdf", {1: _vec(1, 0), 2: _vec(0, 1)})
    assert store.delete_page_vectors("a.pdf", [2]) == ["a.pdf:page:2"]
    assert store.delete_page_vectors("a.pdf", []) == []
    assert index.ids() == ["a.pdf:page:1"]
