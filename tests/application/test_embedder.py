import pytest

from pdf_tutor.application.services.embedder import Embedder, is_retryable
from pdf_tutor.domain.errors import EmbeddingError, UpstreamError, ValidationError


class FlakyBackend:
    """Fails ``failures`` times with ``exc``, then answers with a nested vector."""

    def __init__(self, failures: int, exc: Exception | None = None):
        self.failures = failures
        self.exc = exc or UpstreamError("upstream connect error")
        self.attempts = 0

    def embed(self, text):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise self.exc
        return [[0.1, 0.2, 0.3]]


class InferenceUpstreamError(Exception):
    pass


def _embedder(backend, **kw):
    sleeps: list[float] = []
    return Embedder(backend, sleep=sleeps.append, **kw), sleeps


def test_two_retryable_failures_then_success_takes_three_attempts():
    backend = FlakyBackend(failures=2)
    embedder, sleeps = _embedder(backend, max_retries=2, retry_delay_s=1.0)

    vector = embedder.embed("hello")

    assert vector.values == (0.1, 0.2, 0.3)
    assert backend.attempts == 3
    # linear backoff: 1s, then 2s
    assert sleeps == [1.0, 2.0]


def test_retry_budget_is_never_exceeded():
    backend = FlakyBackend(failures=10)
    embedder, _ = _embedder(backend, max_retries=2)

    with pytest.raises(EmbeddingError) as exc_info:
        embedder.embed("hello")

    assert backend.attempts == 3
    assert isinstance(exc_info.value.__cause__, UpstreamError)


def test_fatal_error_is_not_retried():
    backend = FlakyBackend(failures=5, exc=PermissionError("invalid api key"))
    embedder, sleeps = _embedder(backend)

    with pytest.raises(EmbeddingError):
        embedder.embed("hello")

    assert backend.attempts == 1
    assert sleeps == []


def test_unknown_shape_is_not_retried():
    class WeirdBackend:
        attempts = 0

        def embed(self, text):
            self.attempts += 1
            return {"vectors": [1.0]}

    backend = WeirdBackend()
    embedder, _ = _embedder(backend)
    with pytest.raises(EmbeddingError, match="unrecognized"):
        embedder.embed("x")
    assert backend.attempts == 1


@pytest.mark.parametrize(
    "exc,expected",
    [
        (UpstreamError("x"), True),
        (InferenceUpstreamError("x"), True),
        (RuntimeError("Internal error while running inference"), True),
        (RuntimeError("bad upstream response"), True),
        (ValueError("input too long"), False),
        (EmbeddingError("upstream"), False),
        (ValidationError("x"), False),
    ],
)
def test_is_retryable(exc, expected):
    assert is_retryable(exc) is expected


def test_negative_retry_budget_rejected():
    with pytest.raises(ValidationError):
        Embedder(FlakyBackend(0), max_retries=-1)


def test_embed_pages_skips_failed_pages_and_throttles(embedding_backend):
    sleeps: list[float] = []
    embedder = Embedder(embedding_backend, max_retries=0, inter_call_delay_s=0.5, sleep=sleeps.append)

    vectors = embedder.embed_pages({1: ("alpha",), 2: ("EMBED_FAIL beta",), 3: ("gamma", "delta")})

    assert sorted(vectors) == [1, 3]
    assert sleeps == [0.5, 0.5]
    assert embedding_backend.calls[2] == "gamma delta"


def test_embed_pages_caps_page_text(embedding_backend):
    embedder = Embedder(embedding_backend, page_embedding_chars=10, inter_call_delay_s=0, sleep=lambda s: None)
    embedder.embed_pages({1: ("x" * 50,)})
    assert embedding_backend.calls == ["x" * 10]


def test_embed_full_text_uses_sample(embedding_backend):
    embedder = Embedder(embedding_backend, sleep=lambda s: None)
    embedder.embed_full_text("a" * 5000)
    assert len(embedding_backend.calls[0]) == 1000 + 3 + 500 + 3 + 500


def test_embed_texts_deduplicates_and_throttles(embedding_backend):
    sleeps: list[float] = []
    embedder = Embedder(embedding_backend, max_retries=0, inter_call_delay_s=0.5, sleep=sleeps.append)

    vectors = embedder.embed_texts(["summarize", "EMBED_FAIL quiz", "summarize", "explain"])

    assert sorted(vectors) == ["explain", "summarize"]
    assert embedding_backend.calls == ["summarize", "EMBED_FAIL quiz", "explain"]
    assert sleeps == [0.5, 0.5]
