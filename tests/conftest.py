"""Shared fakes for the pipeline ports."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from pdf_tutor.application.ports.clock_port import ClockPort
from pdf_tutor.application.ports.llm_port import ChatMessage, LLMResponse
from pdf_tutor.domain.errors import DomainError, UpstreamError
from pdf_tutor.domain.models import ChunkedDocument, ExtractedPages
from pdf_tutor.domain.types import Result

FAIL_MARKER = "EMBED_FAIL"


class FakeClock(ClockPort):
    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 1, 1, tzinfo=UTC)

    def now(self) -> datetime:
        self.current += timedelta(milliseconds=10)
        return self.current


class FakeEmbeddingBackend:
    """Letter-frequency vectors; texts containing FAIL_MARKER always fail upstream."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def embed(self, text: str) -> Any:
        self.calls.append(text)
        if FAIL_MARKER in text:
            raise UpstreamError("upstream unavailable")
        counts = [1.0] + [0.0] * 26
        for ch in text.lower():
            if "a" <= ch <= "z":
                counts[ord(ch) - ord("a") + 1] += 1.0
        return {"data": [counts]}


MCQ_ANSWER = json.dumps(
    [
        {
            "question": "What does the page describe?",
            "options": ["Cells", "Planets", "Rivers", "Songs"],
            "correct_option_index": 0,
            "explanation": "The page is about cells.",
        },
        {
            "question": "Which organelle makes energy?",
            "options": ["Nucleus", "Mitochondria", "Ribosome", "Wall"],
            "correct_option_index": 1,
            "explanation": "Mitochondria produce ATP.",
        },
    ]
)


class FakeLLM:
    def __init__(self, transcript: str = "A concise two sentence summary.", mcq: str = MCQ_ANSWER):
        self.transcript = transcript
        self.mcq = mcq
        self.calls: list[list[ChatMessage]] = []
        self.fail = False

    def chat(self, messages, temperature: float = 0.2, max_tokens: int = 512) -> LLMResponse:
        self.calls.append(list(messages))
        if self.fail:
            raise DomainError("llm down")
        system = messages[0].content if messages else ""
        return LLMResponse(text=self.mcq if "JSON" in system else self.transcript)

    def generate(self, prompt: str, temperature: float = 0.2, max_tokens: int = 512) -> str:
        return self.chat([ChatMessage("user", prompt)], temperature, max_tokens).text


class FakeExtractor:
    def __init__(self, pages: list[str]) -> None:
        self.pages = pages

    def extract(self, content: bytes) -> ExtractedPages:
        return ExtractedPages(pages=tuple(self.pages))


class DictDocumentStore:
    def __init__(self) -> None:
        self.docs: dict[str, ChunkedDocument] = {}

    def store(self, document: ChunkedDocument) -> None:
        self.docs[document.id] = document

    def get(self, filename: str) -> ChunkedDocument | None:
        return self.docs.get(filename)

    def delete(self, filename: str) -> None:
        self.docs.pop(filename, None)


class DictBlobStore:
    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}
        self.fail_put = False

    def put(self, key: str, data: bytes, meta: dict[str, Any]) -> Result[str, DomainError]:
        if self.fail_put:
            return Result.failure(DomainError("disk full"))
        self.blobs[key] = data
        return Result.success(key)

    def get(self, key: str) -> Result[bytes | None, DomainError]:
        return Result.success(self.blobs.get(key))

    def delete(self, key: str) -> Result[None, DomainError]:
        self.blobs.pop(key, None)
        return Result.success(None)

    def json(self, key: str) -> Any:
        return json.loads(self.blobs[key].decode("utf-8"))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def embedding_backend() -> FakeEmbeddingBackend:
    return FakeEmbeddingBackend()


@pytest.fixture
def llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def document_store() -> DictDocumentStore:
    return DictDocumentStore()


@pytest.fixture
def blob_store() -> DictBlobStore:
    return DictBlobStore()


@pytest.fixture
def make_extractor():
    return FakeExtractor
