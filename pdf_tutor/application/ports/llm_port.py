from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class ChatMessage:
    role: str  # "system" | "user" | "assistant"
    content: str


@dataclass(frozen=True)
class LLMResponse:
    text: str
    finish_reason: str = "stop"
    usage_tokens: int | None = None


@runtime_checkable
class LLMPort(Protocol):
    def chat(
        self, messages: Sequence[ChatMessage], temperature: float = 0.2, max_tokens: int = 512
    ) -> LLMResponse: ...

    def generate(self, prompt: str, temperature: float = 0.2, max_tokens: int = 512) -> str:
        """Single user message through ``chat``."""
        msg = ChatMessage(role="user", content=prompt)
        response = self.chat([msg], temperature=temperature, max_tokens=max_tokens)
        return response.text
