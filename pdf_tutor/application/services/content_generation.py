"""Per-page content generators (transcript, MCQ).

Both generators share one contract: ``generate`` never raises. Backend
errors, empty answers, unparsable JSON and too-short input all end in a
deterministic fallback, reported through ``GeneratedContent.generated``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Generic, TypeVar

from pdf_tutor.application.ports.llm_port import ChatMessage, LLMPort
from pdf_tutor.domain.errors import ParseError
from pdf_tutor.domain.models import AugmentedPromptData, McqQuestion
from pdf_tutor.domain.services.mcq import fallback_mcqs, parse_mcq_response

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSCRIPT_SYSTEM_PROMPT = "You are a helpful educator."
MCQ_SYSTEM_PROMPT = "You respond with JSON only."

_MCQ_EXAMPLE = json.dumps(
    [
        {
            "question": "Q?",
            "options": ["A", "B", "C", "D"],
            "correct_option_index": 0,
            "explanation": "Why",
        }
    ]
)


@dataclass(frozen=True)
class GeneratedContent(Generic[T]):
    value: T
    generated: bool  # False when a fallback was returned


class _PageGenerator:
    def __init__(
        self,
        llm: LLMPort,
        max_tokens: int,
        min_text_length: int = 20,
        max_input_text_length: int = 1000,
        temperature: float = 0.2,
    ) -> None:
        self.llm = llm
        self.max_tokens = max_tokens
        self.min_text_length = min_text_length
        self.max_input_text_length = max_input_text_length
        self.temperature = temperature

    def _prepare(self, page_text: str) -> str | None:
        text = page_text.strip()[: self.max_input_text_length]
        return text if len(text) >= self.min_text_length else None

    def accepts(self, page_text: str) -> bool:
        """False when ``generate`` would go straight to the fallback."""
        return self._prepare(page_text) is not None

    def _ask(self, system: str, user: str) -> str:
        messages = [ChatMessage(role="system", content=system), ChatMessage(role="user", content=user)]
        response = self.llm.chat(messages, temperature=self.temperature, max_tokens=self.max_tokens)
        return response.text.strip()


class TranscriptGenerator(_PageGenerator):
    def __init__(self, llm: LLMPort, max_tokens: int = 256, sentences: int = 2, **kwargs) -> None:
        super().__init__(llm, max_tokens, **kwargs)
        self.sentences = sentences

    @property
    def goal(self) -> str:
        return f"summarize this educational text in {self.sentences} sentences."

    def generate(
        self, page_text: str, page: int, context: AugmentedPromptData | None = None
    ) -> GeneratedContent[str]:
        text = self._prepare(page_text)
        if text is None:
            logger.info("Page %d text too short, using transcript fallback", page)
            return GeneratedContent(
                f"Summary for page {page}: Content requires external PDF processing service.",
                generated=False,
            )
        if context is not None:
            prompt = context.augmented_prompt
        else:
            prompt = f"Summarize this educational text in {self.sentences} sentences:\n\n{text}"
        try:
            transcript = self._ask(TRANSCRIPT_SYSTEM_PROMPT, prompt)
        except Exception as ex:  # noqa: BLE001
            logger.error("Error generating transcript for page %d: %s", page, ex)
            return GeneratedContent(
                f"Summary for page {page}: Content analysis in progress. Please refresh to see updates.",
                generated=False,
            )
        if not transcript:
            logger.warning("Empty transcript received for page %d", page)
            return GeneratedContent(
                f"Summary for page {page}: Educational content about the topics discussed in this section.",
                generated=False,
            )
        logger.info("Generated transcript for page %d", page)
        return GeneratedContent(transcript, generated=True)


class McqGenerator(_PageGenerator):
    def __init__(self, llm: LLMPort, max_tokens: int = 512, questions: int = 2, **kwargs) -> None:
        super().__init__(llm, max_tokens, **kwargs)
        self.questions = questions

    @property
    def goal(self) -> str:
        return (
            f"create {self.questions} multiple-choice questions as a JSON array of objects "
            'with "question", "options" (exactly 4 strings), "correct_option_index" (0-3) '
            'and "explanation". Respond with the JSON array only.'
        )

    def generate(
        self, page_text: str, page: int, context: AugmentedPromptData | None = None
    ) -> GeneratedContent[list[McqQuestion]]:
        text = self._prepare(page_text)
        if text is None:
            logger.info("Page %d text too short, using MCQ fallback", page)
            return GeneratedContent(fallback_mcqs(page), generated=False)
        if context is not None:
            prompt = context.augmented_prompt
        else:
            prompt = f"Create {self.questions} MCQs as JSON:\n{_MCQ_EXAMPLE}\n\nText: {text}"
        try:
            answer = self._ask(MCQ_SYSTEM_PROMPT, prompt)
            questions = parse_mcq_response(answer, page)
        except ParseError as ex:
            logger.warning("Failed to parse MCQ JSON for page %d: %s", page, ex)
            return GeneratedContent(fallback_mcqs(page), generated=False)
        except Exception as ex:  # noqa: BLE001
            logger.error("Error generating MCQs for page %d: %s", page, ex)
            return GeneratedContent(fallback_mcqs(page), generated=False)
        logger.info("Generated %d MCQs for page %d", len(questions), page)
        return GeneratedContent(questions, generated=True)
