# pdf_tutor/domain/services/augmentation.py
# Pure domain service: no I/O, deterministic.
from __future__ import annotations

from collections.abc import Sequence

from pdf_tutor.domain.models import AugmentedPromptData, PromptSource, RelevantChunk

MAX_CONTEXT_LENGTH = 1500
CONTEXT_SEPARATOR = "\n\n"


def create_augmented_prompt(
    goal: str,
    chunks: Sequence[RelevantChunk],
    max_context_length: int = MAX_CONTEXT_LENGTH,
) -> AugmentedPromptData:
    """
    Ground ``goal`` in retrieved context.

    - Chunks are taken in the given (ranked) order and joined by a blank line.
    - The first chunk that would push the joined text past ``max_context_length``
      stops the loop; later (smaller) chunks are not tried.
    - ``sources`` lists exactly the included chunks, in inclusion order.
    """
    included: list[str] = []
    sources: list[PromptSource] = []
    length = 0

    for chunk in chunks:
        added = len(chunk.text) + (len(CONTEXT_SEPARATOR) if included else 0)
        if length + added > max_context_length:
            break
        included.append(chunk.text)
        sources.append(PromptSource(score=chunk.score, page_number=chunk.page_number))
        length += added

    relevant_text = CONTEXT_SEPARATOR.join(included)
    augmented_prompt = (
        "Context information from the document:\n"
        f"{relevant_text}\n\n"
        f"Based on the context above, {goal}"
    )
    return AugmentedPromptData(
        original_goal=goal,
        relevant_text=relevant_text,
        augmented_prompt=augmented_prompt,
        sources=tuple(sources),
    )
