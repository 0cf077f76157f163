import json

from pdf_tutor.application.services.content_generation import (
    MCQ_SYSTEM_PROMPT,
    TRANSCRIPT_SYSTEM_PROMPT,
    McqGenerator,
    TranscriptGenerator,
)
from pdf_tutor.domain.models import AugmentedPromptData

PAGE = "Photosynthesis converts light energy into chemical energy in plants."


def _context(prompt="CONTEXT PROMPT"):
    return AugmentedPromptData(original_goal="g", relevant_text="t", augmented_prompt=prompt)


def test_transcript_uses_augmented_prompt_when_available(llm):
    gen = TranscriptGenerator(llm)
    result = gen.generate(PAGE, 1, _context())

    assert result.generated is True
    assert result.value == "A concise two sentence summary."
    system, user = llm.calls[0]
    assert system.content == TRANSCRIPT_SYSTEM_PROMPT
    assert user.content == "CONTEXT PROMPT"


def test_transcript_raw_prompt_without_context(llm):
    TranscriptGenerator(llm, sentences=2).generate(PAGE, 1, None)
    assert llm.calls[0][1].content == f"Summarize this educational text in 2 sentences:\n\n{PAGE}"


def test_transcript_input_is_truncated(llm):
    TranscriptGenerator(llm, max_input_text_length=30).generate("z" * 100, 1)
    assert llm.calls[0][1].content.endswith("z" * 30)
    assert "z" * 31 not in llm.calls[0][1].content


def test_transcript_short_text_falls_back_without_llm(llm):
    result = TranscriptGenerator(llm).generate("tiny", 3)
    assert result.generated is False
    assert result.value.startswith("Summary for page 3:")
    assert llm.calls == []


def test_transcript_llm_failure_falls_back(llm):
    llm.fail = True
    result = TranscriptGenerator(llm).generate(PAGE, 2)
    assert result.generated is False
    assert result.value.startswith("Summary for page 2:")


def test_transcript_empty_answer_falls_back(llm):
    llm.transcript = "   "
    result = TranscriptGenerator(llm).generate(PAGE, 2)
    assert result.generated is False
    assert result.value


def test_mcq_short_text_returns_fallback_without_llm(llm):
    result = McqGenerator(llm, min_text_length=20).generate("too short", 5)

    assert llm.calls == []
    assert result.generated is False
    assert len(result.value) == 2
    for q in result.value:
        assert len(q.options) == 4
        assert 0 <= q.correct <= 3
        assert q.page == 5


def test_mcq_parses_generated_questions(llm):
    result = McqGenerator(llm).generate(PAGE, 4, _context())

    assert result.generated is True
    assert [q.id for q in result.value] == [0, 1]
    assert all(q.page == 4 for q in result.value)
    assert result.value[1].correct == 1
    assert llm.calls[0][0].content == MCQ_SYSTEM_PROMPT


def test_mcq_raw_prompt_shows_json_example(llm):
    McqGenerator(llm, questions=3).generate(PAGE, 1)
    prompt = llm.calls[0][1].content
    assert prompt.startswith("Create 3 MCQs as JSON:")
    assert json.loads(prompt.split("\n")[1])[0]["options"] == ["A", "B", "C", "D"]
    assert prompt.endswith(f"Text: {PAGE}")


def test_mcq_unparsable_answer_falls_back(llm):
    llm.mcq = "I cannot produce JSON today."
    result = McqGenerator(llm).generate(PAGE, 1)
    assert result.generated is False
    assert len(result.value) == 2


def test_mcq_llm_failure_falls_back(llm):
    llm.fail = True
    result = McqGenerator(llm).generate(PAGE, 1)
    assert result.generated is False
    assert [q.correct for q in result.value] == [3, 3]


def test_goals_mention_counts(llm):
    assert "2 sentences" in TranscriptGenerator(llm).goal
    assert "4 multiple-choice" in McqGenerator(llm, questions=4).goal


def test_accepts_matches_the_fallback_threshold(llm):
    gen = McqGenerator(llm, min_text_length=20)
    assert gen.accepts(PAGE) is True
    assert gen.accepts("   too short   ") is False
    assert TranscriptGenerator(llm, min_text_length=5).accepts("tiny text") is True
