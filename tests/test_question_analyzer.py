import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from interview_coach.core.error_handling import AnalysisFailure
from interview_coach.core.metrics import collector
from interview_coach.schemas import Message
from interview_coach.services.llm_client import LLMClient
from interview_coach.services.question_analyzer import (
    FALLBACK,
    NO_RESPONSE_TEXT,
    SUCCESS_DEFAULTS,
    QuestionAnalyzer,
    parse_question_analysis,
    question_answer_pairs,
)
from tests.factories import transcript_with_gaps


def _llm_returning(text: str) -> AsyncMock:
    llm = AsyncMock(spec=LLMClient)
    llm.generate.return_value = text
    return llm


class TestParseQuestionAnalysis:
    def test_missing_fields_take_success_defaults(self):
        analysis = parse_question_analysis(json.dumps({"overallScore": 82, "keyStrengths": ["Concrete metrics"]}))

        assert analysis.overall_score == 82
        assert analysis.key_strengths == ["Concrete metrics"]
        assert analysis.dimension_scores.content_quality == SUCCESS_DEFAULTS["dimension_scores"]["content_quality"]
        assert analysis.critical_gaps == SUCCESS_DEFAULTS["critical_gaps"]
        assert analysis.is_fallback is False

    def test_code_fences_are_stripped(self):
        text = '```json\n{"overall_score": 70, "dimension_scores": {"cultural_fit": 90}}\n```'
        analysis = parse_question_analysis(text)

        assert analysis.overall_score == 70
        assert analysis.dimension_scores.cultural_fit == 90
        assert analysis.dimension_scores.strategic_thinking == 45

    def test_prose_around_the_object_is_ignored(self):
        analysis = parse_question_analysis('Here you go: {"overall_score": 61} Hope that helps!')
        assert analysis.overall_score == 61

    def test_zero_score_is_kept(self):
        assert parse_question_analysis('{"overall_score": 0}').overall_score == 0

    def test_wrong_types_keep_defaults(self):
        analysis = parse_question_analysis('{"overall_score": "great", "red_flags": "none", "detailed_feedback": ""}')

        assert analysis.overall_score == SUCCESS_DEFAULTS["overall_score"]
        assert analysis.red_flags == []
        assert analysis.detailed_feedback == SUCCESS_DEFAULTS["detailed_feedback"]

    @pytest.mark.parametrize("text", ["", "I could not evaluate this answer.", "[1, 2, 3]", '{"overall_score": }'])
    def test_unusable_output_raises(self, text):
        with pytest.raises(AnalysisFailure):
            parse_question_analysis(text)


class TestQuestionAnswerPairs:
    def test_unanswered_questions_get_sentinel(self):
        messages = [Message.model_validate(m) for m in transcript_with_gaps()]

        pairs = question_answer_pairs(messages)

        assert len(pairs) == 5
        assert pairs[0] == (
            "Tell me about yourself.",
            "I have five years of backend experience, um, mostly in Python.",
        )
        assert [response for _, response in pairs[3:]] == [NO_RESPONSE_TEXT, NO_RESPONSE_TEXT]

    def test_limit_caps_questions(self):
        messages = [Message.model_validate(m) for m in transcript_with_gaps()]
        assert len(question_answer_pairs(messages, limit=2)) == 2

    def test_consecutive_questions_share_the_next_reply(self):
        raw = transcript_with_gaps()
        messages = [Message.model_validate(m) for m in (raw[0], raw[2], raw[3])]

        pairs = question_answer_pairs(messages)

        assert pairs[0][1] == pairs[1][1] == raw[3]["text"]


class TestQuestionAnalyzer:
    @pytest.mark.asyncio
    async def test_successful_analysis(self):
        llm = _llm_returning('{"overall_score": 77}')
        analyzer = QuestionAnalyzer(llm)

        result = await analyzer.analyze("Why us?", "Your mission.", "Backend Engineer", "Python dev")

        assert result.overall_score == 77
        assert result.is_fallback is False
        prompt = llm.generate.await_args.args[0]
        assert "Why us?" in prompt
        assert "Backend Engineer" in prompt
        assert llm.generate.await_args.kwargs["temperature"] == 0.4

    @pytest.mark.asyncio
    async def test_missing_response_uses_sentinel_in_prompt(self):
        llm = _llm_returning('{"overall_score": 20}')
        await QuestionAnalyzer(llm).analyze("Any questions?", "", "Backend Engineer", "")

        assert NO_RESPONSE_TEXT in llm.generate.await_args.args[0]

    @pytest.mark.asyncio
    async def test_non_json_output_falls_back(self):
        analyzer = QuestionAnalyzer(_llm_returning("Sorry, I cannot help with that."))

        result = await analyzer.analyze("Q", "A", "Role", "")

        assert result.is_fallback is True
        assert result.overall_score == 45
        assert result.red_flags == FALLBACK["red_flags"]
        assert collector.get_counter("analysis_fallback_question") == 1

    @pytest.mark.asyncio
    async def test_llm_failure_falls_back(self, failing_llm):
        result = await QuestionAnalyzer(failing_llm).analyze("Q", "A", "Role", "")

        assert result.is_fallback is True
        assert result.overall_score == 45
        assert collector.get_counter("analysis_fallback_total") == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_falls_back(self):
        llm = AsyncMock(spec=LLMClient)
        llm.generate.side_effect = RuntimeError("socket closed")

        result = await QuestionAnalyzer(llm).analyze("Q", "A", "Role", "")

        assert result.is_fallback is True

    @pytest.mark.asyncio
    async def test_slow_provider_hits_deadline(self, monkeypatch):
        monkeypatch.setenv("LLM_TIMEOUT_SECONDS", "0.05")

        async def slow_generate(prompt, temperature=0.7):
            await asyncio.sleep(5)
            return '{"overall_score": 99}'

        llm = AsyncMock(spec=LLMClient)
        llm.generate.side_effect = slow_generate

        result = await QuestionAnalyzer(llm).analyze("Q", "A", "Role", "")

        assert result.is_fallback is True
        assert result.overall_score == 45

    @pytest.mark.asyncio
    async def test_fallback_marker_not_serialized(self, failing_llm):
        result = await QuestionAnalyzer(failing_llm).analyze("Q", "A", "Role", "")

        dumped = result.model_dump()
        assert "is_fallback" not in dumped
        assert dumped["overall_score"] == 45
