import json
from unittest.mock import AsyncMock

import httpx
import pytest

from interview_coach.core.metrics import collector
from interview_coach.schemas import Message, Metrics
from interview_coach.services.conversation_analyzer import (
    ConversationAnalyzer,
    fallback_conversation_analysis,
    fallback_score,
    hiring_label,
    normalize_conversation_analysis,
)
from interview_coach.services.emotion import EmotionAnalysisClient, synthetic_enrichment
from interview_coach.services.llm_client import LLMClient
from tests.factories import transcript_with_gaps

SCENARIO = Metrics(
    total_duration=600000,
    user_speaking_time=120000,
    filler_words_count=2,
    average_response_time=1800,
    confidence_score=0.82,
)


def _messages():
    return [Message.model_validate(m) for m in transcript_with_gaps()]


@pytest.mark.parametrize(
    "score,label",
    [(95, "Strong Hire"), (81, "Strong Hire"), (80, "Hire"), (71, "Hire"), (70, "Maybe"), (61, "Maybe"), (60, "No Hire"), (0, "No Hire")],
)
def test_hiring_label_thresholds(score, label):
    assert hiring_label(score) == label


class TestFallbackAnalysis:
    def test_reference_scenario(self):
        result = fallback_conversation_analysis(SCENARIO, "Backend Engineer")

        assert fallback_score(SCENARIO) == 58
        feedback = result["detailed_feedback"]
        perf = result["performance_analysis"]
        assert feedback["overall_score"] == 58
        assert feedback["hiring_recommendation"].startswith("No Hire")
        assert perf["communication_skills"]["score"] == 55
        assert perf["problem_solving"]["score"] == 55
        assert perf["technical_knowledge"]["score"] == 58
        assert perf["confidence"]["score"] == 82
        assert feedback["critical_concerns"] == []
        assert "Backend Engineer" in feedback["summary"]

    def test_is_deterministic(self):
        first = fallback_conversation_analysis(SCENARIO, "Backend Engineer")
        second = fallback_conversation_analysis(SCENARIO.model_copy(), "Backend Engineer")
        assert first == second

    def test_heavy_fillers_and_slow_answers(self):
        metrics = Metrics(
            filler_words_count=9,
            average_response_time=9000,
            confidence_score=0.4,
            longest_pause=7000,
            words_per_minute=160,
        )

        result = fallback_conversation_analysis(metrics, "Analyst")

        perf = result["performance_analysis"]
        assert fallback_score(metrics) == 33
        assert result["detailed_feedback"]["hiring_recommendation"] == (
            "No Hire - Not suitable for role at current skill level"
        )
        assert perf["communication_skills"]["score"] == 35
        assert perf["problem_solving"]["score"] == 40
        assert perf["communication_skills"]["sub_scores"]["clarity"] == 40
        assert "160 WPM may be too fast" in perf["communication_skills"]["feedback"]
        assert result["detailed_feedback"]["critical_concerns"] == [
            "High filler word usage may impact professional credibility",
            "Slow response times may indicate processing challenges under pressure",
            "Low confidence may impact leadership effectiveness and team influence",
        ]
        assert "slow decision-making under pressure" in result["detailed_feedback"]["interviewer_notes"]

    def test_validates_as_conversation_analysis(self):
        analysis = normalize_conversation_analysis({}, SCENARIO, "Backend Engineer")
        assert analysis.detailed_feedback.overall_score == 58
        assert len(analysis.detailed_feedback.competency_gaps) == 2


class TestNormalize:
    def test_partial_output_is_completed_from_metrics(self):
        raw = {
            "performanceAnalysis": {"communicationSkills": {"score": 88, "strengths": ["Crisp answers"]}},
            "detailedFeedback": {"overallScore": 84, "hiringRecommendation": "Strong Hire"},
        }

        analysis = normalize_conversation_analysis(raw, SCENARIO, "Backend Engineer")

        assert analysis.performance_analysis.communication_skills.score == 88
        assert analysis.performance_analysis.communication_skills.strengths == ["Crisp answers"]
        assert analysis.performance_analysis.problem_solving.score == 55
        assert analysis.detailed_feedback.overall_score == 84
        assert analysis.detailed_feedback.hiring_recommendation == "Strong Hire"
        assert analysis.is_fallback is False

    def test_competency_gaps_are_filled_per_entry(self):
        raw = {"detailedFeedback": {"competencyGaps": [{"competency": "System design"}, "not-a-gap"]}}

        analysis = normalize_conversation_analysis(raw, SCENARIO, "Backend Engineer")

        gaps = analysis.detailed_feedback.competency_gaps
        assert len(gaps) == 1
        assert gaps[0].competency == "System design"
        assert gaps[0].current_level == ""


class TestConversationAnalyzer:
    @pytest.mark.asyncio
    async def test_valid_response_is_used(self):
        llm = AsyncMock(spec=LLMClient)
        llm.generate.return_value = json.dumps({"detailedFeedback": {"overallScore": 73, "summary": "Solid."}})

        analysis = await ConversationAnalyzer(llm).analyze(
            _messages(), SCENARIO, "Backend Engineer", "Python dev", "Payments"
        )

        assert analysis.is_fallback is False
        assert analysis.detailed_feedback.overall_score == 73
        assert analysis.detailed_feedback.summary == "Solid."
        prompt = llm.generate.await_args.args[0]
        assert "interviewer: Tell me about yourself." in prompt
        assert llm.generate.await_args.kwargs["temperature"] == 0.3

    @pytest.mark.asyncio
    async def test_llm_failure_returns_metrics_fallback(self, failing_llm):
        analysis = await ConversationAnalyzer(failing_llm).analyze(
            _messages(), SCENARIO, "Backend Engineer", "", "", interview_id="iv-1"
        )

        assert analysis.is_fallback is True
        assert analysis.detailed_feedback.overall_score == 58
        assert collector.get_counter("analysis_fallback_conversation") == 1
        assert collector.get_counter("analysis_fallback_total") == 1

    @pytest.mark.asyncio
    async def test_array_response_falls_back(self):
        llm = AsyncMock(spec=LLMClient)
        llm.generate.return_value = "[]"

        analysis = await ConversationAnalyzer(llm).analyze(_messages(), SCENARIO, "Backend Engineer", "", "")

        assert analysis.is_fallback is True

    @pytest.mark.asyncio
    async def test_synthetic_enrichment_without_media(self):
        llm = AsyncMock(spec=LLMClient)
        llm.generate.return_value = "{}"
        emotion = AsyncMock(spec=EmotionAnalysisClient)

        await ConversationAnalyzer(llm, emotion).analyze(_messages(), SCENARIO, "Backend Engineer", "", "")

        emotion.analyze.assert_not_called()
        assert "confidence (30%)" in llm.generate.await_args.args[0]

    @pytest.mark.asyncio
    async def test_enrichment_falls_back_to_synthetic_when_service_returns_nothing(self):
        emotion = AsyncMock(spec=EmotionAnalysisClient)
        emotion.analyze.return_value = None
        analyzer = ConversationAnalyzer(AsyncMock(spec=LLMClient), emotion)

        enrichment = await analyzer.enrichment_for(SCENARIO, "s3://videos/1.mp4")

        assert enrichment == synthetic_enrichment(SCENARIO)


def test_synthetic_enrichment_follows_metrics():
    calm = synthetic_enrichment(SCENARIO)
    nervous = synthetic_enrichment(Metrics(confidence_score=0.4, filler_words_count=8, average_response_time=4000))

    assert calm["synthetic"] is True
    assert calm["emotion_analysis"]["dominant_emotions"][1]["emotion"] == "confidence"
    assert nervous["emotion_analysis"]["dominant_emotions"][1]["emotion"] == "nervousness"
    assert nervous["personality_insights"]["traits"] == [
        "developing-confidence",
        "needs-communication-practice",
        "deliberate",
    ]
    assert nervous["emotion_analysis"]["valence_arousal"] == {"valence": 0.4, "arousal": 0.7}


class TestEmotionAnalysisClient:
    @pytest.mark.asyncio
    async def test_unconfigured_client_returns_none(self):
        client = EmotionAnalysisClient()
        assert client.configured is False
        assert await client.analyze("s3://videos/1.mp4") is None

    @pytest.mark.asyncio
    async def test_successful_call_is_normalized(self, monkeypatch):
        monkeypatch.setenv("IMENTIV_API_KEY", "test-key")
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "emotions": [{"emotion": "joy", "confidence": 0.6}],
                    "personality": {"traits": ["curious"]},
                    "behavior": {"eye_contact": 0.9},
                },
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            result = await EmotionAnalysisClient(http_client=http).analyze("s3://videos/1.mp4")

        assert seen["auth"] == "Bearer test-key"
        assert seen["body"]["video_url"] == "s3://videos/1.mp4"
        assert result["synthetic"] is False
        assert result["emotion_analysis"]["dominant_emotions"] == [{"emotion": "joy", "confidence": 0.6}]
        assert result["personality_insights"]["traits"] == ["curious"]
        assert result["behavioral_metrics"]["eye_contact"] == 0.9

    @pytest.mark.asyncio
    async def test_server_error_returns_none(self, monkeypatch):
        monkeypatch.setenv("IMENTIV_API_KEY", "test-key")
        transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"error": "boom"}))

        async with httpx.AsyncClient(transport=transport) as http:
            assert await EmotionAnalysisClient(http_client=http).analyze("s3://videos/1.mp4") is None

    @pytest.mark.asyncio
    async def test_missing_media_skips_call(self, monkeypatch):
        monkeypatch.setenv("IMENTIV_API_KEY", "test-key")

        def handler(request):
            raise AssertionError("no request expected")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            assert await EmotionAnalysisClient(http_client=http).analyze(None) is None
