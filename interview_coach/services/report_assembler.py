"""
Report generation.

At most one report per interview, enforced by looking up an existing report
before any analysis runs (no unique constraint, so two racing first calls can
both write). The conversation analysis and the per-question analyses run
concurrently; each falls back on its own, so a report is always complete.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from interview_coach.core.config import Settings, settings as default_settings
from interview_coach.core.error_handling import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from interview_coach.core.metrics import Timer, collector
from interview_coach.db.models import InterviewReport
from interview_coach.schemas import (
    BehavioralInsights,
    BodyLanguageAssessment,
    ConfidenceAssessment,
    DetailedFeedback,
    Message,
    Metrics,
    PerformanceAnalysis,
    Recommendations,
    SkillAssessment,
    SpecificFeedback,
)
from interview_coach.services.conversation_analyzer import ConversationAnalysis, ConversationAnalyzer
from interview_coach.services.personas import interviewer_name
from interview_coach.services.question_analyzer import QuestionAnalysis, QuestionAnalyzer, question_answer_pairs
from interview_coach.services.store import InterviewStore

logger = logging.getLogger(__name__)

REPORT_VERSION = "2.0"
DEFAULT_BODY_LANGUAGE_SCORE = 75
DEFAULT_OBSERVATIONS = ["Professional demeanor maintained"]
BODY_LANGUAGE_RECOMMENDATIONS = ["Continue professional presentation", "Focus on confident body language"]
DEFAULT_SUGGESTIONS = ["Practice more", "Improve structure"]
DEFAULT_AREAS_FOR_IMPROVEMENT = ["Continue developing skills", "Practice interview techniques"]


def build_performance_analysis(analysis: ConversationAnalysis) -> PerformanceAnalysis:
    perf = analysis.performance_analysis
    adaptability = perf.adaptability
    return PerformanceAnalysis(
        communication_skills=SkillAssessment(
            score=perf.communication_skills.score,
            strengths=perf.communication_skills.strengths,
            improvements=perf.communication_skills.improvements,
            feedback=perf.communication_skills.feedback,
        ),
        technical_knowledge=SkillAssessment(
            score=perf.technical_knowledge.score,
            strengths=perf.technical_knowledge.strengths,
            improvements=perf.technical_knowledge.improvements,
            feedback=perf.technical_knowledge.feedback,
        ),
        problem_solving=SkillAssessment(
            score=perf.problem_solving.score,
            strengths=perf.problem_solving.strengths,
            improvements=perf.problem_solving.improvements,
            feedback=perf.problem_solving.feedback,
        ),
        confidence=ConfidenceAssessment(
            score=perf.confidence.score,
            analysis=perf.confidence.analysis,
            recommendations=perf.confidence.recommendations,
        ),
        # Body language is read from the adaptability assessment
        body_language=BodyLanguageAssessment(
            score=adaptability.score or DEFAULT_BODY_LANGUAGE_SCORE,
            observations=adaptability.evidence or list(DEFAULT_OBSERVATIONS),
            recommendations=list(BODY_LANGUAGE_RECOMMENDATIONS),
        ),
    )


def build_specific_feedback(
    pairs: Sequence[Tuple[str, str]], analyses: Sequence[QuestionAnalysis]
) -> List[SpecificFeedback]:
    return [
        SpecificFeedback(
            question_id=f"q{index + 1}",
            question=question,
            user_response=response,
            feedback=analysis.detailed_feedback,
            score=analysis.overall_score,
            suggestions=analysis.improvement_strategy.immediate or list(DEFAULT_SUGGESTIONS),
        )
        for index, ((question, response), analysis) in enumerate(zip(pairs, analyses))
    ]


def build_detailed_feedback(
    analysis: ConversationAnalysis, specific_feedback: List[SpecificFeedback]
) -> DetailedFeedback:
    feedback = analysis.detailed_feedback
    insights = feedback.behavioral_insights
    return DetailedFeedback(
        overall_score=feedback.overall_score,
        summary=feedback.summary,
        key_strengths=feedback.key_strengths,
        areas_for_improvement=feedback.critical_concerns or list(DEFAULT_AREAS_FOR_IMPROVEMENT),
        specific_feedback=specific_feedback,
        behavioral_insights=BehavioralInsights(
            pause_analysis=insights.cognitive_processing,
            speech_pace_analysis=insights.communication_style,
            confidence_analysis=insights.stress_response,
            emotional_state_analysis=insights.decision_making,
        ),
        recommendations=Recommendations(
            immediate=feedback.recommendations.immediate,
            short_term=feedback.recommendations.short_term,
            long_term=feedback.recommendations.long_term,
        ),
    )


class ReportService:
    def __init__(
        self,
        store: InterviewStore,
        conversation_analyzer: ConversationAnalyzer,
        question_analyzer: QuestionAnalyzer,
        settings: Settings = default_settings,
    ):
        self.store = store
        self.conversation_analyzer = conversation_analyzer
        self.question_analyzer = question_analyzer
        self.settings = settings

    async def generate_report(
        self,
        user_id: Optional[str],
        interview_id: Optional[str],
        session_id: Optional[str],
    ) -> Tuple[InterviewReport, bool]:
        """Return ``(report, created)``; an existing report comes back unchanged."""
        if not user_id:
            raise AuthenticationError()
        if not interview_id or not session_id:
            raise ValidationError("interview_id and session_id are required", field="interview_id")

        interview, session = await asyncio.gather(
            self.store.get_interview(interview_id),
            self.store.get_session(session_id),
        )
        if interview is None:
            raise NotFoundError("Interview", interview_id)
        if session is None or session.interview_id != interview_id:
            raise NotFoundError("Session", session_id)
        if interview.user_id != user_id or session.user_id != user_id:
            raise AuthorizationError("Interview or session belongs to another user", resource_type="report")

        existing = await self.store.find_report_by_interview(interview_id)
        if existing is not None:
            logger.info(
                "Report already exists",
                extra={"interview_id": interview_id, "report_id": existing.id},
            )
            return existing, False

        messages = [Message.model_validate(m) for m in session.messages or []]
        metrics = Metrics.model_validate(session.metrics or {})
        pairs = question_answer_pairs(messages, self.settings.report_max_questions)

        with Timer() as timer:
            conversation, *questions = await asyncio.gather(
                self.conversation_analyzer.analyze(
                    messages,
                    metrics,
                    interview.job_title,
                    interview.user_summary,
                    interview.job_summary,
                    media_ref=session.video_url,
                    interview_id=interview_id,
                ),
                *(
                    self.question_analyzer.analyze(
                        question, response, interview.job_title, interview.user_summary, interview_id=interview_id
                    )
                    for question, response in pairs
                ),
            )

        specific = build_specific_feedback(pairs, questions)
        performance = build_performance_analysis(conversation)
        detailed = build_detailed_feedback(conversation, specific)
        flags: Dict[str, Any] = {
            "conversation_fallback": conversation.is_fallback,
            "question_fallbacks": [f"q{i + 1}" for i, q in enumerate(questions) if q.is_fallback],
        }

        # Point of no return: once written, the report is what callers get back
        report = await self.store.create_report(
            interview_id=interview_id,
            session_id=session_id,
            user_id=user_id,
            job_title=interview.job_title,
            mentor_name=interviewer_name(interview.mentor_id),
            performance_analysis=performance.model_dump(),
            detailed_feedback=detailed.model_dump(),
            analysis_flags=flags,
            interview_duration=int(metrics.total_duration or 0),
            generated_at=datetime.now(timezone.utc),
            report_version=REPORT_VERSION,
        )
        collector.increment_counter("report_generated_total")
        collector.record_report_ms(timer.ms)

        await self._mark_generated(report, interview_id, session_id)
        return report, True

    async def _mark_generated(self, report: InterviewReport, interview_id: str, session_id: str) -> None:
        results = await asyncio.gather(
            self.store.update_interview(interview_id, report_id=report.id, report_generated=True),
            self.store.update_session(session_id, report_generated=True),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, Exception)]
        for failure in failures:
            logger.error(
                f"Lifecycle update after report write failed: {failure}",
                extra={"interview_id": interview_id, "session_id": session_id, "report_id": report.id},
            )
        if failures:
            collector.increment_counter("report_lifecycle_update_failed_total")

    async def get_report(
        self,
        user_id: Optional[str],
        interview_id: Optional[str] = None,
        report_id: Optional[str] = None,
    ) -> InterviewReport:
        if not user_id:
            raise AuthenticationError()
        if not interview_id and not report_id:
            raise ValidationError("interview_id or report_id is required", field="interview_id")

        if report_id:
            report = await self.store.get_report(report_id)
        else:
            report = await self.store.find_report_by_interview(interview_id)
        if report is None:
            raise NotFoundError("Report", report_id or interview_id)
        if report.user_id != user_id:
            raise AuthorizationError("Report belongs to another user", resource_type="report")
        return report
