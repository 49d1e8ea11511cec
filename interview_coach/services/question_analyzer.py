"""
Per-question scoring of a single question/answer pair.

The model's JSON is merged field by field over documented defaults. Any
failure (transport, timeout, non-JSON, non-object) yields the fixed
fallback record instead, flagged only through ``is_fallback``.
"""
from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from interview_coach.core.config import Settings, settings as default_settings
from interview_coach.core.error_handling import AnalysisFailure
from interview_coach.core.metrics import collector
from interview_coach.schemas import Message
from interview_coach.services.json_utils import extract_json_object, merge_with_defaults
from interview_coach.services.llm_client import LLMClient, LLMUnavailableError
from interview_coach.services.prompts import build_question_prompt

logger = logging.getLogger(__name__)

NO_RESPONSE_TEXT = "No response recorded"
QUESTION_TEMPERATURE = 0.4


class DimensionScores(BaseModel):
    content_quality: int = Field(..., ge=0, le=100)
    communication_effectiveness: int = Field(..., ge=0, le=100)
    strategic_thinking: int = Field(..., ge=0, le=100)
    cultural_fit: int = Field(..., ge=0, le=100)


class ImprovementStrategy(BaseModel):
    immediate: List[str]
    practice: List[str]
    resources: List[str]


class QuestionAnalysis(BaseModel):
    overall_score: int = Field(..., ge=0, le=100)
    dimension_scores: DimensionScores
    detailed_feedback: str
    key_strengths: List[str]
    critical_gaps: List[str]
    improvement_strategy: ImprovementStrategy
    benchmark_comparison: str
    red_flags: List[str]
    star_method_alignment: str
    # Observability only; never part of the report shape
    is_fallback: bool = Field(False, exclude=True)


# Used field by field when a parsed response omits something
SUCCESS_DEFAULTS: Dict[str, Any] = {
    "overall_score": 55,
    "dimension_scores": {
        "content_quality": 50,
        "communication_effectiveness": 60,
        "strategic_thinking": 45,
        "cultural_fit": 65,
    },
    "detailed_feedback": (
        "Response demonstrates basic understanding of the question with room for more "
        "specific examples and structured approach."
    ),
    "key_strengths": ["Clear communication", "Relevant experience mentioned"],
    "critical_gaps": ["Lacks specific quantifiable examples", "Could improve STAR method structure"],
    "improvement_strategy": {
        "immediate": ["Practice STAR method structure", "Prepare specific metrics and examples"],
        "practice": ["Record mock answers and review", "Practice with industry-specific scenarios"],
        "resources": ["STAR method framework", "Industry competency guides"],
    },
    "benchmark_comparison": "Below average - significant improvement needed to compete with top candidates",
    "red_flags": [],
    "star_method_alignment": "Partial alignment with STAR methodology",
}

# Returned whole when the call or the parse fails
FALLBACK: Dict[str, Any] = {
    "overall_score": 45,
    "dimension_scores": {
        "content_quality": 40,
        "communication_effectiveness": 50,
        "strategic_thinking": 35,
        "cultural_fit": 55,
    },
    "detailed_feedback": (
        "Your response demonstrates basic understanding of the question. To strengthen your "
        "answer, focus on providing specific, quantifiable examples using the STAR method "
        "(Situation, Task, Action, Result). Consider how your experience directly relates to "
        "the role requirements and articulate the business impact of your actions."
    ),
    "key_strengths": ["Shows relevant experience", "Communicates clearly"],
    "critical_gaps": ["Needs more specific examples", "Could improve structure using STAR method"],
    "improvement_strategy": {
        "immediate": ["Prepare 3-5 STAR stories for common questions", "Practice quantifying achievements"],
        "practice": ["Record yourself answering questions", "Time your responses (aim for 2-3 minutes)"],
        "resources": ["STAR method guide", "Industry-specific interview preparation"],
    },
    "benchmark_comparison": "Well below average - major gaps in preparation, structure, and executive presence",
    "red_flags": ["Generic responses without specific examples"],
    "star_method_alignment": "Limited structure - recommend practicing STAR methodology",
}


def fallback_question_analysis() -> QuestionAnalysis:
    return QuestionAnalysis(**copy.deepcopy(FALLBACK), is_fallback=True)


def parse_question_analysis(text: str) -> QuestionAnalysis:
    """Schema-tolerant parse; raises AnalysisFailure when no JSON object is found."""
    raw = extract_json_object(text, kind="question")
    return QuestionAnalysis(**merge_with_defaults(raw, SUCCESS_DEFAULTS))


def question_answer_pairs(messages: Sequence[Message], limit: int = 5) -> List[Tuple[str, str]]:
    """First ``limit`` interviewer messages, each with the first later user reply.

    A question with no later user message gets NO_RESPONSE_TEXT. A single
    reply can pair with several questions when the interviewer asks twice
    in a row.
    """
    pairs: List[Tuple[str, str]] = []
    for index, message in enumerate(messages):
        if message.sender != "interviewer":
            continue
        if len(pairs) >= limit:
            break
        reply = next((m.text for m in messages[index + 1:] if m.sender == "user"), None)
        pairs.append((message.text, reply or NO_RESPONSE_TEXT))
    return pairs


class QuestionAnalyzer:
    def __init__(self, llm: LLMClient, settings: Settings = default_settings):
        self.llm = llm
        self.settings = settings

    async def analyze(
        self,
        question: str,
        response: str,
        job_title: str,
        user_summary: str,
        interview_id: Optional[str] = None,
    ) -> QuestionAnalysis:
        prompt = build_question_prompt(question, response or NO_RESPONSE_TEXT, job_title, user_summary)
        try:
            text = await asyncio.wait_for(
                self.llm.generate(prompt, temperature=QUESTION_TEMPERATURE),
                timeout=self.settings.llm_timeout_seconds,
            )
            return parse_question_analysis(text)
        except (AnalysisFailure, LLMUnavailableError, asyncio.TimeoutError) as e:
            reason = str(e) or type(e).__name__
        except Exception as e:
            # Any other collaborator failure is still absorbed
            reason = f"{type(e).__name__}: {e}"

        logger.warning(
            "Question analysis fell back",
            extra={"analysis": "question", "interview_id": interview_id, "fallback_reason": reason},
        )
        collector.increment_counter("analysis_fallback_total")
        collector.increment_counter("analysis_fallback_question")
        return fallback_question_analysis()
