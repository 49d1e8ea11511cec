"""
Whole-conversation analysis.

One prompt covers the transcript, the session metrics and a behavioral
enrichment section. The parsed response is normalized field by field into
``ConversationAnalysis``; every missing part takes the value the metrics-only
fallback would give, so success and fallback share one shape.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from interview_coach.core.config import Settings, settings as default_settings
from interview_coach.core.error_handling import AnalysisFailure
from interview_coach.core.metrics import collector
from interview_coach.schemas import Message, Metrics
from interview_coach.services.emotion import EmotionAnalysisClient, synthetic_enrichment
from interview_coach.services.json_utils import extract_json_object, merge_with_defaults
from interview_coach.services.llm_client import LLMClient, LLMUnavailableError
from interview_coach.services.prompts import build_conversation_prompt

logger = logging.getLogger(__name__)

CONVERSATION_TEMPERATURE = 0.3


class CommunicationSubScores(BaseModel):
    clarity: int
    structure: int
    engagement: int
    professionalism: int


class CommunicationSkills(BaseModel):
    score: int = Field(..., ge=0, le=100)
    strengths: List[str]
    improvements: List[str]
    feedback: str
    sub_scores: CommunicationSubScores


class TechnicalKnowledge(BaseModel):
    score: int = Field(..., ge=0, le=100)
    strengths: List[str]
    improvements: List[str]
    feedback: str
    depth_assessment: str
    industry_alignment: str


class ProblemSolving(BaseModel):
    score: int = Field(..., ge=0, le=100)
    strengths: List[str]
    improvements: List[str]
    feedback: str
    cognitive_load: str
    innovation_index: str


class EmotionalIntelligence(BaseModel):
    score: int = Field(..., ge=0, le=100)
    self_awareness: int
    social_skills: int
    empathy: int
    feedback: str
    leadership_potential: str


class ConfidenceInsight(BaseModel):
    score: int = Field(..., ge=0, le=100)
    analysis: str
    recommendations: List[str]
    authenticity_index: str


class Adaptability(BaseModel):
    score: int = Field(..., ge=0, le=100)
    evidence: List[str]
    growth_mindset: str


class ConversationPerformance(BaseModel):
    communication_skills: CommunicationSkills
    technical_knowledge: TechnicalKnowledge
    problem_solving: ProblemSolving
    emotional_intelligence: EmotionalIntelligence
    confidence: ConfidenceInsight
    adaptability: Adaptability


class BigFiveAssessment(BaseModel):
    openness: str
    conscientiousness: str
    extraversion: str
    agreeableness: str
    neuroticism: str


class PersonalityProfile(BaseModel):
    big_five_assessment: BigFiveAssessment
    work_style: str
    motivation_drivers: List[str]


class ConversationInsights(BaseModel):
    cognitive_processing: str
    stress_response: str
    communication_style: str
    decision_making: str


class CompetencyGap(BaseModel):
    competency: str
    current_level: str
    required_level: str
    development_path: str


class HorizonRecommendations(BaseModel):
    immediate: List[str]
    short_term: List[str]
    long_term: List[str]


class ConversationFeedback(BaseModel):
    overall_score: int = Field(..., ge=0, le=100)
    hiring_recommendation: str
    summary: str
    key_strengths: List[str]
    critical_concerns: List[str]
    personality_profile: PersonalityProfile
    behavioral_insights: ConversationInsights
    competency_gaps: List[CompetencyGap]
    recommendations: HorizonRecommendations
    interviewer_notes: str


class ConversationAnalysis(BaseModel):
    performance_analysis: ConversationPerformance
    detailed_feedback: ConversationFeedback
    is_fallback: bool = Field(False, exclude=True)


_GAP_TEMPLATE = {"competency": "", "current_level": "", "required_level": "", "development_path": ""}


def hiring_label(score: int) -> str:
    if score > 80:
        return "Strong Hire"
    if score > 70:
        return "Hire"
    if score > 60:
        return "Maybe"
    return "No Hire"


def fallback_score(metrics: Metrics) -> int:
    """Rounded mean of three metric-driven terms."""
    conf = metrics.confidence_score
    filler_term = 65 if metrics.filler_words_count < 3 else 35
    speed_term = 60 if metrics.average_response_time < 2000 else 40
    return int(round((conf * 60 + filler_term + speed_term) / 3))


def _pace_note(wpm: int) -> str:
    if wpm > 150:
        return "may be too fast for executive presence"
    if wpm < 120:
        return "is too slow for professional settings"
    return "is adequate but needs more confidence"


def _pace_style(wpm: int) -> str:
    if not wpm:
        return "Communication pace appears measured and professional"
    if wpm > 150:
        style = "energetic, fast-paced communication"
    elif wpm < 120:
        style = "deliberate, measured communication"
    else:
        style = "balanced communication pace"
    return f"Speaking rate of {wpm} WPM suggests {style}"


def fallback_conversation_analysis(metrics: Metrics, job_title: str) -> Dict[str, Any]:
    """Deterministic analysis computed from metrics alone."""
    conf = metrics.confidence_score
    fillers = metrics.filler_words_count
    avg_rt = metrics.average_response_time
    wpm = metrics.words_per_minute
    avg = fallback_score(metrics)
    quick = avg_rt < 3000

    if wpm:
        pace = f"Speaking pace of {wpm} WPM {_pace_note(wpm)}."
    else:
        pace = "Needs significant improvement in delivery and presence."

    if avg > 70:
        rationale = "Candidate shows potential but needs significant development"
    elif avg > 50:
        rationale = "Major improvement required before hiring consideration"
    else:
        rationale = "Not suitable for role at current skill level"

    if conf > 0.8:
        confidence_view = "strong self-assurance and executive presence"
    elif conf > 0.6:
        confidence_view = "moderate confidence with room for growth"
    else:
        confidence_view = "developing confidence that needs strengthening"

    concerns = []
    if fillers >= 8:
        concerns.append("High filler word usage may impact professional credibility")
    if avg_rt > 8000:
        concerns.append("Slow response times may indicate processing challenges under pressure")
    if conf < 0.5:
        concerns.append("Low confidence may impact leadership effectiveness and team influence")

    return {
        "performance_analysis": {
            "communication_skills": {
                "score": 55 if fillers < 3 else 35,
                "strengths": (
                    ["Minimal hesitation in speech", "Basic professional language"]
                    if fillers < 3
                    else ["Understandable communication", "Shows effort to communicate"]
                ),
                "improvements": (
                    [
                        "Eliminate filler words completely",
                        "Practice executive-level communication",
                        "Develop confident speaking presence",
                    ]
                    if fillers >= 3
                    else [
                        "Add specific quantifiable examples",
                        "Develop persuasive storytelling",
                        "Practice advanced communication techniques",
                    ]
                ),
                "feedback": (
                    f"Communication shows "
                    f"{'basic competency but lacks executive polish' if fillers < 3 else 'significant room for improvement'}"
                    f" with {fillers} filler words detected. {pace}"
                ),
                "sub_scores": {
                    "clarity": 60 if fillers < 2 else 40,
                    "structure": 45,
                    "engagement": 55 if conf > 0.8 else 35,
                    "professionalism": 50,
                },
            },
            "technical_knowledge": {
                "score": avg,
                "strengths": [
                    "Demonstrates relevant industry awareness",
                    "Shows understanding of role requirements",
                ],
                "improvements": [
                    "Provide more specific technical examples",
                    "Deepen industry-specific knowledge",
                ],
                "feedback": (
                    "Technical competency appears adequate for the role level, though more specific "
                    "examples and deeper technical discussions would strengthen the assessment."
                ),
                "depth_assessment": (
                    "Moderate technical depth - suitable for role but could benefit from more specialized knowledge"
                ),
                "industry_alignment": "Aligns with basic industry standards, room for advanced specialization",
            },
            "problem_solving": {
                "score": 55 if avg_rt < 2000 else 40,
                "strengths": (
                    ["Quick analytical processing", "Efficient problem approach"]
                    if quick
                    else ["Thoughtful consideration of problems", "Deliberate analysis approach"]
                ),
                "improvements": (
                    ["Improve response speed through practice", "Develop faster problem-solving frameworks"]
                    if avg_rt > 5000
                    else ["Enhance solution creativity", "Develop more structured problem-solving approach"]
                ),
                "feedback": (
                    f"Problem-solving approach shows {'quick analytical thinking' if quick else 'careful deliberation'}"
                    f" with average response time of {round(avg_rt / 1000)} seconds. This indicates "
                    f"{'strong cognitive agility' if quick else 'thorough but potentially slow processing'}."
                ),
                "cognitive_load": (
                    "Handles complexity well under pressure"
                    if quick
                    else "May need more time for complex problem processing"
                ),
                "innovation_index": (
                    "Limited evidence of innovative thinking - recommend developing creative problem-solving skills"
                ),
            },
            "emotional_intelligence": {
                "score": int(round(conf * 60)),
                "self_awareness": int(round(conf * 55)),
                "social_skills": 45,
                "empathy": 40,
                "feedback": (
                    "Emotional intelligence appears developing with room for growth in self-awareness "
                    "and interpersonal skills."
                ),
                "leadership_potential": (
                    "Shows potential leadership qualities" if conf > 0.7 else "Leadership potential needs development"
                ),
            },
            "confidence": {
                "score": int(round(conf * 100)),
                "analysis": (
                    f"Confidence assessment reveals {confidence_view}. Pause patterns and response timing suggest "
                    f"{'some hesitation under pressure' if metrics.longest_pause > 5000 else 'reasonable composure'}."
                ),
                "recommendations": (
                    [
                        "Practice power posing and confidence-building exercises",
                        "Work on reducing long pauses through preparation",
                    ]
                    if conf < 0.7
                    else [
                        "Maintain authentic confidence while avoiding overconfidence",
                        "Continue building executive presence",
                    ]
                ),
                "authenticity_index": "Appears genuine - confidence seems authentic rather than projected",
            },
            "adaptability": {
                "score": 45,
                "evidence": ["Shows openness to feedback", "Demonstrates learning orientation"],
                "growth_mindset": (
                    "Appears to have growth mindset but needs more evidence of adaptability in challenging situations"
                ),
            },
        },
        "detailed_feedback": {
            "overall_score": avg,
            "hiring_recommendation": f"{hiring_label(avg)} - {rationale}",
            "summary": (
                f"Interview performance demonstrates "
                f"{'strong competency' if avg > 80 else 'adequate capability' if avg > 70 else 'developing skills'}"
                f" for the {job_title} role. Key observations include "
                f"{'confident presentation' if conf > 0.7 else 'developing confidence'}, "
                f"{'clear communication' if fillers < 5 else 'communication that needs refinement'}, and "
                f"{'quick analytical processing' if quick else 'thoughtful but slower response patterns'}. "
                f"The candidate shows {'promise' if avg > 70 else 'potential'} but would benefit from targeted "
                f"development in specific areas to reach full effectiveness in the role."
            ),
            "key_strengths": [
                "Strong executive presence and confidence" if conf > 0.7 else "Professional demeanor and basic competency",
                (
                    "Clear, articulate communication with minimal hesitation"
                    if fillers < 5
                    else "Understandable communication with room for improvement"
                ),
                (
                    "Quick analytical thinking and problem-solving agility"
                    if quick
                    else "Thoughtful, deliberate approach to complex questions"
                ),
            ],
            "critical_concerns": concerns,
            "personality_profile": {
                "big_five_assessment": {
                    "openness": (
                        "High - shows curiosity and openness to new experiences"
                        if conf > 0.7
                        else "Moderate - some openness but may prefer familiar approaches"
                    ),
                    "conscientiousness": (
                        "High - demonstrates preparation and attention to detail"
                        if avg > 75
                        else "Moderate - shows basic organization but could improve preparation"
                    ),
                    "extraversion": (
                        "Moderate to High - comfortable in social interactions"
                        if conf > 0.6
                        else "Low to Moderate - may prefer smaller group interactions"
                    ),
                    "agreeableness": "Moderate - appears collaborative but needs more evidence",
                    "neuroticism": (
                        "Low - appears emotionally stable"
                        if conf > 0.7
                        else "Moderate - some signs of stress under pressure"
                    ),
                },
                "work_style": (
                    f"Likely {'fast-paced, decisive' if quick else 'deliberate, thorough'} work style with "
                    f"{'collaborative' if conf > 0.6 else 'independent'} tendencies"
                ),
                "motivation_drivers": ["Professional growth and development", "Achievement and recognition"],
            },
            "behavioral_insights": {
                "cognitive_processing": (
                    f"Analysis of {metrics.total_pauses} pauses (avg {round(metrics.average_pause_length)}ms, "
                    f"max {round(metrics.longest_pause / 1000)}s) and {round(avg_rt / 1000)}s average response "
                    f"time suggests "
                    f"{'strong cognitive agility and quick processing' if quick else 'careful, methodical thinking that may slow decision-making'}"
                ),
                "stress_response": (
                    f"{'Shows some stress indicators with longer pauses under pressure' if metrics.longest_pause > 5000 else 'Maintains composure well under interview pressure'}"
                    f". Filler word usage ({fillers}) "
                    f"{'indicates nervousness or lack of preparation' if fillers > 5 else 'shows good self-control and preparation'}"
                ),
                "communication_style": _pace_style(wpm),
                "decision_making": (
                    "Quick decision-making style that may favor speed over thorough analysis"
                    if quick
                    else "Deliberate decision-making approach that prioritizes thoroughness over speed"
                ),
            },
            "competency_gaps": [
                {
                    "competency": "Communication Excellence",
                    "current_level": "Proficient" if fillers < 5 else "Developing",
                    "required_level": "Expert",
                    "development_path": "Practice structured storytelling, reduce filler words, enhance executive presence",
                },
                {
                    "competency": "Technical Expertise",
                    "current_level": "Adequate",
                    "required_level": "Advanced",
                    "development_path": "Deepen technical knowledge, prepare specific examples, study industry trends",
                },
            ],
            "recommendations": {
                "immediate": [
                    (
                        "Practice 2-minute elevator pitches daily to reduce filler words and improve fluency"
                        if fillers >= 5
                        else "Prepare 5-7 STAR method stories with quantifiable results"
                    ),
                    (
                        "Practice rapid-fire interview questions to improve response speed (target <3 seconds)"
                        if avg_rt > 5000
                        else "Focus on adding more specific metrics and business impact to responses"
                    ),
                ],
                "short_term": [
                    (
                        "30-day confidence building program: daily power posing, mock interviews, public speaking practice"
                        if conf < 0.7
                        else "60-day technical skill enhancement: complete 2-3 relevant certifications or courses"
                    ),
                    "Join professional associations and practice networking to build industry presence and knowledge",
                ],
                "long_term": [
                    "6-month leadership development program focusing on executive presence and strategic thinking",
                    "Build personal brand through thought leadership content and speaking opportunities",
                ],
            },
            "interviewer_notes": (
                f"Candidate shows {'strong potential' if avg > 75 else 'developing capability'} for {job_title} role. "
                f"{'High confidence and presence' if conf > 0.7 else 'Confidence needs development'}. "
                f"{'Strong communicator' if fillers < 5 else 'Communication skills need refinement'}. Recommend "
                f"{'standard onboarding with focus on technical depth' if avg > 75 else 'extended onboarding with communication coaching and confidence building'}"
                f". Risk factors: {'slow decision-making under pressure' if avg_rt > 8000 else 'minimal risks identified'}."
            ),
        },
    }


def normalize_conversation_analysis(raw: Dict[str, Any], metrics: Metrics, job_title: str) -> ConversationAnalysis:
    """Merge parsed output over the metrics fallback, field by field."""
    merged = merge_with_defaults(raw, fallback_conversation_analysis(metrics, job_title))
    feedback = merged["detailed_feedback"]
    feedback["competency_gaps"] = [
        merge_with_defaults(gap, _GAP_TEMPLATE) for gap in feedback["competency_gaps"]
    ]
    return ConversationAnalysis(**merged)


class ConversationAnalyzer:
    def __init__(
        self,
        llm: LLMClient,
        emotion_client: Optional[EmotionAnalysisClient] = None,
        settings: Settings = default_settings,
    ):
        self.llm = llm
        self.emotion_client = emotion_client
        self.settings = settings

    async def enrichment_for(self, metrics: Metrics, media_ref: Optional[str]) -> Dict[str, Any]:
        if media_ref and self.emotion_client is not None:
            enrichment = await self.emotion_client.analyze(media_ref)
            if enrichment is not None:
                return enrichment
        return synthetic_enrichment(metrics)

    async def analyze(
        self,
        messages: Sequence[Message],
        metrics: Metrics,
        job_title: str,
        user_summary: str,
        job_summary: str,
        media_ref: Optional[str] = None,
        interview_id: Optional[str] = None,
    ) -> ConversationAnalysis:
        try:
            enrichment = await self.enrichment_for(metrics, media_ref)
            prompt = build_conversation_prompt(messages, metrics, job_title, user_summary, job_summary, enrichment)
            text = await asyncio.wait_for(
                self.llm.generate(prompt, temperature=CONVERSATION_TEMPERATURE),
                timeout=self.settings.llm_timeout_seconds,
            )
            raw = extract_json_object(text, kind="conversation")
            return normalize_conversation_analysis(raw, metrics, job_title)
        except (AnalysisFailure, LLMUnavailableError, asyncio.TimeoutError) as e:
            reason = str(e) or type(e).__name__
        except Exception as e:
            reason = f"{type(e).__name__}: {e}"

        logger.warning(
            "Conversation analysis fell back",
            extra={"analysis": "conversation", "interview_id": interview_id, "fallback_reason": reason},
        )
        collector.increment_counter("analysis_fallback_total")
        collector.increment_counter("analysis_fallback_conversation")
        return ConversationAnalysis(**fallback_conversation_analysis(metrics, job_title), is_fallback=True)
