"""
Domain records embedded in sessions and reports.

Messages and metrics are stored as JSON inside ``interview_sessions``; the
report sections are stored as JSON inside ``interview_reports``. Input models
accept camelCase keys as well as snake_case so existing clients keep working.
"""
from __future__ import annotations

import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Flexible(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


Sender = Literal["user", "interviewer"]


# --- Session records ------------------------------------------------------


class MessageIn(_Flexible):
    """A message as submitted by the client; id and timestamp are optional."""

    id: Optional[str] = None
    sender: Sender
    text: str = Field(..., min_length=1)
    timestamp: Optional[dt.datetime] = None
    duration: Optional[float] = Field(None, ge=0)
    pause_before: Optional[float] = Field(None, ge=0)
    confidence: Optional[float] = Field(None, ge=0, le=1)
    emotion: Optional[str] = None
    volume: Optional[float] = None


class Message(_Flexible):
    id: str
    sender: Sender
    text: str
    timestamp: dt.datetime
    duration: Optional[float] = None
    pause_before: Optional[float] = None
    confidence: Optional[float] = None
    emotion: Optional[str] = None
    volume: Optional[float] = None


class EmotionalTone(_Flexible):
    positive: float = Field(0.0, ge=0, le=1)
    neutral: float = Field(0.0, ge=0, le=1)
    negative: float = Field(0.0, ge=0, le=1)
    confident: float = Field(0.0, ge=0, le=1)
    nervous: float = Field(0.0, ge=0, le=1)


class Metrics(_Flexible):
    """Aggregate behavioral metrics for a session. Durations are milliseconds."""

    total_duration: float = Field(0, ge=0)
    user_speaking_time: float = Field(0, ge=0)
    interviewer_speaking_time: float = Field(0, ge=0)
    total_pauses: int = Field(0, ge=0)
    average_pause_length: float = Field(0, ge=0)
    longest_pause: float = Field(0, ge=0)
    average_response_time: float = Field(0, ge=0)
    words_per_minute: int = Field(0, ge=0)
    interruption_count: int = Field(0, ge=0)
    filler_words_count: int = Field(0, ge=0)
    confidence_score: float = Field(0, ge=0, le=1)
    emotional_tone: EmotionalTone = Field(default_factory=EmotionalTone)


class EmotionalToneUpdate(_Flexible):
    positive: Optional[float] = Field(None, ge=0, le=1)
    neutral: Optional[float] = Field(None, ge=0, le=1)
    negative: Optional[float] = Field(None, ge=0, le=1)
    confident: Optional[float] = Field(None, ge=0, le=1)
    nervous: Optional[float] = Field(None, ge=0, le=1)


class MetricsUpdate(_Flexible):
    """Partial metrics; omitted fields leave the stored value untouched."""

    total_duration: Optional[float] = Field(None, ge=0)
    user_speaking_time: Optional[float] = Field(None, ge=0)
    interviewer_speaking_time: Optional[float] = Field(None, ge=0)
    total_pauses: Optional[int] = Field(None, ge=0)
    average_pause_length: Optional[float] = Field(None, ge=0)
    longest_pause: Optional[float] = Field(None, ge=0)
    average_response_time: Optional[float] = Field(None, ge=0)
    words_per_minute: Optional[int] = Field(None, ge=0)
    interruption_count: Optional[int] = Field(None, ge=0)
    filler_words_count: Optional[int] = Field(None, ge=0)
    confidence_score: Optional[float] = Field(None, ge=0, le=1)
    emotional_tone: Optional[EmotionalToneUpdate] = None


# --- Report sections ------------------------------------------------------


class SkillAssessment(BaseModel):
    score: int = Field(..., ge=0, le=100)
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    feedback: str = ""


class ConfidenceAssessment(BaseModel):
    score: int = Field(..., ge=0, le=100)
    analysis: str = ""
    recommendations: List[str] = Field(default_factory=list)


class BodyLanguageAssessment(BaseModel):
    score: int = Field(..., ge=0, le=100)
    observations: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class PerformanceAnalysis(BaseModel):
    communication_skills: SkillAssessment
    technical_knowledge: SkillAssessment
    problem_solving: SkillAssessment
    confidence: ConfidenceAssessment
    body_language: BodyLanguageAssessment


class SpecificFeedback(BaseModel):
    question_id: str
    question: str
    user_response: str
    feedback: str
    score: int = Field(..., ge=0, le=100)
    suggestions: List[str] = Field(default_factory=list)


class BehavioralInsights(BaseModel):
    pause_analysis: str = ""
    speech_pace_analysis: str = ""
    confidence_analysis: str = ""
    emotional_state_analysis: str = ""


class Recommendations(BaseModel):
    immediate: List[str] = Field(default_factory=list)
    short_term: List[str] = Field(default_factory=list)
    long_term: List[str] = Field(default_factory=list)


class DetailedFeedback(BaseModel):
    overall_score: int = Field(..., ge=0, le=100)
    summary: str
    key_strengths: List[str] = Field(default_factory=list)
    areas_for_improvement: List[str] = Field(default_factory=list)
    specific_feedback: List[SpecificFeedback] = Field(default_factory=list)
    behavioral_insights: BehavioralInsights
    recommendations: Recommendations
