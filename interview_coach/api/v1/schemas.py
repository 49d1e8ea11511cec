import datetime as dt
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from interview_coach.schemas import DetailedFeedback, Message, Metrics, PerformanceAnalysis


class _Request(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InterviewCreate(_Request):
    job_title: str = Field(..., min_length=1, max_length=255)
    job_description: Optional[str] = None
    user_summary: str = ""
    job_summary: str = ""
    mentor_id: Optional[str] = None


class InterviewRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    job_title: str
    job_description: Optional[str] = None
    user_summary: str
    job_summary: str
    mentor_id: Optional[str] = None
    status: str
    start_time: Optional[dt.datetime] = None
    end_time: Optional[dt.datetime] = None
    session_id: Optional[str] = None
    report_id: Optional[str] = None
    report_generated: bool
    created_at: Optional[dt.datetime] = None


SessionAction = Literal["start", "add_message", "update_metrics", "end", "abandon"]


class SessionActionRequest(_Request):
    interview_id: Optional[str] = None
    action: SessionAction
    # Validated by the session machine so errors map to InvalidInput
    message_data: Optional[Dict[str, Any]] = None
    metrics_data: Optional[Dict[str, Any]] = None
    # Recording reference for enrichment, accepted on start and end
    video_url: Optional[str] = Field(None, max_length=2048)


class SessionSummary(BaseModel):
    id: str
    status: str
    message_count: int


class SessionActionResponse(BaseModel):
    success: bool = True
    session: SessionSummary


class SessionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    interview_id: str
    user_id: str
    messages: List[Message]
    metrics: Metrics
    start_time: dt.datetime
    end_time: Optional[dt.datetime] = None
    status: str
    video_url: Optional[str] = None
    report_generated: bool


class SessionResponse(BaseModel):
    success: bool = True
    session: SessionRead


class ReportCreate(_Request):
    interview_id: Optional[str] = None
    session_id: Optional[str] = None


class ReportRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    interview_id: str
    session_id: str
    user_id: str
    job_title: str
    mentor_name: str
    performance_analysis: PerformanceAnalysis
    detailed_feedback: DetailedFeedback
    interview_duration: int
    generated_at: dt.datetime
    report_version: str


class ReportResponse(BaseModel):
    success: bool = True
    report: ReportRead
    message: Optional[str] = None
