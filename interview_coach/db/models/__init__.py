from interview_coach.db.models.interview import Interview, InterviewStatus
from interview_coach.db.models.session import InterviewSession, SessionStatus
from interview_coach.db.models.report import InterviewReport

__all__ = [
    "Interview",
    "InterviewStatus",
    "InterviewSession",
    "SessionStatus",
    "InterviewReport",
]
