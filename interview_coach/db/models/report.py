import datetime as dt

from sqlalchemy import JSON, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from interview_coach.db.base import Base, new_id


class InterviewReport(Base):
    __tablename__ = "interview_reports"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    # Indexed, not unique: one report per interview is enforced by lookup before insert
    interview_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    session_id: Mapped[str] = mapped_column(String(32), nullable=False)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    job_title: Mapped[str] = mapped_column(String(255), nullable=False)
    mentor_name: Mapped[str] = mapped_column(String(128), nullable=False)
    performance_analysis: Mapped[dict] = mapped_column(JSON, nullable=False)
    detailed_feedback: Mapped[dict] = mapped_column(JSON, nullable=False)
    analysis_flags: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    interview_duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    generated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    report_version: Mapped[str] = mapped_column(String(10), nullable=False, default="2.0")
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
