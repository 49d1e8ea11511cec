import datetime as dt
import enum

from sqlalchemy import Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from interview_coach.db.base import Base, new_id


class InterviewStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class Interview(Base):
    __tablename__ = "interviews"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    job_title: Mapped[str] = mapped_column(String(255), nullable=False)
    job_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    job_summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    mentor_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    # scheduled | in-progress | completed
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=InterviewStatus.SCHEDULED.value)
    start_time: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_time: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # Weak references, no FK
    session_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    report_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    report_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
