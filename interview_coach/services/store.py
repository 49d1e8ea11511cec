"""
InterviewStore - persistence for interviews, sessions and reports.

One store is built at application startup around an ``async_sessionmaker``
and handed to the services that need it. Each call runs in its own database
session, so independent reads can be awaited concurrently.

JSON columns (messages, metrics) are always reassigned, never mutated in
place; SQLAlchemy does not track in-place changes to plain JSON values.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from interview_coach.db.models import Interview, InterviewReport, InterviewSession, SessionStatus

logger = logging.getLogger(__name__)


class InterviewStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    # --- interviews -------------------------------------------------------

    async def create_interview(self, **fields: Any) -> Interview:
        async with self._session_factory() as db:
            interview = Interview(**fields)
            db.add(interview)
            await db.commit()
            await db.refresh(interview)
            return interview

    async def get_interview(self, interview_id: str) -> Optional[Interview]:
        async with self._session_factory() as db:
            return await db.get(Interview, interview_id)

    async def update_interview(self, interview_id: str, **values: Any) -> Optional[Interview]:
        async with self._session_factory() as db:
            interview = await db.get(Interview, interview_id)
            if interview is None:
                return None
            for key, value in values.items():
                setattr(interview, key, value)
            await db.commit()
            await db.refresh(interview)
            return interview

    # --- sessions ---------------------------------------------------------

    async def create_session(self, **fields: Any) -> InterviewSession:
        async with self._session_factory() as db:
            session = InterviewSession(**fields)
            db.add(session)
            await db.commit()
            await db.refresh(session)
            return session

    async def get_session(self, session_id: str) -> Optional[InterviewSession]:
        async with self._session_factory() as db:
            return await db.get(InterviewSession, session_id)

    async def find_active_session(self, interview_id: str) -> Optional[InterviewSession]:
        """Most recent active session for the interview, if any."""
        async with self._session_factory() as db:
            result = await db.execute(
                select(InterviewSession)
                .where(
                    InterviewSession.interview_id == interview_id,
                    InterviewSession.status == SessionStatus.ACTIVE.value,
                )
                .order_by(InterviewSession.start_time.desc())
            )
            return result.scalars().first()

    async def find_latest_session(self, interview_id: str) -> Optional[InterviewSession]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(InterviewSession)
                .where(InterviewSession.interview_id == interview_id)
                .order_by(InterviewSession.start_time.desc())
            )
            return result.scalars().first()

    async def append_message(self, session_id: str, message: Dict[str, Any]) -> Optional[InterviewSession]:
        """Append one serialized message, keeping arrival order."""
        async with self._session_factory() as db:
            session = await db.get(InterviewSession, session_id)
            if session is None:
                return None
            session.messages = [*(session.messages or []), message]
            await db.commit()
            await db.refresh(session)
            return session

    async def update_session(self, session_id: str, **values: Any) -> Optional[InterviewSession]:
        async with self._session_factory() as db:
            session = await db.get(InterviewSession, session_id)
            if session is None:
                return None
            for key, value in values.items():
                setattr(session, key, value)
            await db.commit()
            await db.refresh(session)
            return session

    # --- reports ----------------------------------------------------------

    async def find_report_by_interview(self, interview_id: str) -> Optional[InterviewReport]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(InterviewReport)
                .where(InterviewReport.interview_id == interview_id)
                .order_by(InterviewReport.generated_at)
            )
            return result.scalars().first()

    async def get_report(self, report_id: str) -> Optional[InterviewReport]:
        async with self._session_factory() as db:
            return await db.get(InterviewReport, report_id)

    async def create_report(self, **fields: Any) -> InterviewReport:
        async with self._session_factory() as db:
            report = InterviewReport(**fields)
            db.add(report)
            await db.commit()
            await db.refresh(report)
            logger.info(
                "Report persisted",
                extra={"report_id": report.id, "interview_id": report.interview_id},
            )
            return report
