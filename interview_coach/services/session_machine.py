"""
Session lifecycle.

Session:   active -> completed | abandoned
Interview: scheduled -> in-progress -> completed

At most one active session per interview, checked by query rather than a
lock. Concurrent writers to the same session are not guarded against; the
last ``update_metrics`` wins.
"""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from interview_coach.core.config import Settings, settings as default_settings
from interview_coach.core.error_handling import (
    AuthenticationError,
    AuthorizationError,
    NoActiveSessionError,
    NotFoundError,
    SessionConflictError,
    ValidationError,
)
from interview_coach.db.models import Interview, InterviewSession, InterviewStatus, SessionStatus
from interview_coach.schemas import Message, MessageIn, Metrics, MetricsUpdate
from interview_coach.services.metrics_aggregator import MetricsAccumulator, merge_metrics
from interview_coach.services.store import InterviewStore

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # sqlite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise AuthenticationError()
    return user_id


def _require(value: Any, field: str) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required", field=field)
    return value


def _parse_metrics_update(payload: Mapping[str, Any] | MetricsUpdate) -> MetricsUpdate:
    if isinstance(payload, MetricsUpdate):
        return payload
    try:
        return MetricsUpdate.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid metrics: {exc.errors()[0]['msg']}", field="metrics_data") from exc


class SessionMachine:
    def __init__(self, store: InterviewStore, settings: Settings = default_settings):
        self.store = store
        self.settings = settings

    async def _owned_interview(self, user_id: str, interview_id: str) -> Interview:
        interview = await self.store.get_interview(interview_id)
        if interview is None:
            raise NotFoundError("Interview", interview_id)
        if interview.user_id != user_id:
            raise AuthorizationError("Interview belongs to another user", resource_type="interview")
        return interview

    async def _active_session(self, user_id: str, interview_id: str) -> InterviewSession:
        session = await self.store.find_active_session(interview_id)
        if session is None:
            raise NoActiveSessionError(interview_id)
        if session.user_id != user_id:
            raise AuthorizationError("Session belongs to another user", resource_type="session")
        return session

    async def start(
        self, user_id: Optional[str], interview_id: Optional[str], video_url: Optional[str] = None
    ) -> InterviewSession:
        user_id = _require_user(user_id)
        interview_id = _require(interview_id, "interview_id")
        await self._owned_interview(user_id, interview_id)

        existing = await self.store.find_active_session(interview_id)
        if existing is not None:
            if self.settings.session_start_policy == "reuse":
                logger.info(
                    "Reusing active session",
                    extra={"interview_id": interview_id, "session_id": existing.id},
                )
                return existing
            raise SessionConflictError(interview_id, existing.id)

        started = _now()
        session = await self.store.create_session(
            interview_id=interview_id,
            user_id=user_id,
            messages=[],
            metrics=Metrics().model_dump(),
            start_time=started,
            status=SessionStatus.ACTIVE.value,
            video_url=video_url or None,
        )
        await self.store.update_interview(
            interview_id,
            status=InterviewStatus.IN_PROGRESS.value,
            start_time=started,
            session_id=session.id,
        )
        logger.info("Session started", extra={"interview_id": interview_id, "session_id": session.id})
        return session

    async def add_message(
        self,
        user_id: Optional[str],
        interview_id: Optional[str],
        message: Mapping[str, Any] | MessageIn | None,
    ) -> InterviewSession:
        user_id = _require_user(user_id)
        interview_id = _require(interview_id, "interview_id")
        _require(message, "message_data")
        if not isinstance(message, MessageIn):
            try:
                message = MessageIn.model_validate(message)
            except PydanticValidationError as exc:
                raise ValidationError("Message needs a sender and non-empty text", field="message_data") from exc

        session = await self._active_session(user_id, interview_id)
        record = Message(
            id=message.id or str(int(time.time() * 1000)),
            sender=message.sender,
            text=message.text,
            timestamp=message.timestamp or _now(),
            duration=message.duration,
            pause_before=message.pause_before,
            confidence=message.confidence,
            emotion=message.emotion,
            volume=message.volume,
        )
        updated = await self.store.append_message(session.id, record.model_dump(mode="json"))
        return updated or session

    async def update_metrics(
        self,
        user_id: Optional[str],
        interview_id: Optional[str],
        partial: Mapping[str, Any] | MetricsUpdate | None,
    ) -> InterviewSession:
        user_id = _require_user(user_id)
        interview_id = _require(interview_id, "interview_id")
        update = _parse_metrics_update(_require(partial, "metrics_data"))

        session = await self._active_session(user_id, interview_id)
        merged = merge_metrics(session.metrics, update)
        updated = await self.store.update_session(session.id, metrics=merged.model_dump())
        return updated or session

    async def end(
        self,
        user_id: Optional[str],
        interview_id: Optional[str],
        final_metrics: Mapping[str, Any] | MetricsUpdate | None = None,
        video_url: Optional[str] = None,
    ) -> InterviewSession:
        """Complete the active session. A second call raises NoActiveSessionError.

        ``video_url`` records the session recording for report enrichment.
        """
        user_id = _require_user(user_id)
        interview_id = _require(interview_id, "interview_id")
        update = _parse_metrics_update(final_metrics) if final_metrics is not None else None

        session = await self._active_session(user_id, interview_id)
        ended = _now()

        if update is not None:
            metrics = merge_metrics(session.metrics, update)
        else:
            metrics = Metrics.model_validate(session.metrics or {})
            if metrics.total_duration == 0 and session.messages:
                # Client never reported metrics; derive them from the transcript
                elapsed_ms = (ended - _as_utc(session.start_time)).total_seconds() * 1000
                metrics = MetricsAccumulator.from_messages(
                    session.messages, self.settings.filler_phrase_matching
                ).finalize(elapsed_ms)

        updated = await self.store.update_session(
            session.id,
            end_time=ended,
            status=SessionStatus.COMPLETED.value,
            metrics=metrics.model_dump(),
            video_url=video_url or session.video_url,
        )
        await self.store.update_interview(
            interview_id,
            status=InterviewStatus.COMPLETED.value,
            end_time=ended,
        )
        logger.info("Session completed", extra={"interview_id": interview_id, "session_id": session.id})
        return updated or session

    async def abandon(self, user_id: Optional[str], interview_id: Optional[str]) -> InterviewSession:
        """Drop the active session without completing the interview."""
        user_id = _require_user(user_id)
        interview_id = _require(interview_id, "interview_id")
        session = await self._active_session(user_id, interview_id)
        updated = await self.store.update_session(
            session.id,
            end_time=_now(),
            status=SessionStatus.ABANDONED.value,
        )
        logger.info("Session abandoned", extra={"interview_id": interview_id, "session_id": session.id})
        return updated or session

    async def get_session(
        self,
        user_id: Optional[str],
        interview_id: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> InterviewSession:
        user_id = _require_user(user_id)
        if not interview_id and not session_id:
            raise ValidationError("interview_id or session_id is required", field="interview_id")

        if session_id:
            session = await self.store.get_session(session_id)
        else:
            session = await self.store.find_latest_session(interview_id)
        if session is None:
            raise NotFoundError("Session", session_id or interview_id)
        if session.user_id != user_id:
            raise AuthorizationError("Session belongs to another user", resource_type="session")
        return session
