from typing import Optional

from fastapi import APIRouter, Depends

from interview_coach.api.deps import get_session_machine
from interview_coach.api.v1.schemas import (
    SessionActionRequest,
    SessionActionResponse,
    SessionRead,
    SessionResponse,
    SessionSummary,
)
from interview_coach.auth import current_user_id
from interview_coach.services.session_machine import SessionMachine

router = APIRouter(prefix="/interview-session", tags=["sessions"])


@router.post("", response_model=SessionActionResponse)
async def manage_session(
    body: SessionActionRequest,
    user_id: str = Depends(current_user_id),
    machine: SessionMachine = Depends(get_session_machine),
):
    """Drive the session lifecycle: start, add_message, update_metrics, end or abandon."""
    if body.action == "start":
        session = await machine.start(user_id, body.interview_id, body.video_url)
    elif body.action == "add_message":
        session = await machine.add_message(user_id, body.interview_id, body.message_data)
    elif body.action == "update_metrics":
        session = await machine.update_metrics(user_id, body.interview_id, body.metrics_data)
    elif body.action == "end":
        session = await machine.end(user_id, body.interview_id, body.metrics_data, body.video_url)
    else:
        session = await machine.abandon(user_id, body.interview_id)

    return SessionActionResponse(
        session=SessionSummary(
            id=session.id,
            status=session.status,
            message_count=len(session.messages or []),
        )
    )


@router.get("", response_model=SessionResponse)
async def read_session(
    interview_id: Optional[str] = None,
    session_id: Optional[str] = None,
    user_id: str = Depends(current_user_id),
    machine: SessionMachine = Depends(get_session_machine),
):
    session = await machine.get_session(user_id, interview_id=interview_id, session_id=session_id)
    return SessionResponse(session=SessionRead.model_validate(session))
