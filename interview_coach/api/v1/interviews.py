from fastapi import APIRouter, Depends, status

from interview_coach.api.deps import get_store
from interview_coach.api.v1.schemas import InterviewCreate, InterviewRead
from interview_coach.auth import current_user_id
from interview_coach.core.error_handling import AuthorizationError, NotFoundError
from interview_coach.services.store import InterviewStore

router = APIRouter(prefix="/interviews", tags=["interviews"])


@router.post("", response_model=InterviewRead, status_code=status.HTTP_201_CREATED)
async def create_interview(
    body: InterviewCreate,
    user_id: str = Depends(current_user_id),
    store: InterviewStore = Depends(get_store),
):
    return await store.create_interview(user_id=user_id, **body.model_dump())


@router.get("/{interview_id}", response_model=InterviewRead)
async def get_interview(
    interview_id: str,
    user_id: str = Depends(current_user_id),
    store: InterviewStore = Depends(get_store),
):
    interview = await store.get_interview(interview_id)
    if interview is None:
        raise NotFoundError("Interview", interview_id)
    if interview.user_id != user_id:
        raise AuthorizationError("Interview belongs to another user", resource_type="interview")
    return interview
