from typing import Optional

from fastapi import APIRouter, Depends

from interview_coach.api.deps import get_report_service
from interview_coach.api.v1.schemas import ReportCreate, ReportRead, ReportResponse
from interview_coach.auth import current_user_id
from interview_coach.services.report_assembler import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("", response_model=ReportResponse)
async def generate_report(
    body: ReportCreate,
    user_id: str = Depends(current_user_id),
    service: ReportService = Depends(get_report_service),
):
    report, created = await service.generate_report(user_id, body.interview_id, body.session_id)
    return ReportResponse(
        report=ReportRead.model_validate(report),
        message="Report generated successfully" if created else "Report already exists",
    )


@router.get("", response_model=ReportResponse)
async def read_report(
    interview_id: Optional[str] = None,
    report_id: Optional[str] = None,
    user_id: str = Depends(current_user_id),
    service: ReportService = Depends(get_report_service),
):
    report = await service.get_report(user_id, interview_id=interview_id, report_id=report_id)
    return ReportResponse(report=ReportRead.model_validate(report))
