from fastapi import Request

from interview_coach.services.report_assembler import ReportService
from interview_coach.services.session_machine import SessionMachine
from interview_coach.services.store import InterviewStore


def get_store(request: Request) -> InterviewStore:
    return request.app.state.store


def get_session_machine(request: Request) -> SessionMachine:
    return request.app.state.session_machine


def get_report_service(request: Request) -> ReportService:
    return request.app.state.report_service
