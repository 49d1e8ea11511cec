import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from interview_coach.api.v1.routes import router as api_v1_router
from interview_coach.core.config import settings
from interview_coach.core.error_handling import (
    ApplicationError,
    application_error_handler,
    error_handler,
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from interview_coach.core.logging_config import RequestLoggingMiddleware, setup_production_logging
from interview_coach.core.metrics import collector
from interview_coach.db.session import create_engine, create_session_factory, init_db
from interview_coach.services.conversation_analyzer import ConversationAnalyzer
from interview_coach.services.emotion import EmotionAnalysisClient
from interview_coach.services.llm_client import LLMClient
from interview_coach.services.question_analyzer import QuestionAnalyzer
from interview_coach.services.report_assembler import ReportService
from interview_coach.services.session_machine import SessionMachine
from interview_coach.services.store import InterviewStore

logger = logging.getLogger("interview_coach.startup")


@asynccontextmanager
async def lifespan(app: FastAPI):
    database_url = settings.database_url
    engine = create_engine(database_url)
    if database_url.startswith("sqlite"):
        # Local and test databases are created on the fly; Postgres goes through Alembic
        await init_db(engine)

    store = InterviewStore(create_session_factory(engine))
    llm = LLMClient(settings)
    app.state.store = store
    app.state.llm = llm
    app.state.session_machine = SessionMachine(store, settings)
    app.state.report_service = ReportService(
        store,
        ConversationAnalyzer(llm, EmotionAnalysisClient(settings), settings),
        QuestionAnalyzer(llm, settings),
        settings,
    )
    logger.info("Services initialized", extra={"path": "startup"})
    try:
        yield
    finally:
        await llm.aclose()
        await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Interview Coach API",
        version="2.0.0",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        lifespan=lifespan,
    )

    error_handler.development_mode = settings.debug
    app.add_exception_handler(ApplicationError, application_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)  # type: ignore[arg-type]

    origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
    for origin in settings.cors_allowed_origins:
        if origin not in origins:
            origins.append(origin)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
        max_age=86400,
    )
    app.add_middleware(RequestLoggingMiddleware)

    @app.get("/healthz", tags=["health"])
    def healthcheck():
        llm = getattr(app.state, "llm", None)
        return {
            "status": "ok",
            **collector.snapshot(),
            "llm": llm.get_stats() if llm is not None else None,
        }

    app.include_router(api_v1_router, prefix="/api/v1")
    return app


setup_production_logging()

app = create_app()
