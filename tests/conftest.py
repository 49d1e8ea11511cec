from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from interview_coach.core.metrics import collector
from interview_coach.db.session import create_engine, create_session_factory, init_db
from interview_coach.services.llm_client import LLMClient, LLMUnavailableError
from interview_coach.services.store import InterviewStore


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "GROQ_API_KEY",
        "OPENAI_API_KEY",
        "IMENTIV_API_KEY",
        "SESSION_START_POLICY",
        "FILLER_PHRASE_MATCHING",
        "REPORT_MAX_QUESTIONS",
        "LLM_TIMEOUT_SECONDS",
        "LLM_MAX_RETRIES",
        "PRIMARY_LLM_PROVIDER",
    ):
        monkeypatch.delenv(name, raising=False)
    collector.reset()


@pytest_asyncio.fixture
async def store(tmp_path) -> InterviewStore:
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await init_db(engine)
    yield InterviewStore(create_session_factory(engine))
    await engine.dispose()


@pytest.fixture
def failing_llm() -> AsyncMock:
    llm = AsyncMock(spec=LLMClient)
    llm.generate.side_effect = LLMUnavailableError("No LLM provider configured")
    return llm
