import os
from functools import lru_cache


class Settings:
    """Application settings loaded from environment variables with validation."""

    # Database settings
    db_user: str = os.getenv("DB_USER", "postgres")
    db_password: str = os.getenv("DB_PASSWORD", "postgres")
    db_host: str = os.getenv("DB_HOST", "postgres")
    db_port: str = os.getenv("DB_PORT", "5432")
    db_name: str = os.getenv("DB_NAME", "interview_coach")

    @property
    def database_url(self) -> str:
        explicit = os.getenv("DATABASE_URL", "").strip()
        if explicit:
            return explicit
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # LLM provider configuration
    @property
    def primary_llm_provider(self) -> str:
        """Primary LLM provider: groq or openai"""
        return os.getenv("PRIMARY_LLM_PROVIDER", "groq").lower()

    @property
    def groq_api_key(self) -> str | None:
        return os.getenv("GROQ_API_KEY")

    @property
    def groq_model(self) -> str:
        return os.getenv("GROQ_MODEL", "llama-3.1-8b-instant")

    @property
    def openai_api_key(self) -> str | None:
        return os.getenv("OPENAI_API_KEY")

    @property
    def openai_model(self) -> str:
        return os.getenv("OPENAI_MODEL", "gpt-4o-mini")

    @property
    def llm_timeout_seconds(self) -> float:
        """Hard deadline for a single analysis call, retries included"""
        try:
            return float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))
        except ValueError:
            return 30.0

    @property
    def llm_max_retries(self) -> int:
        try:
            return int(os.getenv("LLM_MAX_RETRIES", "3"))
        except ValueError:
            return 3

    # Optional video emotion enrichment (Imentiv)
    @property
    def imentiv_api_key(self) -> str | None:
        return os.getenv("IMENTIV_API_KEY")

    @property
    def imentiv_api_url(self) -> str:
        return os.getenv("IMENTIV_API_URL", "https://api.imentiv.ai/v1/video-emotion-analysis")

    # Interview behaviour
    @property
    def session_start_policy(self) -> str:
        """What `start` does when an active session exists: reject or reuse"""
        val = os.getenv("SESSION_START_POLICY", "reject").lower()
        return val if val in {"reject", "reuse"} else "reject"

    @property
    def filler_phrase_matching(self) -> str:
        """phrase: multi-word fillers match adjacent tokens; token: single tokens only"""
        val = os.getenv("FILLER_PHRASE_MATCHING", "phrase").lower()
        return val if val in {"phrase", "token"} else "phrase"

    @property
    def report_max_questions(self) -> int:
        try:
            return max(0, int(os.getenv("REPORT_MAX_QUESTIONS", "5")))
        except ValueError:
            return 5

    # Security & runtime
    @property
    def environment(self) -> str:
        return os.getenv("ENVIRONMENT", "development")

    @property
    def debug(self) -> bool:
        return os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}

    @property
    def log_level(self) -> str:
        return os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def cors_allowed_origins(self) -> list[str]:
        raw = os.getenv("ALLOWED_ORIGINS", "").strip()
        if not raw:
            return []
        return [o.strip() for o in raw.split(",") if o.strip()]

    @property
    def jwt_secret(self) -> str:
        val = os.getenv("JWT_SECRET", "")
        if self.environment == "production":
            if len(val) < 32:
                raise ValueError("JWT_SECRET must be set and at least 32 characters in production")
        elif not val:
            # Dev-safe default; DO NOT use in production
            val = "dev-jwt-secret-please-change".ljust(32, "_")
        return val


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
