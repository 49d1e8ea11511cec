"""
Logging configuration
Structured JSON logging for the API and the report pipeline
"""
import json
import logging
import logging.config
import sys
import time
import uuid
from datetime import datetime, timezone

from interview_coach.core.config import settings

# Extra attributes copied verbatim into the JSON record when present
_CONTEXT_FIELDS = (
    "request_id",
    "user_id",
    "interview_id",
    "session_id",
    "report_id",
    "analysis",
    "fallback_reason",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_ip",
    "provider",
    "attempt",
)


class CustomJSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging
    """

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "application": "interview-coach-api",
            "environment": settings.environment,
        }

        for name in _CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_record[name] = value

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record, default=str)


def setup_logging() -> None:
    level = settings.log_level
    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": CustomJSONFormatter},
            "standard": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "standard" if settings.debug else "json",
                "stream": sys.stdout,
            },
        },
        "loggers": {
            "": {"handlers": ["console"], "level": "WARNING", "propagate": False},
            "interview_coach": {"handlers": ["console"], "level": level, "propagate": False},
            "errors": {"handlers": ["console"], "level": "INFO", "propagate": False},
            "api.requests": {"handlers": ["console"], "level": level, "propagate": False},
            "uvicorn": {"handlers": ["console"], "level": "WARNING", "propagate": False},
            "sqlalchemy": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        },
    }
    logging.config.dictConfig(logging_config)


class RequestLoggingMiddleware:
    """
    ASGI middleware logging every HTTP request with a request id and duration
    """

    def __init__(self, app):
        self.app = app
        self.logger = logging.getLogger("api.requests")

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())
        start_time = time.time()
        method = scope.get("method", "")
        path = scope.get("path", "")

        client_ip = "unknown"
        for header_name, header_value in scope.get("headers", []):
            if header_name == b"x-forwarded-for":
                client_ip = header_value.decode().split(",")[0].strip()
                break
        if client_ip == "unknown" and scope.get("client"):
            client_ip = scope["client"][0]

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                status_code = message["status"]
                duration_ms = round((time.time() - start_time) * 1000, 2)

                log_level = logging.INFO
                if status_code >= 500:
                    log_level = logging.ERROR
                elif status_code >= 400:
                    log_level = logging.WARNING

                self.logger.log(
                    log_level,
                    "HTTP request completed",
                    extra={
                        "request_id": request_id,
                        "method": method,
                        "path": path,
                        "status_code": status_code,
                        "duration_ms": duration_ms,
                        "client_ip": client_ip,
                    },
                )
            await send(message)

        await self.app(scope, receive, send_wrapper)


def setup_production_logging() -> None:
    setup_logging()
    logging.getLogger("interview_coach.startup").info(
        "Application logging initialized",
        extra={"path": "startup"},
    )
