import json
import logging

import pytest
from starlette.requests import Request

from interview_coach.core.error_handling import ErrorHandler, NotFoundError
from interview_coach.core.logging_config import CustomJSONFormatter
from interview_coach.core.metrics import MetricsCollector, Timer


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="interview_coach.services.question_analyzer",
        level=logging.WARNING,
        pathname=__file__,
        lineno=10,
        msg="Question analysis fell back",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_context_fields():
    line = CustomJSONFormatter().format(
        _record(analysis="question", interview_id="iv-1", fallback_reason="timeout", unrelated="dropped")
    )

    payload = json.loads(line)
    assert payload["level"] == "WARNING"
    assert payload["message"] == "Question analysis fell back"
    assert payload["analysis"] == "question"
    assert payload["interview_id"] == "iv-1"
    assert payload["fallback_reason"] == "timeout"
    assert "unrelated" not in payload


def test_collector_counters_and_percentiles():
    metrics = MetricsCollector(capacity=10)
    for ms in range(1, 21):
        metrics.record_report_ms(ms)
    metrics.increment_counter("report_generated_total")
    metrics.increment_counter("report_generated_total", 2)
    metrics.record_histogram("llm_groq_ms", 120)

    snapshot = metrics.snapshot()

    assert snapshot["counts"]["reports_timed"] == 10
    assert snapshot["counts"]["report_generated_total"] == 3
    assert snapshot["report_p95_ms"] == 20
    assert snapshot["p95_ms"] == {"llm_groq_ms": 120}

    metrics.reset()
    assert metrics.snapshot() == {"report_p95_ms": 0.0, "counts": {"reports_timed": 0}, "p95_ms": {}}


def test_timer_measures_elapsed_milliseconds():
    with Timer() as timer:
        sum(range(1000))
    assert timer.ms >= 0


def _request() -> Request:
    return Request(
        {"type": "http", "scheme": "http", "method": "GET", "path": "/api/v1/reports", "headers": [], "query_string": b""}
    )


@pytest.mark.asyncio
async def test_debug_stack_trace_describes_the_unhandled_exception():
    handler = ErrorHandler()
    handler.development_mode = True
    try:
        raise RuntimeError("database connection lost")
    except RuntimeError as exc:
        response = await handler.handle_generic_exception(_request(), exc)

    body = json.loads(response.body)
    assert response.status_code == 500
    assert "RuntimeError: database connection lost" in body["stack_trace"]
    assert "NoneType: None" not in body["stack_trace"]


@pytest.mark.asyncio
async def test_debug_stack_trace_for_application_error():
    handler = ErrorHandler()
    handler.development_mode = True
    try:
        raise NotFoundError("Interview", "iv-1")
    except NotFoundError as exc:
        error = exc

    response = await handler.handle_application_error(_request(), error)

    body = json.loads(response.body)
    assert response.status_code == 404
    assert "NotFoundError: Interview not found (ID: iv-1)" in body["stack_trace"]


@pytest.mark.asyncio
async def test_stack_trace_hidden_outside_development_mode():
    response = await ErrorHandler().handle_application_error(_request(), NotFoundError("Interview", "iv-1"))

    assert "stack_trace" not in json.loads(response.body)
