import pytest

from interview_coach.core.error_handling import (
    AuthenticationError,
    AuthorizationError,
    NoActiveSessionError,
    NotFoundError,
    SessionConflictError,
    ValidationError,
)
from interview_coach.services.session_machine import SessionMachine
from tests.factories import OTHER, OWNER, message


async def _scheduled_interview(store, user_id: str = OWNER):
    return await store.create_interview(user_id=user_id, job_title="Data Engineer")


@pytest.mark.asyncio
async def test_start_creates_active_session_and_marks_interview(store):
    machine = SessionMachine(store)
    interview = await _scheduled_interview(store)

    session = await machine.start(OWNER, interview.id)

    assert session.status == "active"
    assert session.messages == []
    assert session.metrics["total_duration"] == 0
    refreshed = await store.get_interview(interview.id)
    assert refreshed.status == "in-progress"
    assert refreshed.session_id == session.id
    assert refreshed.start_time is not None


@pytest.mark.asyncio
async def test_second_start_is_rejected_by_default(store):
    machine = SessionMachine(store)
    interview = await _scheduled_interview(store)
    first = await machine.start(OWNER, interview.id)

    with pytest.raises(SessionConflictError) as exc_info:
        await machine.start(OWNER, interview.id)

    assert exc_info.value.status_code == 409
    assert exc_info.value.details["session_id"] == first.id


@pytest.mark.asyncio
async def test_second_start_reuses_session_when_configured(store, monkeypatch):
    monkeypatch.setenv("SESSION_START_POLICY", "reuse")
    machine = SessionMachine(store)
    interview = await _scheduled_interview(store)

    first = await machine.start(OWNER, interview.id)
    second = await machine.start(OWNER, interview.id)

    assert second.id == first.id


@pytest.mark.asyncio
async def test_start_checks_identity_and_ownership(store):
    machine = SessionMachine(store)
    interview = await _scheduled_interview(store)

    with pytest.raises(AuthenticationError):
        await machine.start(None, interview.id)
    with pytest.raises(ValidationError):
        await machine.start(OWNER, "")
    with pytest.raises(NotFoundError):
        await machine.start(OWNER, "missing-interview")
    with pytest.raises(AuthorizationError):
        await machine.start(OTHER, interview.id)


@pytest.mark.asyncio
async def test_add_message_requires_an_active_session(store):
    machine = SessionMachine(store)
    interview = await _scheduled_interview(store)

    with pytest.raises(NoActiveSessionError):
        await machine.add_message(OWNER, interview.id, message("user", "Hello"))


@pytest.mark.asyncio
async def test_add_message_keeps_arrival_order_and_fills_defaults(store):
    machine = SessionMachine(store)
    interview = await _scheduled_interview(store)
    await machine.start(OWNER, interview.id)

    await machine.add_message(OWNER, interview.id, message("interviewer", "Why this role?"))
    await machine.add_message(OWNER, interview.id, {"id": "m2", "sender": "user", "text": "Because I like data."})
    session = await machine.add_message(
        OWNER, interview.id, message("user", "And the team.", pause_before=1500, duration=2000)
    )

    assert [m["text"] for m in session.messages] == ["Why this role?", "Because I like data.", "And the team."]
    first = session.messages[0]
    assert first["id"].isdigit()
    assert first["timestamp"]
    assert session.messages[1]["id"] == "m2"
    assert session.messages[2]["pause_before"] == 1500


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        None,
        {"sender": "user", "text": ""},
        {"sender": "candidate", "text": "Hi"},
        {"text": "Where is the sender?"},
    ],
)
async def test_add_message_rejects_invalid_input(store, payload):
    machine = SessionMachine(store)
    interview = await _scheduled_interview(store)
    await machine.start(OWNER, interview.id)

    with pytest.raises(ValidationError):
        await machine.add_message(OWNER, interview.id, payload)

    session = await store.find_active_session(interview.id)
    assert session.messages == []


@pytest.mark.asyncio
async def test_update_metrics_merges_last_write_wins(store):
    machine = SessionMachine(store)
    interview = await _scheduled_interview(store)
    await machine.start(OWNER, interview.id)

    await machine.update_metrics(OWNER, interview.id, {"fillerWordsCount": 3, "totalPauses": 4})
    session = await machine.update_metrics(OWNER, interview.id, {"fillerWordsCount": 5})

    assert session.metrics["filler_words_count"] == 5
    assert session.metrics["total_pauses"] == 4


@pytest.mark.asyncio
async def test_update_metrics_rejects_out_of_range_values(store):
    machine = SessionMachine(store)
    interview = await _scheduled_interview(store)
    await machine.start(OWNER, interview.id)

    with pytest.raises(ValidationError):
        await machine.update_metrics(OWNER, interview.id, {"confidenceScore": 1.7})


@pytest.mark.asyncio
async def test_end_completes_session_and_interview(store):
    machine = SessionMachine(store)
    interview = await _scheduled_interview(store)
    await machine.start(OWNER, interview.id)

    session = await machine.end(OWNER, interview.id, {"totalDuration": 420000, "confidenceScore": 0.9})

    assert session.status == "completed"
    assert session.end_time is not None
    assert session.metrics["total_duration"] == 420000
    assert session.metrics["confidence_score"] == 0.9
    refreshed = await store.get_interview(interview.id)
    assert refreshed.status == "completed"
    assert refreshed.end_time is not None


@pytest.mark.asyncio
async def test_end_twice_raises_no_active_session(store):
    machine = SessionMachine(store)
    interview = await _scheduled_interview(store)
    await machine.start(OWNER, interview.id)
    await machine.end(OWNER, interview.id)

    with pytest.raises(NoActiveSessionError):
        await machine.end(OWNER, interview.id)


@pytest.mark.asyncio
async def test_end_derives_metrics_from_transcript_when_none_reported(store):
    machine = SessionMachine(store)
    interview = await _scheduled_interview(store)
    await machine.start(OWNER, interview.id)
    await machine.add_message(OWNER, interview.id, message("interviewer", "Walk me through a pipeline you built."))
    await machine.add_message(
        OWNER, interview.id, message("user", "Um, it was, you know, a Kafka pipeline", pause_before=2500, duration=6000)
    )

    session = await machine.end(OWNER, interview.id)

    metrics = session.metrics
    assert metrics["filler_words_count"] == 2
    assert metrics["total_pauses"] == 1
    assert metrics["longest_pause"] == 2500
    assert metrics["user_speaking_time"] == 6000
    assert metrics["total_duration"] >= 0
    assert 0.3 <= metrics["confidence_score"] <= 1.0


@pytest.mark.asyncio
async def test_abandon_leaves_interview_in_progress(store):
    machine = SessionMachine(store)
    interview = await _scheduled_interview(store)
    await machine.start(OWNER, interview.id)

    session = await machine.abandon(OWNER, interview.id)

    assert session.status == "abandoned"
    refreshed = await store.get_interview(interview.id)
    assert refreshed.status == "in-progress"
    with pytest.raises(NoActiveSessionError):
        await machine.add_message(OWNER, interview.id, message("user", "Still there?"))

    restarted = await machine.start(OWNER, interview.id)
    assert restarted.id != session.id


@pytest.mark.asyncio
async def test_get_session_by_interview_or_id(store):
    machine = SessionMachine(store)
    interview = await _scheduled_interview(store)
    started = await machine.start(OWNER, interview.id)

    by_interview = await machine.get_session(OWNER, interview_id=interview.id)
    by_id = await machine.get_session(OWNER, session_id=started.id)

    assert by_interview.id == started.id
    assert by_id.id == started.id
    with pytest.raises(ValidationError):
        await machine.get_session(OWNER)
    with pytest.raises(NotFoundError):
        await machine.get_session(OWNER, session_id="nope")
    with pytest.raises(AuthorizationError):
        await machine.get_session(OTHER, session_id=started.id)


@pytest.mark.asyncio
async def test_video_url_is_recorded_on_start_and_end(store):
    machine = SessionMachine(store)
    interview = await _scheduled_interview(store)

    started = await machine.start(OWNER, interview.id, video_url="s3://recordings/first.webm")
    assert started.video_url == "s3://recordings/first.webm"

    ended = await machine.end(OWNER, interview.id, video_url="s3://recordings/final.webm")
    assert ended.video_url == "s3://recordings/final.webm"


@pytest.mark.asyncio
async def test_end_without_video_url_keeps_the_recorded_one(store):
    machine = SessionMachine(store)
    interview = await _scheduled_interview(store)
    await machine.start(OWNER, interview.id, video_url="s3://recordings/first.webm")

    ended = await machine.end(OWNER, interview.id)

    assert ended.video_url == "s3://recordings/first.webm"
