import asyncio

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from intranet.api.mandatory_contents import (
    confirm_content,
    get_pending_content,
    record_playback,
    record_scroll,
    submit_quiz,
)
from intranet.models import MandatoryContentSignature
from intranet.schemas.mandatory_content import PlaybackEvent, QuizSubmission, ScrollEvent
from intranet.services.compliance_service import compliance_service
from intranet.services.confirmation_workflow import CONFIRMATION_TEXTS, workflow_registry
from tests.utils import (
    QUIZ,
    CORRECT_ANSWERS,
    create_content,
    create_profile,
    create_video,
    make_request,
)


@pytest.fixture()
def user(db_session):
    return create_profile(db_session)


@pytest.mark.asyncio
async def test_no_pending_redirects_to_dashboard(db_session, user):
    response = await get_pending_content(user=user, db=db_session)
    assert response.has_pending is False
    assert response.redirect_to == "/dashboard"


@pytest.mark.asyncio
async def test_video_end_to_end(db_session, user):
    video = create_video(db_session)

    pending = await get_pending_content(user=user, db=db_session)
    assert pending.content.id == video.id
    assert pending.workflow.state == "consuming"

    view = await record_playback(video.id, PlaybackEvent(event="ended", position=120), user=user, db=db_session)
    assert view.can_confirm is True

    result = await confirm_content(video.id, make_request(forwarded_for="200.1.2.3, 10.0.0.1"), user=user, db=db_session)
    assert result.score == 100
    assert result.ip_address == "200.1.2.3"
    assert result.confirmation_text == CONFIRMATION_TEXTS["video"]
    assert result.redirect_to == "/dashboard"
    assert result.redirect_after_seconds == 2

    signature = db_session.query(MandatoryContentSignature).one()
    assert signature.success is True
    assert signature.score == 100

    after = await get_pending_content(user=user, db=db_session)
    assert after.has_pending is False


@pytest.mark.asyncio
async def test_confirm_before_video_ends_is_refused(db_session, user):
    video = create_video(db_session)
    await record_playback(video.id, PlaybackEvent(event="seeked", position=119.9), user=user, db=db_session)

    with pytest.raises(HTTPException) as exc:
        await confirm_content(video.id, make_request(), user=user, db=db_session)

    assert exc.value.status_code == 409
    assert exc.value.detail["error"] == "not_confirmable"
    assert db_session.query(MandatoryContentSignature).count() == 0


@pytest.mark.asyncio
async def test_text_with_quiz_end_to_end(db_session, user):
    text = create_content(db_session, quiz_questions=QUIZ)

    pending = await get_pending_content(user=user, db=db_session)
    assert pending.content.has_quiz is True
    assert pending.content.quiz is None

    await record_scroll(text.id, ScrollEvent(scroll_top=1500, scroll_height=2000, client_height=500), user=user, db=db_session)

    pending = await get_pending_content(user=user, db=db_session)
    assert len(pending.content.quiz) == 3
    assert "correct_answer" not in pending.content.quiz[0].model_dump()

    failed = await submit_quiz(
        text.id, QuizSubmission(answers={**CORRECT_ANSWERS, 1: "Caixa"}), user=user, db=db_session
    )
    assert failed.score == 67
    assert failed.all_correct is False

    with pytest.raises(HTTPException) as exc:
        await confirm_content(text.id, make_request(), user=user, db=db_session)
    assert exc.value.status_code == 409

    passed = await submit_quiz(text.id, QuizSubmission(answers=CORRECT_ANSWERS), user=user, db=db_session)
    assert passed.score == 100

    result = await confirm_content(text.id, make_request(), user=user, db=db_session)
    assert result.confirmation_text == CONFIRMATION_TEXTS["text"]
    assert result.ip_address == "10.0.0.5"
    assert db_session.query(MandatoryContentSignature).one().score == 100


@pytest.mark.asyncio
async def test_incomplete_quiz_is_400_without_write(db_session, user):
    text = create_content(db_session, quiz_questions=QUIZ)
    await record_scroll(text.id, ScrollEvent(scroll_top=500, scroll_height=1000, client_height=500), user=user, db=db_session)

    with pytest.raises(HTTPException) as exc:
        await submit_quiz(text.id, QuizSubmission(answers={0: "30 dias"}), user=user, db=db_session)

    assert exc.value.status_code == 400
    assert exc.value.detail["error"] == "quiz_incomplete"
    assert exc.value.detail["missing"] == [1, 2]
    assert db_session.query(MandatoryContentSignature).count() == 0


@pytest.mark.asyncio
async def test_only_current_pending_item_is_accepted(db_session, user):
    create_video(db_session, minutes=1)
    later = create_content(db_session, minutes=2)

    with pytest.raises(HTTPException) as exc:
        await record_scroll(later.id, ScrollEvent(scroll_top=0, scroll_height=100, client_height=100), user=user, db=db_session)

    assert exc.value.status_code == 409
    assert exc.value.detail["error"] == "content_not_pending"


@pytest.mark.asyncio
async def test_unknown_content_is_404(db_session, user):
    import uuid

    with pytest.raises(HTTPException) as exc:
        await record_playback(uuid.uuid4(), PlaybackEvent(event="ended"), user=user, db=db_session)
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_insert_failure_returns_500_and_stays_confirmable(db_session, user, monkeypatch):
    video = create_video(db_session)
    await record_playback(video.id, PlaybackEvent(event="ended"), user=user, db=db_session)

    original_commit = db_session.commit

    def failing_commit():
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr(db_session, "commit", failing_commit)

    with pytest.raises(HTTPException) as exc:
        await confirm_content(video.id, make_request(), user=user, db=db_session)
    assert exc.value.status_code == 500
    assert "disk full" in exc.value.detail

    monkeypatch.setattr(db_session, "commit", original_commit)

    pending = await get_pending_content(user=user, db=db_session)
    assert pending.workflow.can_confirm is True

    result = await confirm_content(video.id, make_request(), user=user, db=db_session)
    assert result.score == 100
    assert db_session.query(MandatoryContentSignature).count() == 1


@pytest.mark.asyncio
async def test_confirmations_move_to_next_item(db_session, user):
    first = create_video(db_session, minutes=1)
    second = create_content(db_session, minutes=2)

    await record_playback(first.id, PlaybackEvent(event="ended"), user=user, db=db_session)
    await confirm_content(first.id, make_request(), user=user, db=db_session)

    pending = await get_pending_content(user=user, db=db_session)
    assert pending.content.id == second.id
    assert pending.content.has_quiz is False

    view = await record_scroll(second.id, ScrollEvent(scroll_top=0, scroll_height=400, client_height=400), user=user, db=db_session)
    assert view.can_confirm is True


@pytest.mark.asyncio
async def test_ip_falls_back_to_unknown(db_session, user, monkeypatch):
    video = create_video(db_session)
    await record_playback(video.id, PlaybackEvent(event="ended"), user=user, db=db_session)

    async def failing_lookup():
        return "unknown"

    monkeypatch.setattr(
        "intranet.api.mandatory_contents.ip_lookup_service.lookup_public_ip", failing_lookup
    )

    result = await confirm_content(video.id, make_request(client_host=None), user=user, db=db_session)
    assert result.ip_address == "unknown"


@pytest.mark.asyncio
async def test_interrupted_ip_lookup_leaves_item_confirmable(db_session, user, monkeypatch):
    video = create_video(db_session)
    await record_playback(video.id, PlaybackEvent(event="ended"), user=user, db=db_session)

    async def cancelled_resolve(request):
        raise asyncio.CancelledError()

    monkeypatch.setattr("intranet.api.mandatory_contents.ip_lookup_service.resolve", cancelled_resolve)

    with pytest.raises(asyncio.CancelledError):
        await confirm_content(video.id, make_request(), user=user, db=db_session)

    monkeypatch.undo()

    pending = await get_pending_content(user=user, db=db_session)
    assert pending.workflow.state == "confirmable"

    result = await confirm_content(video.id, make_request(), user=user, db=db_session)
    assert result.score == 100
    assert db_session.query(MandatoryContentSignature).count() == 1


@pytest.mark.asyncio
async def test_workflow_of_deactivated_item_is_dropped(db_session, user):
    first = create_video(db_session, minutes=1)
    second = create_content(db_session, minutes=2)

    await record_playback(first.id, PlaybackEvent(event="ended"), user=user, db=db_session)
    assert workflow_registry.get(user.id, first.id) is not None

    first.active = False
    db_session.commit()
    compliance_service.invalidate(user.id)

    pending = await get_pending_content(user=user, db=db_session)
    assert pending.content.id == second.id
    assert workflow_registry.get(user.id, first.id) is None

    second.active = False
    db_session.commit()
    compliance_service.invalidate(user.id)

    pending = await get_pending_content(user=user, db=db_session)
    assert pending.has_pending is False
    assert len(workflow_registry) == 0
