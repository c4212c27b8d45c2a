import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from intranet.api import admin as admin_api
from intranet.dependencies import require_admin, require_manager
from intranet.models import MandatoryContent, MuralPost
from intranet.schemas.admin import SettingUpdate
from intranet.schemas.mandatory_content import (
    MandatoryContentCreate,
    MandatoryContentUpdate,
    QuizGenerateRequest,
    QuizQuestion,
)
from intranet.schemas.mural import ModerationDecision
from intranet.services.confirmation_workflow import workflow_registry
from intranet.services.gemini_service import AIServiceError
from intranet.services.setting_service import BLOCK_ACCESS_KEY
from tests.utils import QUIZ, create_profile


@pytest.fixture()
def admin(db_session):
    return create_profile(db_session, full_name="Admin", email="admin@example.com", role="admin")


def test_role_guards(db_session):
    staff = create_profile(db_session)
    manager = create_profile(db_session, email="gestor@example.com", role="gestor_setor")

    with pytest.raises(HTTPException) as exc:
        require_admin(staff)
    assert exc.value.status_code == 403

    with pytest.raises(HTTPException):
        require_manager(staff)
    assert require_manager(manager) is manager


@pytest.mark.asyncio
async def test_settings_upsert_and_get(db_session, admin):
    with pytest.raises(HTTPException) as exc:
        await admin_api.get_setting(BLOCK_ACCESS_KEY, admin=admin, db=db_session)
    assert exc.value.status_code == 404

    created = await admin_api.upsert_setting(
        BLOCK_ACCESS_KEY, SettingUpdate(value="false", description="Bloqueio"), admin=admin, db=db_session
    )
    assert created.value == "false"

    updated = await admin_api.upsert_setting(BLOCK_ACCESS_KEY, SettingUpdate(value="true"), admin=admin, db=db_session)
    assert updated.value == "true"

    fetched = await admin_api.get_setting(BLOCK_ACCESS_KEY, admin=admin, db=db_session)
    assert fetched.value == "true"
    assert len(await admin_api.list_settings(admin=admin, db=db_session)) == 1


@pytest.mark.asyncio
async def test_video_content_drops_quiz(db_session, admin):
    content = await admin_api.create_mandatory_content(
        MandatoryContentCreate(
            title="Boas-vindas",
            type="video",
            content_url="https://cdn.example.com/v.mp4",
            quiz_questions=QUIZ,
        ),
        admin=admin,
        db=db_session,
    )

    assert content.quiz_questions is None
    assert content.created_by == admin.id


def test_create_payload_requires_body_for_type():
    with pytest.raises(ValidationError):
        MandatoryContentCreate(title="Sem texto", type="text")
    with pytest.raises(ValidationError):
        MandatoryContentCreate(title="Sem vídeo", type="video")


@pytest.mark.asyncio
async def test_update_and_delete_content(db_session, admin):
    content = await admin_api.create_mandatory_content(
        MandatoryContentCreate(title="Política", type="text", content_text="Texto", quiz_questions=QUIZ),
        admin=admin,
        db=db_session,
    )
    content_id = content.id
    first_version = content.updated_at

    updated = await admin_api.update_mandatory_content(
        content_id, MandatoryContentUpdate(title="Política nova"), admin=admin, db=db_session
    )
    assert updated.title == "Política nova"
    assert updated.quiz_questions["questions"][0]["correct_answer"] == "30 dias"
    assert updated.updated_at >= first_version

    with pytest.raises(HTTPException) as exc:
        await admin_api.update_mandatory_content(
            content_id, MandatoryContentUpdate(type="video"), admin=admin, db=db_session
        )
    assert exc.value.status_code == 400
    db_session.rollback()

    response = await admin_api.delete_mandatory_content(content_id, admin=admin, db=db_session)
    assert response.status_code == 204
    assert db_session.query(MandatoryContent).count() == 0

    with pytest.raises(HTTPException) as exc:
        await admin_api.delete_mandatory_content(content_id, admin=admin, db=db_session)
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_deactivating_or_deleting_content_drops_workflows(db_session, admin):
    user = create_profile(db_session, email="ana@example.com")
    content = await admin_api.create_mandatory_content(
        MandatoryContentCreate(title="Política", type="text", content_text="Texto"),
        admin=admin,
        db=db_session,
    )
    content_id = content.id

    workflow_registry.get_or_create(user.id, content_id, "text", None, 10)
    await admin_api.update_mandatory_content(
        content_id, MandatoryContentUpdate(title="Política nova"), admin=admin, db=db_session
    )
    assert workflow_registry.get(user.id, content_id) is not None

    await admin_api.update_mandatory_content(
        content_id, MandatoryContentUpdate(active=False), admin=admin, db=db_session
    )
    assert workflow_registry.get(user.id, content_id) is None

    workflow_registry.get_or_create(user.id, content_id, "text", None, 10)
    await admin_api.delete_mandatory_content(content_id, admin=admin, db=db_session)
    assert workflow_registry.get(user.id, content_id) is None


@pytest.mark.asyncio
async def test_generate_quiz(monkeypatch, admin):
    question = QuizQuestion(question="Q?", options=["A", "B"], correct_answer="A")
    monkeypatch.setattr(admin_api.gemini_service, "generate_quiz", lambda text, n: [question] * n)

    quiz = await admin_api.generate_quiz(QuizGenerateRequest(content_text="Texto", num_questions=2), admin=admin)
    assert len(quiz.questions) == 2

    def fail(text, n):
        raise AIServiceError("Failed to generate quiz")

    monkeypatch.setattr(admin_api.gemini_service, "generate_quiz", fail)
    with pytest.raises(HTTPException) as exc:
        await admin_api.generate_quiz(QuizGenerateRequest(content_text="Texto"), admin=admin)
    assert exc.value.status_code == 502


@pytest.mark.asyncio
async def test_mural_moderation(db_session, admin):
    author = create_profile(db_session)
    approved = MuralPost(author_id=author.id, content="Parabéns à equipe!")
    rejected = MuralPost(author_id=author.id, content="Spam")
    db_session.add_all([approved, rejected])
    db_session.commit()

    queue = await admin_api.list_pending_posts(admin=admin, db=db_session)
    assert len(queue) == 2

    post = await admin_api.moderate_post(
        approved.id, ModerationDecision(decision="approved"), admin=admin, db=db_session
    )
    assert post.status == "approved"
    assert post.moderated_by == admin.id

    with pytest.raises(ValidationError):
        ModerationDecision(decision="rejected")

    post = await admin_api.moderate_post(
        rejected.id, ModerationDecision(decision="rejected", rejection_reason="Fora do tema"), admin=admin, db=db_session
    )
    assert post.rejection_reason == "Fora do tema"

    with pytest.raises(HTTPException) as exc:
        await admin_api.moderate_post(approved.id, ModerationDecision(decision="approved"), admin=admin, db=db_session)
    assert exc.value.status_code == 409


def test_compliance_export_over_http(client, db_session, admin):
    create_profile(db_session, full_name="Ana", email="ana@example.com")

    response = client.get("/api/admin/compliance/export", headers={"X-User-Id": str(admin.id)})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    assert response.text.startswith("Nome,E-mail,Cargo")


def test_admin_routes_reject_staff(client, db_session):
    staff = create_profile(db_session)
    response = client.get("/api/admin/compliance", headers={"X-User-Id": str(staff.id)})
    assert response.status_code == 403
