from datetime import date
from decimal import Decimal

import pytest
from fastapi import HTTPException

from intranet.api import announcements, campaigns, checklists, ideas, mural, surveys, trainings
from intranet.models import (
    Announcement,
    Campaign,
    Checklist,
    ChecklistResponse,
    MuralPost,
    Survey,
    SurveyResponse,
    Training,
)
from intranet.schemas.campaign import CampaignCreate, CampaignResultCreate
from intranet.schemas.checklist import ChecklistSubmission
from intranet.schemas.idea import IdeaCreate, IdeaVoteRequest
from intranet.schemas.mural import MuralPostCreate
from intranet.schemas.survey import SurveyAnswerSubmission
from tests.utils import create_profile


@pytest.fixture()
def user(db_session):
    return create_profile(db_session)


def add(db, row):
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.mark.asyncio
async def test_announcement_audience_likes_and_views(db_session, user):
    owner = create_profile(db_session, email="dono@example.com", role="franqueado")
    general = add(db_session, Announcement(title="Geral", content="Para todos", is_published=True))
    add(db_session, Announcement(title="Donos", content="Só franqueados", target_audience="franqueados", is_published=True))
    add(db_session, Announcement(title="Rascunho", content="Não publicado", is_published=False))

    assert [a.title for a in await announcements.list_announcements(user=user, db=db_session)] == ["Geral"]
    assert len(await announcements.list_announcements(user=owner, db=db_session)) == 2

    liked = await announcements.toggle_like(general.id, user=user, db=db_session)
    assert (liked.liked, liked.likes_count) == (True, 1)
    await announcements.toggle_like(general.id, user=owner, db=db_session)

    feed = await announcements.list_announcements(user=user, db=db_session)
    assert feed[0].likes_count == 2
    assert feed[0].liked_by_me is True

    unliked = await announcements.toggle_like(general.id, user=user, db=db_session)
    assert (unliked.liked, unliked.likes_count) == (False, 1)

    await announcements.mark_viewed(general.id, user=user, db=db_session)
    view = await announcements.mark_viewed(general.id, user=user, db=db_session)
    assert view.views_count == 1


@pytest.mark.asyncio
async def test_unpublished_announcement_is_404(db_session, user):
    draft = add(db_session, Announcement(title="Rascunho", content="x", is_published=False))
    with pytest.raises(HTTPException) as exc:
        await announcements.toggle_like(draft.id, user=user, db=db_session)
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_idea_submission_and_vote_upsert(db_session, user, monkeypatch):
    monkeypatch.setattr(ideas.gemini_service, "classify_idea", lambda title, description, category: "Melhoria no Atendimento")
    voter = create_profile(db_session, email="voter@example.com")

    idea = await ideas.submit_idea(
        IdeaCreate(title="Fila única", description="Organizar o caixa", category="atendimento"),
        user=user,
        db=db_session,
    )
    assert idea.ai_category == "Melhoria no Atendimento"
    assert idea.status == "pending"
    assert idea.unit_code == user.unit_code

    await ideas.vote_idea(idea.id, IdeaVoteRequest(vote=True), user=user, db=db_session)
    result = await ideas.vote_idea(idea.id, IdeaVoteRequest(vote=False, comment="caro"), user=voter, db=db_session)
    assert (result.approvals, result.rejections) == (1, 1)

    result = await ideas.vote_idea(idea.id, IdeaVoteRequest(vote=True), user=voter, db=db_session)
    assert (result.approvals, result.rejections) == (2, 0)

    listed = await ideas.list_ideas(status="pending", user=user, db=db_session)
    assert listed[0].approvals == 2
    assert await ideas.list_ideas(status="approved", user=user, db=db_session) == []


@pytest.mark.asyncio
async def test_idea_classification_failure_leaves_category_empty(db_session, user, monkeypatch):
    monkeypatch.setattr(ideas.gemini_service, "classify_idea", lambda *args: None)
    idea = await ideas.submit_idea(
        IdeaCreate(title="t", description="d", category="outros"), user=user, db=db_session
    )
    assert idea.ai_category is None


def make_survey(db, anonymous=False, **kwargs):
    return add(db, Survey(
        title="Clima",
        questions=[
            {"question": "Satisfeito?", "type": "multiple_choice", "options": ["Sim", "Não"]},
            {"question": "Comentário", "type": "text", "options": []},
        ],
        anonymous=anonymous,
        **kwargs
    ))


@pytest.mark.asyncio
async def test_survey_answered_once(db_session, user):
    survey = make_survey(db_session)
    answers = SurveyAnswerSubmission(answers={0: "Sim", 1: "Tudo certo"})

    result = await surveys.submit_response(survey.id, answers, user=user, db=db_session)
    assert result.anonymous is False
    assert db_session.query(SurveyResponse).one().user_id == user.id

    listed = await surveys.list_surveys(user=user, db=db_session)
    assert listed[0].answered is True

    with pytest.raises(HTTPException) as exc:
        await surveys.submit_response(survey.id, answers, user=user, db=db_session)
    assert exc.value.status_code == 409


@pytest.mark.asyncio
async def test_anonymous_survey_stores_no_user(db_session, user):
    survey = make_survey(db_session, anonymous=True)
    await surveys.submit_response(
        survey.id, SurveyAnswerSubmission(answers={0: "Não", 1: "x"}), user=user, db=db_session
    )

    row = db_session.query(SurveyResponse).one()
    assert row.user_id is None
    assert row.respondent_hash == surveys.respondent_hash(survey.id, user.id)

    with pytest.raises(HTTPException) as exc:
        await surveys.submit_response(
            survey.id, SurveyAnswerSubmission(answers={0: "Sim", 1: "y"}), user=user, db=db_session
        )
    assert exc.value.status_code == 409


@pytest.mark.asyncio
async def test_survey_validation(db_session, user):
    survey = make_survey(db_session)

    with pytest.raises(HTTPException) as exc:
        await surveys.submit_response(survey.id, SurveyAnswerSubmission(answers={0: "Sim"}), user=user, db=db_session)
    assert exc.value.status_code == 400
    assert exc.value.detail["missing"] == [1]

    with pytest.raises(HTTPException) as exc:
        await surveys.submit_response(
            survey.id, SurveyAnswerSubmission(answers={0: "Talvez", 1: "x"}), user=user, db=db_session
        )
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_survey_hidden_from_other_units(db_session, user):
    survey = make_survey(db_session, audience_units=["U999"])
    assert await surveys.list_surveys(user=user, db=db_session) == []
    with pytest.raises(HTTPException) as exc:
        await surveys.submit_response(
            survey.id, SurveyAnswerSubmission(answers={0: "Sim", 1: "x"}), user=user, db=db_session
        )
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_checklist_photo_is_optional(db_session, user):
    checklist = add(db_session, Checklist(
        title="Abertura",
        type="abertura",
        questions=[
            {"id": "luzes", "text": "Luzes acesas?", "type": "boolean"},
            {"id": "vitrine", "text": "Foto da vitrine", "type": "photo"},
        ],
    ))

    with pytest.raises(HTTPException) as exc:
        await checklists.submit_checklist(
            checklist.id, ChecklistSubmission(responses={"vitrine": "foto.jpg"}), user=user, db=db_session
        )
    assert exc.value.detail == {
        "error": "checklist_incomplete", "message": "Responda todos os itens", "missing": ["luzes"]
    }

    result = await checklists.submit_checklist(
        checklist.id, ChecklistSubmission(responses={"luzes": False}), user=user, db=db_session
    )
    assert result.status == "completed"
    assert db_session.query(ChecklistResponse).one().responses == {"luzes": False}


@pytest.mark.asyncio
async def test_campaign_results_feed_progress(db_session, user):
    admin = create_profile(db_session, email="admin@example.com", role="admin")
    created = await campaigns.create_campaign(
        CampaignCreate(title="Vendas", goal_value=Decimal("200"), goal_unit="vendas"), admin=admin, db=db_session
    )

    result = await campaigns.record_result(created.id, CampaignResultCreate(value=Decimal("50")), user=user, db=db_session)
    assert result.user_id == user.id
    assert result.unit_code == user.unit_code

    progress = await campaigns.list_campaigns(user=user, db=db_session)
    assert progress[0].progress == 25

    inactive = add(db_session, Campaign(title="Antiga", goal_value=Decimal("10"), is_active=False))
    with pytest.raises(HTTPException) as exc:
        await campaigns.record_result(inactive.id, CampaignResultCreate(value=Decimal("1")), user=user, db=db_session)
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_campaign_dates_are_validated(db_session):
    admin = create_profile(db_session, role="admin")

    with pytest.raises(HTTPException) as exc:
        await campaigns.create_campaign(
            CampaignCreate(title="x", goal_value=Decimal("1"), start_date=date(2024, 2, 1), end_date=date(2024, 1, 1)),
            admin=admin,
            db=db_session,
        )
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_mural_hides_pending_posts_and_anonymous_authors(db_session, user):
    created = await mural.create_post(MuralPostCreate(content="Olá equipe", is_anonymous=True), user=user, db=db_session)
    assert created.status == "pending"
    assert created.author_id is None

    assert await mural.list_posts(user=user, db=db_session) == []

    post = db_session.query(MuralPost).one()
    assert post.author_id == user.id
    post.status = "approved"
    db_session.commit()

    listed = await mural.list_posts(user=user, db=db_session)
    assert len(listed) == 1
    assert listed[0].author_id is None


@pytest.mark.asyncio
async def test_training_endpoints(db_session, user):
    training = add(db_session, Training(
        title="Atendimento",
        modules=[{"id": "m0", "title": "Intro"}, {"id": "m1", "title": "Prática"}],
        certificate_enabled=True,
        is_published=True,
    ))

    first = await trainings.complete_module(training.id, "m0", user=user, db=db_session)
    assert first.progress_percentage == 50

    with pytest.raises(HTTPException) as exc:
        await trainings.complete_module(training.id, "m9", user=user, db=db_session)
    assert exc.value.status_code == 404

    last = await trainings.complete_module(training.id, "m1", user=user, db=db_session)
    assert last.completed is True

    views = await trainings.list_trainings(user=user, db=db_session)
    assert views[0].progress_percentage == 100
    assert views[0].completed is True

    certificates = await trainings.list_my_certificates(user=user, db=db_session)
    assert len(certificates) == 1
    assert certificates[0].certificate_code == last.certificate_code
