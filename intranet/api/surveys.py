"""
Survey API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
import hashlib
import logging

from intranet.database import get_db
from intranet.dependencies import get_current_user, require_admin
from intranet.models import Profile, Survey, SurveyResponse
from intranet.schemas.survey import (
    SurveyAnswerSubmission,
    SurveyCreate,
    SurveyQuestion,
    SurveyResponseModel,
    SurveyResults,
    SurveySubmissionResult,
)
from intranet.services.analytics_service import analytics_service

router = APIRouter(prefix="/api/surveys", tags=["surveys"])
logger = logging.getLogger(__name__)


def respondent_hash(survey_id: UUID, user_id: UUID) -> str:
    """Stable per (survey, user) marker that does not reveal the user"""
    return hashlib.sha256(f"{survey_id}:{user_id}".encode()).hexdigest()


def _is_visible(survey: Survey, user: Profile) -> bool:
    if survey.target_audience not in (None, "ambos", user.role):
        return False
    units = survey.audience_units or []
    return not units or user.unit_code in units


def _get_visible_or_404(db: Session, survey_id: UUID, user: Profile) -> Survey:
    survey = db.query(Survey).filter(Survey.id == survey_id, Survey.is_active.is_(True)).first()
    if not survey or not _is_visible(survey, user):
        raise HTTPException(status_code=404, detail="Survey not found")
    return survey


@router.get("/", response_model=List[SurveyResponseModel])
async def list_surveys(
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Active surveys for the user's role and unit"""
    surveys = db.query(Survey).filter(Survey.is_active.is_(True)).order_by(Survey.created_at.desc()).all()
    visible = [s for s in surveys if _is_visible(s, user)]

    answered = set(
        row.respondent_hash for row in db.query(SurveyResponse.respondent_hash).filter(
            SurveyResponse.survey_id.in_([s.id for s in visible])
        ).all()
    ) if visible else set()

    results = []
    for survey in visible:
        view = SurveyResponseModel.model_validate(survey)
        view.answered = respondent_hash(survey.id, user.id) in answered
        results.append(view)
    return results


@router.post("/", response_model=SurveyResponseModel, status_code=201)
async def create_survey(
    payload: SurveyCreate,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    survey = Survey(**payload.model_dump())
    db.add(survey)
    db.commit()
    db.refresh(survey)

    logger.info(f"Survey created: {survey.id} (anonymous={survey.anonymous})")
    return survey


@router.post("/{survey_id}/responses", response_model=SurveySubmissionResult, status_code=201)
async def submit_response(
    survey_id: UUID,
    submission: SurveyAnswerSubmission,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Answer a survey once

    - Every question must be answered
    - Anonymous surveys store no user id
    """
    survey = _get_visible_or_404(db, survey_id, user)
    questions = [SurveyQuestion.model_validate(q) for q in survey.questions or []]

    missing = [i for i in range(len(questions)) if not str(submission.answers.get(i, "")).strip()]
    if missing:
        raise HTTPException(
            status_code=400,
            detail={"error": "survey_incomplete", "message": "Responda todas as perguntas", "missing": missing}
        )

    for index, question in enumerate(questions):
        if question.type == "multiple_choice" and submission.answers[index] not in question.options:
            raise HTTPException(status_code=400, detail=f"Invalid option for question {index}")

    marker = respondent_hash(survey.id, user.id)
    already = db.query(SurveyResponse.id).filter(
        SurveyResponse.survey_id == survey.id,
        SurveyResponse.respondent_hash == marker
    ).first()
    if already:
        raise HTTPException(status_code=409, detail="Survey already answered")

    response = SurveyResponse(
        survey_id=survey.id,
        user_id=None if survey.anonymous else user.id,
        respondent_hash=marker,
        unit_code=user.unit_code,
        answers={str(i): submission.answers[i] for i in range(len(questions))}
    )
    db.add(response)
    db.commit()
    db.refresh(response)

    return SurveySubmissionResult(response_id=response.id, survey_id=survey.id, anonymous=survey.anonymous)


@router.get("/{survey_id}/results", response_model=SurveyResults)
async def get_results(
    survey_id: UUID,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    survey = db.query(Survey).filter(Survey.id == survey_id).first()
    if not survey:
        raise HTTPException(status_code=404, detail="Survey not found")

    return analytics_service.get_survey_results(db, survey)
