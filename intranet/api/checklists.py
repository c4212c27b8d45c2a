"""
Store checklist API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
import logging

from intranet.database import get_db
from intranet.dependencies import get_current_user, require_admin
from intranet.models import Checklist, ChecklistResponse, Profile
from intranet.schemas.checklist import (
    ChecklistCreate,
    ChecklistQuestion,
    ChecklistSubmission,
    ChecklistSubmissionResult,
    ChecklistView,
)

router = APIRouter(prefix="/api/checklists", tags=["checklists"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[ChecklistView])
async def list_checklists(
    type: Optional[str] = None,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = db.query(Checklist).filter(Checklist.is_active.is_(True))
    if type:
        query = query.filter(Checklist.type == type)
    return query.order_by(Checklist.title).all()


@router.post("/", response_model=ChecklistView, status_code=201)
async def create_checklist(
    payload: ChecklistCreate,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    checklist = Checklist(**payload.model_dump())
    db.add(checklist)
    db.commit()
    db.refresh(checklist)
    return checklist


@router.post("/{checklist_id}/responses", response_model=ChecklistSubmissionResult, status_code=201)
async def submit_checklist(
    checklist_id: UUID,
    submission: ChecklistSubmission,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Every non-photo question must be answered"""
    checklist = db.query(Checklist).filter(
        Checklist.id == checklist_id,
        Checklist.is_active.is_(True)
    ).first()
    if not checklist:
        raise HTTPException(status_code=404, detail="Checklist not found")

    questions = [ChecklistQuestion.model_validate(q) for q in checklist.questions or []]
    missing = [
        q.id for q in questions
        if q.type != "photo" and submission.responses.get(q.id) in (None, "")
    ]
    if missing:
        raise HTTPException(
            status_code=400,
            detail={"error": "checklist_incomplete", "message": "Responda todos os itens", "missing": missing}
        )

    response = ChecklistResponse(
        checklist_id=checklist.id,
        user_id=user.id,
        unit_code=user.unit_code,
        responses=submission.responses,
        status="completed"
    )
    db.add(response)
    db.commit()
    db.refresh(response)

    logger.info(f"Checklist {checklist.type} completed by {user.id} at unit {user.unit_code}")
    return response
