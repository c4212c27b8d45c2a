"""
Admin console API endpoints
"""
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from intranet.database import get_db
from intranet.dependencies import require_admin, require_manager
from intranet.models import MandatoryContent, MuralPost, Profile
from intranet.schemas.admin import SettingResponse, SettingUpdate
from intranet.schemas.mandatory_content import (
    ComplianceDashboard,
    MandatoryContentCreate,
    MandatoryContentResponse,
    MandatoryContentUpdate,
    QuizDefinition,
    QuizGenerateRequest,
    ReminderRunResponse,
)
from intranet.schemas.mural import ModerationDecision, MuralPostResponse
from intranet.schemas.notification import DispatchResult, NotificationDispatchRequest
from intranet.services.analytics_service import analytics_service
from intranet.services.compliance_service import compliance_service
from intranet.services.confirmation_workflow import workflow_registry
from intranet.services.gemini_service import AIServiceError, gemini_service
from intranet.services.notification_service import TemplateNotFoundError, notification_service
from intranet.services.reminder_service import reminder_service
from intranet.services.setting_service import setting_service, BLOCK_ACCESS_KEY
from intranet.utils.rate_limiter import ai_rate_limiter

router = APIRouter(prefix="/api/admin", tags=["admin"])
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@router.get("/settings", response_model=List[SettingResponse])
async def list_settings(
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return setting_service.list_all(db)


@router.get("/settings/{key}", response_model=SettingResponse)
async def get_setting(
    key: str,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    row = setting_service.get_row(db, key)
    if row is None:
        raise HTTPException(status_code=404, detail="Setting not found")
    return row


@router.put("/settings/{key}", response_model=SettingResponse)
async def upsert_setting(
    key: str,
    update: SettingUpdate,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create or update a setting; gate-related keys invalidate cached statuses"""
    row = setting_service.upsert(db, key, update.value, update.description)

    if key == BLOCK_ACCESS_KEY:
        compliance_service.invalidate_all()

    return row


# ---------------------------------------------------------------------------
# Mandatory contents
# ---------------------------------------------------------------------------

def _get_content_or_404(db: Session, content_id: UUID) -> MandatoryContent:
    content = db.query(MandatoryContent).filter(MandatoryContent.id == content_id).first()
    if not content:
        raise HTTPException(status_code=404, detail="Mandatory content not found")
    return content


@router.get("/mandatory-contents", response_model=List[MandatoryContentResponse])
async def list_mandatory_contents(
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """All contents, newest first, answer keys included"""
    return db.query(MandatoryContent).order_by(MandatoryContent.created_at.desc()).all()


@router.post("/mandatory-contents", response_model=MandatoryContentResponse, status_code=201)
async def create_mandatory_content(
    payload: MandatoryContentCreate,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    content = MandatoryContent(
        title=payload.title,
        type=payload.type,
        content_url=payload.content_url,
        content_text=payload.content_text,
        quiz_questions=(
            payload.quiz_questions.model_dump()
            if payload.type == "text" and payload.quiz_questions is not None
            else None
        ),
        target_audience=payload.target_audience,
        active=payload.active,
        created_by=admin.id
    )
    db.add(content)
    db.commit()
    db.refresh(content)

    compliance_service.invalidate_all()
    logger.info(f"Mandatory content created: {content.id} ({content.type})")
    return content


@router.put("/mandatory-contents/{content_id}", response_model=MandatoryContentResponse)
async def update_mandatory_content(
    content_id: UUID,
    payload: MandatoryContentUpdate,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Partial update; switching to video drops the quiz"""
    content = _get_content_or_404(db, content_id)

    changes = payload.model_dump(exclude_unset=True)
    if "quiz_questions" in changes:
        quiz: Optional[QuizDefinition] = payload.quiz_questions
        changes["quiz_questions"] = quiz.model_dump() if quiz is not None else None

    for field, value in changes.items():
        setattr(content, field, value)

    if content.type == "video":
        content.quiz_questions = None
        if not content.content_url:
            raise HTTPException(status_code=400, detail="content_url is required for video contents")
    elif not content.content_text:
        raise HTTPException(status_code=400, detail="content_text is required for text contents")

    content.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(content)

    compliance_service.invalidate_all()
    if not content.active:
        workflow_registry.discard_content(content.id)
    logger.info(f"Mandatory content updated: {content.id}")
    return content


@router.delete("/mandatory-contents/{content_id}", status_code=204)
async def delete_mandatory_content(
    content_id: UUID,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    content = _get_content_or_404(db, content_id)
    db.delete(content)
    db.commit()

    compliance_service.invalidate_all()
    workflow_registry.discard_content(content_id)
    logger.info(f"Mandatory content deleted: {content_id}")
    return Response(status_code=204)


@router.post(
    "/mandatory-contents/generate-quiz",
    response_model=QuizDefinition,
    dependencies=[Depends(ai_rate_limiter.for_scope("quiz"))]
)
async def generate_quiz(
    request: QuizGenerateRequest,
    admin: Profile = Depends(require_admin)
):
    """
    Draft comprehension questions from a text with Gemini AI

    The result is not stored; the admin reviews it and saves it with the content.
    """
    try:
        questions = gemini_service.generate_quiz(request.content_text, request.num_questions)
    except AIServiceError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return QuizDefinition(questions=questions)


# ---------------------------------------------------------------------------
# Compliance reporting
# ---------------------------------------------------------------------------

@router.get("/compliance", response_model=ComplianceDashboard)
async def get_compliance_dashboard(
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    dashboard = analytics_service.get_compliance_dashboard(db)
    logger.info(f"Compliance dashboard generated: {analytics_service.summarize(dashboard)}")
    return dashboard


@router.get("/compliance/export")
async def export_compliance_csv(
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Per-user compliance as a CSV download"""
    dashboard = analytics_service.get_compliance_dashboard(db)
    filename = f"conformidade-conteudos-{date.today().isoformat()}.csv"

    return Response(
        content=analytics_service.export_compliance_csv(dashboard),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.post("/reminders/run", response_model=ReminderRunResponse)
async def run_reminders(
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Send reminders for every pending (content, user) pair below the cap"""
    return await reminder_service.run(db)


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

@router.post("/notifications/send", response_model=DispatchResult)
async def send_notification(
    request: NotificationDispatchRequest,
    manager: Profile = Depends(require_manager),
    db: Session = Depends(get_db)
):
    try:
        return await notification_service.dispatch(db, request)
    except TemplateNotFoundError as e:
        raise HTTPException(status_code=404, detail=f"Notification template not found: {str(e)}")


# ---------------------------------------------------------------------------
# Mural moderation
# ---------------------------------------------------------------------------

@router.get("/mural/pending", response_model=List[MuralPostResponse])
async def list_pending_posts(
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Moderation queue, oldest first"""
    return db.query(MuralPost).filter(
        MuralPost.status == "pending"
    ).order_by(MuralPost.created_at).all()


@router.post("/mural/{post_id}/moderate", response_model=MuralPostResponse)
async def moderate_post(
    post_id: UUID,
    decision: ModerationDecision,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    post = db.query(MuralPost).filter(MuralPost.id == post_id).first()
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")

    if post.status != "pending":
        raise HTTPException(status_code=409, detail=f"Post already {post.status}")

    post.status = decision.decision
    post.approval_source = "manual"
    post.moderated_by = admin.id
    post.moderated_at = datetime.utcnow()
    post.rejection_reason = decision.rejection_reason if decision.decision == "rejected" else None

    db.commit()
    db.refresh(post)

    logger.info(f"Mural post {post.id} {post.status} by {admin.id}")
    return post
