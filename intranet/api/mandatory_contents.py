"""
Mandatory content workflow API endpoints

These routes are exempt from the mandatory content gate: they are the only
way out of it.
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from uuid import UUID
import logging

from intranet.config import settings
from intranet.database import get_db
from intranet.dependencies import get_current_user
from intranet.models import MandatoryContent, MandatoryContentSignature, Profile
from intranet.schemas.mandatory_content import (
    ConfirmationResponse,
    PendingContentView,
    PendingStatusResponse,
    PlaybackEvent,
    PublicQuizQuestion,
    QuizGradingResponse,
    QuizSubmission,
    ScrollEvent,
    WorkflowView,
)
from intranet.services.compliance_service import compliance_service
from intranet.services.confirmation_workflow import (
    ConfirmationWorkflow,
    WorkflowError,
    workflow_registry,
)
from intranet.services.grading_service import QuizIncompleteError
from intranet.services.ip_lookup_service import ip_lookup_service

router = APIRouter(prefix="/api/mandatory-contents", tags=["mandatory-contents"])
logger = logging.getLogger(__name__)

DASHBOARD_ROUTE = "/dashboard"

# Client mistakes rather than state conflicts
BAD_REQUEST_CODES = {"wrong_content_type", "no_quiz"}


def _workflow_error(e: WorkflowError) -> HTTPException:
    status_code = 400 if e.code in BAD_REQUEST_CODES else 409
    return HTTPException(status_code=status_code, detail={"error": e.code, "message": e.message})


def _open_workflow(user: Profile, content: MandatoryContent) -> ConfirmationWorkflow:
    version = content.updated_at.isoformat() if content.updated_at else None
    # The pending item moved on; progress on any earlier item is stale
    workflow_registry.discard_user(user.id, keep=content.id)
    return workflow_registry.get_or_create(
        user_id=user.id,
        content_id=content.id,
        content_type=content.type,
        quiz=compliance_service.parse_quiz(content),
        scroll_tolerance_px=settings.SCROLL_END_TOLERANCE_PX,
        version=version
    )


def _pending_workflow(db: Session, user: Profile, content_id: UUID) -> ConfirmationWorkflow:
    """Workflow of the user's current pending item; any other content is refused"""
    content = db.query(MandatoryContent).filter(MandatoryContent.id == content_id).first()
    if not content:
        raise HTTPException(status_code=404, detail="Mandatory content not found")

    status = compliance_service.get_status(db, user)
    if status.pending_content_id != content.id:
        raise HTTPException(
            status_code=409,
            detail={
                "error": "content_not_pending",
                "message": "Este conteúdo não é o item pendente atual"
            }
        )

    return _open_workflow(user, content)


def _workflow_view(workflow: ConfirmationWorkflow) -> WorkflowView:
    return WorkflowView(
        state=workflow.state.value,
        content_id=workflow.content_id,
        content_type=workflow.content_type,
        video_ended=workflow.video_ended,
        scrolled_to_end=workflow.scrolled_to_end,
        quiz_results=workflow.quiz_results,
        can_confirm=workflow.can_confirm
    )


@router.get("/pending", response_model=PendingStatusResponse)
async def get_pending_content(
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Current pending mandatory content of the user

    - Only the first unsigned item is returned
    - Quiz questions are exposed once the text has been read to the end,
      without the answer key
    """
    status = compliance_service.get_status(db, user)

    if not status.has_pending:
        workflow_registry.discard_user(user.id)
        return PendingStatusResponse(
            has_pending=False,
            block_access=status.block_access,
            redirect_to=DASHBOARD_ROUTE
        )

    content = db.query(MandatoryContent).filter(
        MandatoryContent.id == status.pending_content_id
    ).first()

    if not content:
        # Cached status points at a deleted content
        compliance_service.invalidate(user.id)
        status = compliance_service.get_status(db, user, use_cache=False)
        if not status.has_pending:
            return PendingStatusResponse(
                has_pending=False,
                block_access=status.block_access,
                redirect_to=DASHBOARD_ROUTE
            )
        content = db.query(MandatoryContent).filter(
            MandatoryContent.id == status.pending_content_id
        ).first()

    workflow = _open_workflow(user, content)

    quiz = None
    if workflow.quiz_unlocked:
        quiz = [
            PublicQuizQuestion(index=index, question=q.question, options=q.options)
            for index, q in enumerate(workflow.quiz)
        ]

    return PendingStatusResponse(
        has_pending=True,
        block_access=status.block_access,
        content=PendingContentView(
            id=content.id,
            title=content.title,
            type=content.type,
            content_url=content.content_url,
            content_text=content.content_text,
            has_quiz=workflow.has_quiz,
            quiz=quiz
        ),
        workflow=_workflow_view(workflow)
    )


@router.post("/{content_id}/playback", response_model=WorkflowView)
async def record_playback(
    content_id: UUID,
    event: PlaybackEvent,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Report a video player event

    Only "ended" unlocks the confirmation; seeking to the last second does not.
    """
    workflow = _pending_workflow(db, user, content_id)

    try:
        workflow.record_playback(event.event, event.position)
    except WorkflowError as e:
        raise _workflow_error(e)

    return _workflow_view(workflow)


@router.post("/{content_id}/scroll", response_model=WorkflowView)
async def record_scroll(
    content_id: UUID,
    event: ScrollEvent,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Report the text viewport position"""
    workflow = _pending_workflow(db, user, content_id)

    try:
        workflow.record_scroll(event.scroll_top, event.scroll_height, event.client_height)
    except WorkflowError as e:
        raise _workflow_error(e)

    return _workflow_view(workflow)


@router.post("/{content_id}/quiz", response_model=QuizGradingResponse)
async def submit_quiz(
    content_id: UUID,
    submission: QuizSubmission,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Grade the comprehension quiz

    - Every question must be answered (400 otherwise, nothing recorded)
    - Confirmation unlocks only when every answer is correct
    - A new submission replaces the previous result
    """
    workflow = _pending_workflow(db, user, content_id)

    try:
        return workflow.submit_quiz(submission.answers)
    except QuizIncompleteError as e:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "quiz_incomplete",
                "message": "Responda todas as perguntas antes de enviar",
                "missing": e.missing
            }
        )
    except WorkflowError as e:
        raise _workflow_error(e)


@router.post("/{content_id}/confirm", response_model=ConfirmationResponse, status_code=201)
async def confirm_content(
    content_id: UUID,
    request: Request,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Sign the confirmation of the pending content

    - Concurrent confirmations of the same item are refused (409)
    - On a failed write the item stays confirmable and nothing is retried
    """
    workflow = _pending_workflow(db, user, content_id)

    try:
        workflow.begin_confirmation()
    except WorkflowError as e:
        raise _workflow_error(e)

    try:
        signature, ip_address = await _record_signature(db, workflow, user, content_id, request)
    finally:
        # No-op once confirmed; any other exit makes the item confirmable again
        workflow.abort_confirmation()

    workflow_registry.discard(user.id, content_id)
    compliance_service.invalidate(user.id)

    logger.info(
        f"Mandatory content confirmed: user={user.id}, content={content_id}, "
        f"score={signature.score}, ip={ip_address}"
    )

    return ConfirmationResponse(
        signature_id=signature.id,
        content_id=content_id,
        score=signature.score,
        confirmation_text=signature.confirmation_text,
        ip_address=signature.ip_address,
        message="Confirmação registrada com sucesso!",
        redirect_to=DASHBOARD_ROUTE,
        redirect_after_seconds=settings.CONFIRMATION_REDIRECT_DELAY_SECONDS
    )


async def _record_signature(
    db: Session,
    workflow: ConfirmationWorkflow,
    user: Profile,
    content_id: UUID,
    request: Request
):
    """Resolve the IP and insert the signature; marks the workflow confirmed on success"""
    ip_address = await ip_lookup_service.resolve(request)

    try:
        if compliance_service.has_signature(db, content_id, user.id):
            workflow.complete_confirmation()
            workflow_registry.discard(user.id, content_id)
            compliance_service.invalidate(user.id)
            raise HTTPException(
                status_code=409,
                detail={"error": "already_confirmed", "message": "Conteúdo já confirmado"}
            )

        signature = MandatoryContentSignature(
            content_id=content_id,
            user_id=user.id,
            score=workflow.score,
            confirmed=True,
            confirmation_text=workflow.confirmation_text,
            ip_address=ip_address,
            success=True
        )
        db.add(signature)
        db.commit()
        db.refresh(signature)
    except SQLAlchemyError as e:
        db.rollback()
        workflow.abort_confirmation()
        logger.error(f"Failed to record signature for content {content_id}, user {user.id}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Erro ao registrar confirmação: {str(e)}")

    workflow.complete_confirmation()
    return signature, ip_address
