"""
Training and training path API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
import logging

from intranet.database import get_db
from intranet.dependencies import get_current_user, require_admin
from intranet.models import Profile, Training, TrainingCertificate, TrainingPath, TrainingProgress
from intranet.schemas.training import (
    CertificateResponse,
    ModuleCompletionResponse,
    TrainingCreate,
    TrainingPathCreate,
    TrainingPathView,
    TrainingQuizResult,
    TrainingQuizSubmission,
    TrainingView,
)
from intranet.services.grading_service import QuizIncompleteError
from intranet.services.training_service import TrainingModuleNotFoundError, training_service

router = APIRouter(prefix="/api/trainings", tags=["trainings"])
paths_router = APIRouter(prefix="/api/training-paths", tags=["training-paths"])
logger = logging.getLogger(__name__)


def _get_published_or_404(db: Session, training_id: UUID) -> Training:
    training = db.query(Training).filter(
        Training.id == training_id,
        Training.is_published.is_(True)
    ).first()
    if not training:
        raise HTTPException(status_code=404, detail="Training not found")
    return training


def _to_view(training: Training, progress: TrainingProgress = None) -> TrainingView:
    return TrainingView(
        id=training.id,
        title=training.title,
        description=training.description,
        category=training.category,
        duration_minutes=training.duration_minutes,
        modules=training_service.parse_modules(training),
        certificate_enabled=training.certificate_enabled,
        progress_percentage=progress.progress_percentage if progress else 0,
        completed=bool(progress and progress.completed)
    )


@router.get("/", response_model=List[TrainingView])
async def list_trainings(
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Published trainings with the user's progress"""
    trainings = db.query(Training).filter(
        Training.is_published.is_(True)
    ).order_by(Training.created_at.desc()).all()

    progress = {
        p.training_id: p for p in db.query(TrainingProgress).filter(
            TrainingProgress.user_id == user.id
        ).all()
    }

    return [_to_view(t, progress.get(t.id)) for t in trainings]


@router.post("/", response_model=TrainingView, status_code=201)
async def create_training(
    payload: TrainingCreate,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    data = payload.model_dump()
    training = Training(**data)
    db.add(training)
    db.commit()
    db.refresh(training)

    logger.info(f"Training created: {training.id} with {len(payload.modules)} modules")
    return _to_view(training)


@router.post("/{training_id}/modules/{module_id}/complete", response_model=ModuleCompletionResponse)
async def complete_module(
    training_id: UUID,
    module_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    training = _get_published_or_404(db, training_id)

    try:
        return training_service.complete_module(db, training, user.id, module_id)
    except TrainingModuleNotFoundError:
        raise HTTPException(status_code=404, detail="Module not found")


@router.post("/{training_id}/modules/{module_id}/quiz", response_model=TrainingQuizResult)
async def submit_module_quiz(
    training_id: UUID,
    module_id: str,
    submission: TrainingQuizSubmission,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Grade a module quiz; passing it completes the module"""
    training = _get_published_or_404(db, training_id)

    try:
        return training_service.grade_module_quiz(db, training, user.id, module_id, submission.answers)
    except TrainingModuleNotFoundError:
        raise HTTPException(status_code=404, detail="Module not found")
    except QuizIncompleteError as e:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "quiz_incomplete",
                "message": "Responda todas as perguntas antes de enviar",
                "missing": e.missing
            }
        )


@router.get("/certificates", response_model=List[CertificateResponse])
async def list_my_certificates(
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return db.query(TrainingCertificate).filter(
        TrainingCertificate.user_id == user.id
    ).order_by(TrainingCertificate.issued_at.desc()).all()


@paths_router.get("/", response_model=List[TrainingPathView])
async def list_paths(
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Active paths with per-item unlock state"""
    paths = db.query(TrainingPath).filter(
        TrainingPath.is_active.is_(True)
    ).order_by(TrainingPath.created_at).all()

    return [training_service.build_path_view(db, p, user.id) for p in paths]


@paths_router.get("/{path_id}", response_model=TrainingPathView)
async def get_path(
    path_id: UUID,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    path = db.query(TrainingPath).filter(TrainingPath.id == path_id).first()
    if not path:
        raise HTTPException(status_code=404, detail="Training path not found")

    return training_service.build_path_view(db, path, user.id)


@paths_router.post("/", response_model=TrainingPathView, status_code=201)
async def create_path(
    payload: TrainingPathCreate,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Sequential paths chain every item to the previous one"""
    found = db.query(Training.id).filter(Training.id.in_(payload.training_ids)).count()
    if found != len(set(payload.training_ids)):
        raise HTTPException(status_code=400, detail="Unknown training in path")

    path = training_service.create_path(
        db, payload.title, payload.description, payload.training_ids, payload.sequential
    )
    return training_service.build_path_view(db, path, admin.id)
