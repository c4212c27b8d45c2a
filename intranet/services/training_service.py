"""
Training progress service
Module completion, certificates, training quizzes and path unlock chains
"""
import logging
import time
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Set
from uuid import UUID

from sqlalchemy.orm import Session

from intranet.models import (
    Training,
    TrainingCertificate,
    TrainingPath,
    TrainingPathItem,
    TrainingProgress,
)
from intranet.schemas.training import (
    ModuleCompletionResponse,
    TrainingModule,
    TrainingPathItemView,
    TrainingPathView,
    TrainingQuizResult,
)
from intranet.services.grading_service import grading_service

logger = logging.getLogger(__name__)


class TrainingModuleNotFoundError(LookupError):
    """The training has no module with the given id"""


class TrainingService:
    """Service for per-user training progress"""

    @staticmethod
    def parse_modules(training: Training) -> List[TrainingModule]:
        return [TrainingModule.model_validate(m) for m in training.modules or []]

    def find_module(self, training: Training, module_id: str) -> TrainingModule:
        for module in self.parse_modules(training):
            if module.id == module_id:
                return module
        raise TrainingModuleNotFoundError(module_id)

    @staticmethod
    def calculate_progress(completed_modules: int, total_modules: int) -> int:
        """done / total * 100 rounded half-up; a training without modules counts as one"""
        return min(grading_service.calculate_score(completed_modules, total_modules or 1), 100)

    @staticmethod
    def generate_certificate_code(user_id: UUID) -> str:
        """CP-<epoch ms>-<first 8 chars of the user id>"""
        return f"CP-{int(time.time() * 1000)}-{str(user_id)[:8]}"

    def get_progress(self, db: Session, training_id: UUID, user_id: UUID) -> Optional[TrainingProgress]:
        return db.query(TrainingProgress).filter(
            TrainingProgress.training_id == training_id,
            TrainingProgress.user_id == user_id
        ).first()

    def complete_module(
        self,
        db: Session,
        training: Training,
        user_id: UUID,
        module_id: str,
        score: Optional[int] = None
    ) -> ModuleCompletionResponse:
        """
        Mark one module as done and recompute progress

        Args:
            db: Database session
            training: Training being followed
            user_id: Learner
            module_id: Module to mark as completed
            score: Quiz score for the module, if any

        Returns:
            Updated progress, with the certificate code when one was issued

        Raises:
            TrainingModuleNotFoundError: if the module does not belong to the training
        """
        self.find_module(training, module_id)
        modules = self.parse_modules(training)

        progress = self.get_progress(db, training.id, user_id)
        if not progress:
            progress = TrainingProgress(
                training_id=training.id,
                user_id=user_id,
                modules_completed=[],
                progress_percentage=0,
                score=0
            )
            db.add(progress)

        was_completed = bool(progress.completed)
        done = list(progress.modules_completed or [])
        if module_id not in done:
            done.append(module_id)

        # Reassign so the JSON column is flagged dirty
        progress.modules_completed = done
        progress.progress_percentage = self.calculate_progress(len(done), len(modules))
        if score is not None:
            progress.score = max(progress.score or 0, score)

        certificate_code = None
        if progress.progress_percentage >= 100:
            progress.completed = True
            progress.completed_at = progress.completed_at or datetime.utcnow()

            if training.certificate_enabled and not was_completed:
                certificate_code = self._issue_certificate(db, training.id, user_id)

        db.commit()

        logger.info(
            f"Training progress updated: user={user_id}, training={training.id}, "
            f"progress={progress.progress_percentage}%"
        )

        return ModuleCompletionResponse(
            training_id=training.id,
            modules_completed=done,
            progress_percentage=progress.progress_percentage,
            completed=bool(progress.completed),
            certificate_code=certificate_code
        )

    def _issue_certificate(self, db: Session, training_id: UUID, user_id: UUID) -> str:
        existing = db.query(TrainingCertificate).filter(
            TrainingCertificate.training_id == training_id,
            TrainingCertificate.user_id == user_id
        ).first()
        if existing:
            return existing.certificate_code

        code = self.generate_certificate_code(user_id)
        db.add(TrainingCertificate(training_id=training_id, user_id=user_id, certificate_code=code))
        logger.info(f"Certificate issued: {code}")
        return code

    def grade_module_quiz(
        self,
        db: Session,
        training: Training,
        user_id: UUID,
        module_id: str,
        answers: Dict[int, str]
    ) -> TrainingQuizResult:
        """
        Grade a module quiz; a passing score completes the module

        Raises:
            TrainingModuleNotFoundError: if the module does not exist
            QuizIncompleteError: if an answer is missing
        """
        module = self.find_module(training, module_id)
        grading = grading_service.grade_quiz(module.quiz or [], answers)
        passed = grading_service.passed(grading.score, module.min_score)

        if passed:
            self.complete_module(db, training, user_id, module_id, score=grading.score)

        return TrainingQuizResult(
            module_id=module_id,
            score=grading.score,
            min_score=module.min_score,
            passed=passed,
            results=grading.results
        )

    @staticmethod
    def is_item_unlocked(
        item: TrainingPathItem,
        position: int,
        items_by_id: Dict[UUID, TrainingPathItem],
        completed_training_ids: Set[UUID]
    ) -> bool:
        """
        First item and items without unlock_after are open; otherwise the
        referenced item's training must be completed. A dangling pointer
        keeps the positional rule.
        """
        unlocked = position == 0 or item.unlock_after is None

        if item.unlock_after is not None:
            previous = items_by_id.get(item.unlock_after)
            if previous is not None:
                unlocked = previous.training_id in completed_training_ids

        return unlocked

    def build_path_view(self, db: Session, path: TrainingPath, user_id: UUID) -> TrainingPathView:
        """Path items in order with unlocked/completed flags for the user"""
        items: Sequence[TrainingPathItem] = db.query(TrainingPathItem).filter(
            TrainingPathItem.path_id == path.id
        ).order_by(TrainingPathItem.order_index).all()

        training_ids = [item.training_id for item in items]
        trainings = {
            t.id: t for t in db.query(Training).filter(Training.id.in_(training_ids)).all()
        } if training_ids else {}

        completed_ids = set(
            row.training_id for row in db.query(TrainingProgress).filter(
                TrainingProgress.user_id == user_id,
                TrainingProgress.completed.is_(True),
                TrainingProgress.training_id.in_(training_ids)
            ).all()
        ) if training_ids else set()

        items_by_id = {item.id: item for item in items}

        views = []
        for position, item in enumerate(items):
            training = trainings.get(item.training_id)
            views.append(TrainingPathItemView(
                id=item.id,
                training_id=item.training_id,
                title=training.title if training else "",
                order_index=item.order_index,
                unlock_after=item.unlock_after,
                unlocked=self.is_item_unlocked(item, position, items_by_id, completed_ids),
                completed=item.training_id in completed_ids
            ))

        done = sum(1 for v in views if v.completed)
        return TrainingPathView(
            id=path.id,
            title=path.title,
            description=path.description,
            items=views,
            progress_percentage=self.calculate_progress(done, len(views))
        )

    def create_path(
        self,
        db: Session,
        title: str,
        description: Optional[str],
        training_ids: List[UUID],
        sequential: bool = True
    ) -> TrainingPath:
        """Create a path; sequential paths chain each item to the previous one"""
        path = TrainingPath(title=title, description=description)
        db.add(path)
        db.flush()

        previous: Optional[TrainingPathItem] = None
        for order_index, training_id in enumerate(training_ids):
            item = TrainingPathItem(
                path_id=path.id,
                training_id=training_id,
                order_index=order_index,
                unlock_after=previous.id if (sequential and previous) else None
            )
            db.add(item)
            db.flush()
            previous = item

        db.commit()
        db.refresh(path)
        logger.info(f"Training path created: {path.id} with {len(training_ids)} items")
        return path


# Global instance
training_service = TrainingService()
