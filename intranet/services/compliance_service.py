"""
Mandatory-content compliance service

Decides whether a user still owes a mandatory content confirmation.
Candidates are scanned one at a time in creation order and the first one
without a successful signature is the pending item; only that item is
surfaced, the next one appears after it is confirmed.

Read failures fail open: the user is treated as having nothing pending so
a backend hiccup never locks the whole intranet.
"""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from intranet.config import settings
from intranet.models import MandatoryContent, MandatoryContentSignature, Profile
from intranet.schemas.mandatory_content import ComplianceStatus, QuizDefinition, QuizQuestion
from intranet.services.setting_service import setting_service, BLOCK_ACCESS_KEY
from intranet.utils.cache import cache_service

logger = logging.getLogger(__name__)


class ComplianceService:
    """Service computing and caching the mandatory-content gate decision"""

    @staticmethod
    def audience_for_role(role: Optional[str]) -> str:
        """Franchise owners form their own bucket; everyone else is a collaborator"""
        return "franqueados" if role == "franqueado" else "colaboradores"

    @staticmethod
    def role_matches_audience(role: Optional[str], target_audience: str) -> bool:
        """Audience rule used by reports and reminders"""
        if target_audience == "ambos":
            return True
        if target_audience == "colaboradores":
            return role == "colaborador"
        if target_audience == "franqueados":
            return role == "franqueado"
        return False

    @staticmethod
    def parse_quiz(content: MandatoryContent) -> Optional[List[QuizQuestion]]:
        """Typed quiz of a text content; None when the content has no quiz"""
        if content.type != "text" or content.quiz_questions is None:
            return None
        return QuizDefinition.model_validate(content.quiz_questions).questions

    def list_candidates(self, db: Session, audience: str) -> List[MandatoryContent]:
        """Active contents for the audience bucket, oldest first"""
        return db.query(MandatoryContent).filter(
            MandatoryContent.active.is_(True),
            or_(
                MandatoryContent.target_audience == "ambos",
                MandatoryContent.target_audience == audience
            )
        ).order_by(MandatoryContent.created_at, MandatoryContent.id).all()

    def has_signature(self, db: Session, content_id: UUID, user_id: UUID) -> bool:
        """True once a successful signature exists for (content, user)"""
        return db.query(MandatoryContentSignature.id).filter(
            MandatoryContentSignature.content_id == content_id,
            MandatoryContentSignature.user_id == user_id,
            MandatoryContentSignature.success.is_(True)
        ).first() is not None

    def find_pending_content(self, db: Session, user: Profile) -> Optional[MandatoryContent]:
        """
        First unsigned candidate for the user, or None

        Raises:
            SQLAlchemyError: on read failure (callers decide the policy)
        """
        audience = self.audience_for_role(user.role)

        for content in self.list_candidates(db, audience):
            if not self.has_signature(db, content.id, user.id):
                return content

        return None

    def get_status(self, db: Session, user: Profile, use_cache: bool = True) -> ComplianceStatus:
        """
        Gate decision for the user

        Served from cache when available; recomputed after invalidation
        (confirmation, content catalogue change) or expiry.
        """
        cache_key = cache_service.compliance_key(user.id)

        if use_cache:
            cached = cache_service.get(cache_key)
            if cached:
                return ComplianceStatus(**cached)

        try:
            block_access = setting_service.get_bool(
                db, BLOCK_ACCESS_KEY, settings.MANDATORY_CONTENT_BLOCK_ACCESS_DEFAULT
            )
            pending = self.find_pending_content(db, user)
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(
                f"Mandatory content check failed for user {user.id}, failing open: {str(e)}"
            )
            return ComplianceStatus(user_id=user.id, block_access=False, degraded=True)

        status = ComplianceStatus(
            user_id=user.id,
            pending_content_id=pending.id if pending else None,
            block_access=block_access
        )

        cache_service.set(cache_key, status.model_dump(mode="json"))

        if pending:
            logger.info(f"User {user.id} has pending mandatory content {pending.id}")

        return status

    def invalidate(self, user_id: UUID) -> None:
        """Force the next status check of one user to hit the database"""
        cache_service.delete(cache_service.compliance_key(user_id))

    def invalidate_all(self) -> None:
        """Content catalogue or gate setting changed"""
        cache_service.clear_compliance_cache()


# Global instance
compliance_service = ComplianceService()
