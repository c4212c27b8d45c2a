"""
Reminder job for users who still owe a mandatory content confirmation
"""
import logging
from typing import Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from intranet.config import settings
from intranet.models import (
    MandatoryContent,
    MandatoryContentReminder,
    NotificationTemplate,
    Profile,
)
from intranet.schemas.mandatory_content import ReminderRunResponse
from intranet.schemas.notification import NotificationDispatchRequest
from intranet.services.compliance_service import compliance_service
from intranet.services.notification_service import notification_service
from intranet.services.setting_service import setting_service, MAX_REMINDERS_KEY

logger = logging.getLogger(__name__)

REMINDER_TEMPLATE_ID = "mandatory_content_reminder"
REMINDER_TITLE = "🛑 Conteúdo Obrigatório Pendente"
REMINDER_MESSAGE = (
    'Olá {{nome}}, você tem um conteúdo obrigatório pendente: "{{titulo}}". '
    "Complete-o para continuar usando o sistema."
)


class ReminderService:
    """Sends capped reminders for every unsigned (content, user) pair"""

    def count_reminders(self, db: Session, content_id, user_id) -> int:
        return db.query(func.count(MandatoryContentReminder.id)).filter(
            MandatoryContentReminder.content_id == content_id,
            MandatoryContentReminder.user_id == user_id
        ).scalar() or 0

    def _build_request(self, content: MandatoryContent, user: Profile, use_template: bool) -> NotificationDispatchRequest:
        return NotificationDispatchRequest(
            user_ids=[user.id],
            template_id=REMINDER_TEMPLATE_ID if use_template else None,
            title=None if use_template else REMINDER_TITLE,
            message=None if use_template else REMINDER_MESSAGE,
            type="mandatory_content",
            channel="whatsapp" if user.phone else "push",
            priority="high",
            module="mandatory_content",
            reference_id=str(content.id),
            variables={"nome": user.full_name, "titulo": content.title}
        )

    async def run(self, db: Session) -> ReminderRunResponse:
        """
        Send one reminder to every active user in each active content's audience
        who has not signed it and has not reached the reminder cap

        Returns:
            Number of reminders sent and per-reason skip counters
        """
        logger.info("Starting mandatory content reminder run")

        max_reminders = setting_service.get_int(
            db, MAX_REMINDERS_KEY, settings.MANDATORY_CONTENT_MAX_REMINDERS
        )
        use_template = db.query(NotificationTemplate.id).filter(
            NotificationTemplate.id == REMINDER_TEMPLATE_ID
        ).first() is not None

        contents = db.query(MandatoryContent).filter(
            MandatoryContent.active.is_(True)
        ).order_by(MandatoryContent.created_at).all()
        profiles = db.query(Profile).filter(Profile.is_active.is_(True)).all()

        sent = 0
        skipped: Dict[str, int] = {"already_signed": 0, "limit_reached": 0, "failed": 0}

        for content in contents:
            targets = [
                p for p in profiles
                if compliance_service.role_matches_audience(p.role, content.target_audience)
            ]
            logger.info(f"{len(targets)} target users for content '{content.title}'")

            for user in targets:
                if compliance_service.has_signature(db, content.id, user.id):
                    skipped["already_signed"] += 1
                    continue

                if self.count_reminders(db, content.id, user.id) >= max_reminders:
                    skipped["limit_reached"] += 1
                    continue

                request = self._build_request(content, user, use_template)
                try:
                    result = await notification_service.dispatch(db, request)
                    # WhatsApp left pending (no credentials) counts as not delivered
                    if request.channel == "whatsapp":
                        delivered = result.whatsapp_success > 0
                    else:
                        delivered = True
                except Exception as e:
                    db.rollback()
                    delivered = False
                    logger.error(f"Failed to send reminder to user {user.id}: {str(e)}")

                if not delivered:
                    skipped["failed"] += 1

                db.add(MandatoryContentReminder(
                    content_id=content.id,
                    user_id=user.id,
                    channel=request.channel,
                    message_template=REMINDER_TEMPLATE_ID,
                    delivered=delivered
                ))
                db.commit()

                if delivered:
                    sent += 1

        logger.info(f"Reminder run finished: {sent} sent, skipped={skipped}")
        return ReminderRunResponse(success=True, sent=sent, skipped=skipped)


# Global instance
reminder_service = ReminderService()
