"""
Notification dispatch service

Creates one notification row per recipient and, for the WhatsApp channel,
delivers the rendered message through Z-API in batches.
"""
import asyncio
import logging
import re
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from uuid import UUID

import httpx
from sqlalchemy.orm import Session

from intranet.config import settings
from intranet.models import Notification, NotificationTemplate, Profile
from intranet.schemas.notification import (
    DeliveryResult,
    DispatchResult,
    NotificationDispatchRequest,
)
from intranet.services.setting_service import setting_service, MAX_BATCH_KEY

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")


class TemplateNotFoundError(Exception):
    """Dispatch referenced a template id that does not exist"""


class NotificationService:
    """Service for creating and delivering user notifications"""

    @staticmethod
    def render(template: str, variables: Dict[str, str]) -> str:
        """Replace {{name}} placeholders; unknown placeholders are left as-is"""
        return PLACEHOLDER_PATTERN.sub(
            lambda match: str(variables.get(match.group(1), match.group(0))),
            template
        )

    @staticmethod
    def normalize_phone(phone: str) -> str:
        """Digits only, Brazilian country code prefixed when missing"""
        digits = re.sub(r"\D", "", phone or "")
        if digits and not digits.startswith("55"):
            digits = f"55{digits}"
        return digits

    def resolve_targets(self, db: Session, request: NotificationDispatchRequest) -> List[Profile]:
        """Explicit user ids win; otherwise every active profile matching roles and units"""
        query = db.query(Profile).filter(Profile.is_active.is_(True))

        if request.user_ids:
            return query.filter(Profile.id.in_(request.user_ids)).all()

        if request.roles:
            query = query.filter(Profile.role.in_(request.roles))
        if request.units:
            query = query.filter(Profile.unit_code.in_(request.units))

        return query.all()

    def resolve_content(self, db: Session, request: NotificationDispatchRequest) -> Tuple[str, str]:
        """Title and message body before per-user placeholders are filled"""
        if request.template_id:
            template = db.query(NotificationTemplate).filter(
                NotificationTemplate.id == request.template_id
            ).first()
            if template is None:
                raise TemplateNotFoundError(request.template_id)
            title, message = template.title, template.message_template
        else:
            title, message = request.title, request.message

        return self.render(title, request.variables), self.render(message, request.variables)

    @staticmethod
    def _zapi_configured() -> bool:
        return bool(settings.ZAPI_INSTANCE_ID and settings.ZAPI_TOKEN)

    async def send_whatsapp(self, client: httpx.AsyncClient, phone: str, message: str) -> Dict:
        """
        Send one text message through Z-API

        Raises:
            httpx.HTTPError: on transport failure or non-2xx answer
        """
        url = (
            f"{settings.ZAPI_BASE_URL}/instances/{settings.ZAPI_INSTANCE_ID}"
            f"/token/{settings.ZAPI_TOKEN}/send-text"
        )
        response = await client.post(
            url,
            json={"phone": self.normalize_phone(phone), "message": message},
            headers={"Client-Token": settings.ZAPI_CLIENT_TOKEN}
        )
        response.raise_for_status()

        try:
            return response.json()
        except ValueError:
            return {"raw": response.text}

    async def _deliver_whatsapp(
        self,
        db: Session,
        rows: List[Tuple[Profile, Notification]],
        max_batch: int
    ) -> List[DeliveryResult]:
        results: List[DeliveryResult] = []
        deliverable = [(user, row) for user, row in rows if user.phone]

        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            for start in range(0, len(deliverable), max_batch):
                batch = deliverable[start:start + max_batch]
                logger.info(f"Sending WhatsApp batch of {len(batch)} messages")

                for user, row in batch:
                    try:
                        body = await self.send_whatsapp(client, user.phone, f"*{row.title}*\n\n{row.message}")
                        row.status = "sent"
                        row.sent_at = datetime.utcnow()
                        row.delivery_report = {"provider": "z-api", "response": body}
                        results.append(DeliveryResult(user_id=user.id, success=True, result=body))
                    except (httpx.HTTPError, ValueError) as e:
                        logger.error(f"WhatsApp delivery failed for user {user.id}: {str(e)}")
                        row.status = "failed"
                        row.delivery_report = {"provider": "z-api", "error": str(e)}
                        results.append(DeliveryResult(user_id=user.id, success=False, error=str(e)))

                    if settings.WHATSAPP_SEND_INTERVAL_SECONDS > 0:
                        await asyncio.sleep(settings.WHATSAPP_SEND_INTERVAL_SECONDS)

        return results

    async def dispatch(self, db: Session, request: NotificationDispatchRequest) -> DispatchResult:
        """
        Create notifications for every target and deliver them

        Args:
            db: Database session
            request: Targets, content (inline or template) and channel

        Returns:
            Counts of rows created and WhatsApp messages attempted/succeeded

        Raises:
            TemplateNotFoundError: if template_id is unknown
        """
        targets = self.resolve_targets(db, request)
        title, message = self.resolve_content(db, request)

        if not targets:
            logger.info("Notification dispatch matched no users")
            return DispatchResult(total_users=0, notifications_created=0)

        rows: List[Tuple[Profile, Notification]] = []
        for user in targets:
            personal = {"nome": user.full_name, "unidade": user.unit_code or ""}
            row = Notification(
                user_id=user.id,
                title=self.render(title, personal),
                message=self.render(message, personal),
                type=request.type,
                channel=request.channel,
                priority=request.priority,
                module=request.module,
                reference_id=request.reference_id,
                unit_code=user.unit_code,
                status="pending"
            )
            db.add(row)
            rows.append((user, row))

        db.commit()
        logger.info(f"Created {len(rows)} {request.channel} notifications of type {request.type}")

        results: List[DeliveryResult] = []
        if request.channel == "whatsapp":
            if not self._zapi_configured():
                logger.warning("Z-API credentials not configured, WhatsApp notifications left pending")
            else:
                max_batch = setting_service.get_int(db, MAX_BATCH_KEY, settings.NOTIFICATION_MAX_BATCH)
                results = await self._deliver_whatsapp(db, rows, max(max_batch, 1))
        else:
            now = datetime.utcnow()
            for _, row in rows:
                row.status = "sent"
                row.sent_at = now

        db.commit()

        return DispatchResult(
            total_users=len(targets),
            notifications_created=len(rows),
            whatsapp_sent=len(results),
            whatsapp_success=sum(1 for r in results if r.success),
            whatsapp_results=results
        )

    def list_for_user(
        self,
        db: Session,
        user_id: UUID,
        unread_only: bool = False,
        limit: int = 50
    ) -> Tuple[List[Notification], int]:
        """Newest first, plus the total unread count"""
        query = db.query(Notification).filter(Notification.user_id == user_id)
        unread_count = query.filter(Notification.is_read.is_(False)).count()

        if unread_only:
            query = query.filter(Notification.is_read.is_(False))

        notifications = query.order_by(Notification.created_at.desc()).limit(limit).all()
        return notifications, unread_count

    def mark_read(self, db: Session, user_id: UUID, notification_ids: Optional[List[UUID]] = None) -> int:
        """Mark the given (or all) unread notifications of the user as read"""
        query = db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read.is_(False)
        )
        if notification_ids:
            query = query.filter(Notification.id.in_(notification_ids))

        now = datetime.utcnow()
        updated = 0
        for row in query.all():
            row.is_read = True
            row.read_at = now
            updated += 1

        db.commit()
        return updated


# Global instance
notification_service = NotificationService()
