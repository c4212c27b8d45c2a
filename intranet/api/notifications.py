"""
Notification inbox API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from uuid import UUID

from intranet.database import get_db
from intranet.dependencies import get_current_user
from intranet.models import Notification, Profile
from intranet.schemas.notification import MarkReadResponse, NotificationListResponse
from intranet.services.notification_service import notification_service

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("/", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    notifications, unread_count = notification_service.list_for_user(db, user.id, unread_only, limit)
    return NotificationListResponse(notifications=notifications, unread_count=unread_count)


@router.post("/{notification_id}/read", response_model=MarkReadResponse)
async def mark_read(
    notification_id: UUID,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    exists = db.query(Notification.id).filter(
        Notification.id == notification_id,
        Notification.user_id == user.id
    ).first()
    if not exists:
        raise HTTPException(status_code=404, detail="Notification not found")

    return MarkReadResponse(updated=notification_service.mark_read(db, user.id, [notification_id]))


@router.post("/read-all", response_model=MarkReadResponse)
async def mark_all_read(
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return MarkReadResponse(updated=notification_service.mark_read(db, user.id))
