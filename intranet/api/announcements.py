"""
Announcement feed API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
import logging

from intranet.database import get_db
from intranet.dependencies import get_current_user, require_admin
from intranet.models import Announcement, AnnouncementLike, AnnouncementView, Profile
from intranet.schemas.announcement import (
    AnnouncementCreate,
    AnnouncementResponse,
    LikeToggleResponse,
    ViewResponse,
)
from intranet.services.compliance_service import compliance_service

router = APIRouter(prefix="/api/announcements", tags=["announcements"])
logger = logging.getLogger(__name__)


def _count(db: Session, model, announcement_id: UUID) -> int:
    return db.query(func.count(model.id)).filter(model.announcement_id == announcement_id).scalar() or 0


def _get_published_or_404(db: Session, announcement_id: UUID) -> Announcement:
    announcement = db.query(Announcement).filter(
        Announcement.id == announcement_id,
        Announcement.is_published.is_(True)
    ).first()
    if not announcement:
        raise HTTPException(status_code=404, detail="Announcement not found")
    return announcement


@router.get("/", response_model=List[AnnouncementResponse])
async def list_announcements(
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Published announcements for the user's audience, newest first"""
    audience = compliance_service.audience_for_role(user.role)
    announcements = db.query(Announcement).filter(
        Announcement.is_published.is_(True),
        or_(Announcement.target_audience == "ambos", Announcement.target_audience == audience)
    ).order_by(Announcement.created_at.desc()).all()

    ids = [a.id for a in announcements]
    if not ids:
        return []

    likes = dict(
        db.query(AnnouncementLike.announcement_id, func.count(AnnouncementLike.id))
        .filter(AnnouncementLike.announcement_id.in_(ids))
        .group_by(AnnouncementLike.announcement_id).all()
    )
    views = dict(
        db.query(AnnouncementView.announcement_id, func.count(AnnouncementView.id))
        .filter(AnnouncementView.announcement_id.in_(ids))
        .group_by(AnnouncementView.announcement_id).all()
    )
    liked_by_me = set(
        row.announcement_id for row in db.query(AnnouncementLike.announcement_id).filter(
            AnnouncementLike.announcement_id.in_(ids),
            AnnouncementLike.user_id == user.id
        ).all()
    )

    return [
        AnnouncementResponse(
            id=a.id,
            title=a.title,
            content=a.content,
            priority=a.priority,
            target_audience=a.target_audience,
            media_url=a.media_url,
            is_published=a.is_published,
            created_at=a.created_at,
            likes_count=likes.get(a.id, 0),
            views_count=views.get(a.id, 0),
            liked_by_me=a.id in liked_by_me
        )
        for a in announcements
    ]


@router.post("/", response_model=AnnouncementResponse, status_code=201)
async def create_announcement(
    payload: AnnouncementCreate,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    announcement = Announcement(**payload.model_dump(), author_id=admin.id)
    db.add(announcement)
    db.commit()
    db.refresh(announcement)

    logger.info(f"Announcement created: {announcement.id}")
    return announcement


@router.post("/{announcement_id}/like", response_model=LikeToggleResponse)
async def toggle_like(
    announcement_id: UUID,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Like, or remove an existing like"""
    _get_published_or_404(db, announcement_id)

    existing = db.query(AnnouncementLike).filter(
        AnnouncementLike.announcement_id == announcement_id,
        AnnouncementLike.user_id == user.id
    ).first()

    if existing:
        db.delete(existing)
        liked = False
    else:
        db.add(AnnouncementLike(announcement_id=announcement_id, user_id=user.id))
        liked = True

    db.commit()
    return LikeToggleResponse(liked=liked, likes_count=_count(db, AnnouncementLike, announcement_id))


@router.post("/{announcement_id}/view", response_model=ViewResponse)
async def mark_viewed(
    announcement_id: UUID,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Record a view once per user"""
    _get_published_or_404(db, announcement_id)

    existing = db.query(AnnouncementView.id).filter(
        AnnouncementView.announcement_id == announcement_id,
        AnnouncementView.user_id == user.id
    ).first()

    if not existing:
        db.add(AnnouncementView(announcement_id=announcement_id, user_id=user.id))
        db.commit()

    return ViewResponse(views_count=_count(db, AnnouncementView, announcement_id))
