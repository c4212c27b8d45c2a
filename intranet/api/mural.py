"""
Mural API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from intranet.database import get_db
from intranet.dependencies import get_current_user
from intranet.models import MuralPost, Profile
from intranet.schemas.mural import MuralPostCreate, MuralPostResponse

router = APIRouter(prefix="/api/mural", tags=["mural"])
logger = logging.getLogger(__name__)


def _public_view(post: MuralPost) -> MuralPostResponse:
    view = MuralPostResponse.model_validate(post)
    if post.is_anonymous:
        view.author_id = None
    return view


@router.get("/", response_model=List[MuralPostResponse])
async def list_posts(
    category_id: Optional[str] = None,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Approved posts, newest first"""
    query = db.query(MuralPost).filter(MuralPost.status == "approved")
    if category_id:
        query = query.filter(MuralPost.category_id == category_id)

    return [_public_view(p) for p in query.order_by(MuralPost.created_at.desc()).all()]


@router.post("/", response_model=MuralPostResponse, status_code=201)
async def create_post(
    payload: MuralPostCreate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """New posts wait in the moderation queue"""
    post = MuralPost(**payload.model_dump(), author_id=user.id, status="pending")
    db.add(post)
    db.commit()
    db.refresh(post)

    logger.info(f"Mural post submitted for moderation: {post.id}")
    return _public_view(post)
