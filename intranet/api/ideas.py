"""
Idea box API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Dict, List, Optional, Tuple
from uuid import UUID
import logging

from intranet.database import get_db
from intranet.dependencies import get_current_user
from intranet.models import Idea, IdeaVote, Profile
from intranet.schemas.idea import IdeaCreate, IdeaResponse, IdeaVoteRequest, IdeaVoteResponse
from intranet.services.gemini_service import gemini_service
from intranet.utils.rate_limiter import ai_rate_limiter

router = APIRouter(prefix="/api/ideas", tags=["ideas"])
logger = logging.getLogger(__name__)


def _vote_counts(db: Session, idea_ids: List[UUID]) -> Dict[UUID, Tuple[int, int]]:
    """(approvals, rejections) per idea"""
    counts: Dict[UUID, Tuple[int, int]] = {}
    if not idea_ids:
        return counts

    rows = db.query(IdeaVote.idea_id, IdeaVote.vote, func.count(IdeaVote.id)).filter(
        IdeaVote.idea_id.in_(idea_ids)
    ).group_by(IdeaVote.idea_id, IdeaVote.vote).all()

    for idea_id, vote, count in rows:
        approvals, rejections = counts.get(idea_id, (0, 0))
        if vote:
            approvals = count
        else:
            rejections = count
        counts[idea_id] = (approvals, rejections)

    return counts


def _to_response(idea: Idea, counts: Tuple[int, int]) -> IdeaResponse:
    response = IdeaResponse.model_validate(idea)
    response.approvals, response.rejections = counts
    return response


@router.get("/", response_model=List[IdeaResponse])
async def list_ideas(
    status: Optional[str] = None,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = db.query(Idea)
    if status:
        query = query.filter(Idea.status == status)

    ideas = query.order_by(Idea.created_at.desc()).all()
    counts = _vote_counts(db, [i.id for i in ideas])
    return [_to_response(idea, counts.get(idea.id, (0, 0))) for idea in ideas]


@router.post(
    "/",
    response_model=IdeaResponse,
    status_code=201,
    dependencies=[Depends(ai_rate_limiter.for_scope("ideas"))]
)
async def submit_idea(
    payload: IdeaCreate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Submit an idea

    - Classified by Gemini into one of the idea categories
    - Classification is best-effort: failure leaves ai_category empty
    """
    idea = Idea(
        title=payload.title,
        description=payload.description,
        category=payload.category,
        target_audience=payload.target_audience,
        media_urls=payload.media_urls,
        unit_code=user.unit_code,
        status="pending",
        submitted_by=user.id
    )
    idea.ai_category = gemini_service.classify_idea(payload.title, payload.description, payload.category)

    db.add(idea)
    db.commit()
    db.refresh(idea)

    logger.info(f"Idea submitted: {idea.id} (ai_category={idea.ai_category})")
    return _to_response(idea, (0, 0))


@router.post("/{idea_id}/vote", response_model=IdeaVoteResponse)
async def vote_idea(
    idea_id: UUID,
    payload: IdeaVoteRequest,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Approve or reject; voting again replaces the previous vote"""
    idea = db.query(Idea).filter(Idea.id == idea_id).first()
    if not idea:
        raise HTTPException(status_code=404, detail="Idea not found")

    vote = db.query(IdeaVote).filter(
        IdeaVote.idea_id == idea_id,
        IdeaVote.user_id == user.id
    ).first()

    if not vote:
        vote = IdeaVote(idea_id=idea_id, user_id=user.id)
        db.add(vote)

    vote.vote = payload.vote
    vote.comment = payload.comment
    db.commit()

    approvals, rejections = _vote_counts(db, [idea_id]).get(idea_id, (0, 0))
    return IdeaVoteResponse(
        idea_id=idea_id,
        vote=payload.vote,
        comment=payload.comment,
        approvals=approvals,
        rejections=rejections
    )
