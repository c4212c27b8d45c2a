"""
Gamified campaign API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
import logging

from intranet.database import get_db
from intranet.dependencies import get_current_user, require_admin
from intranet.models import Campaign, CampaignResult, Profile
from intranet.schemas.campaign import (
    CampaignCreate,
    CampaignProgress,
    CampaignResultCreate,
    CampaignResultResponse,
    LeaderboardEntry,
)
from intranet.services.analytics_service import analytics_service

router = APIRouter(prefix="/api/campaigns", tags=["campaigns"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[CampaignProgress])
async def list_campaigns(
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Active campaigns with progress towards their goal"""
    campaigns = db.query(Campaign).filter(
        Campaign.is_active.is_(True)
    ).order_by(Campaign.created_at.desc()).all()

    return [analytics_service.get_campaign_progress(db, c) for c in campaigns]


@router.post("/", response_model=CampaignProgress, status_code=201)
async def create_campaign(
    payload: CampaignCreate,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db)
):
    if payload.start_date and payload.end_date and payload.end_date < payload.start_date:
        raise HTTPException(status_code=400, detail="end_date must not precede start_date")

    campaign = Campaign(**payload.model_dump())
    db.add(campaign)
    db.commit()
    db.refresh(campaign)

    logger.info(f"Campaign created: {campaign.id}")
    return analytics_service.get_campaign_progress(db, campaign)


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
async def get_leaderboard(
    limit: int = Query(20, ge=1, le=100),
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return analytics_service.get_leaderboard(db, limit)


@router.post("/{campaign_id}/results", response_model=CampaignResultResponse, status_code=201)
async def record_result(
    campaign_id: UUID,
    payload: CampaignResultCreate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    campaign = db.query(Campaign).filter(
        Campaign.id == campaign_id,
        Campaign.is_active.is_(True)
    ).first()
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")

    result = CampaignResult(
        campaign_id=campaign_id,
        user_id=user.id,
        unit_code=user.unit_code,
        value=payload.value
    )
    db.add(result)
    db.commit()
    db.refresh(result)

    logger.info(f"Campaign result recorded: campaign={campaign_id}, user={user.id}, value={payload.value}")
    return result
