"""
Pydantic schemas for campaigns and the leaderboard
"""
from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID
from datetime import date
from decimal import Decimal


class CampaignCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[str] = None
    goal_value: Decimal = Field(..., gt=0)
    goal_unit: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class CampaignProgress(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    goal_value: float
    goal_unit: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    current_value: float
    progress: float = Field(..., description="Percentage of the goal reached, capped at 100")


class CampaignResultCreate(BaseModel):
    value: Decimal = Field(..., gt=0)


class CampaignResultResponse(BaseModel):
    id: UUID
    campaign_id: UUID
    user_id: Optional[UUID] = None
    unit_code: Optional[str] = None
    value: float

    class Config:
        from_attributes = True


class LeaderboardEntry(BaseModel):
    position: int
    user_id: UUID
    full_name: str
    unit_code: Optional[str] = None
    total_value: float
    achievement: float
