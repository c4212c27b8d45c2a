"""
Pydantic schemas for the idea box
"""
from pydantic import BaseModel, Field
from typing import List, Optional, Literal
from uuid import UUID
from datetime import datetime


class IdeaCreate(BaseModel):
    """Schema for submitting an idea"""
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    category: str = Field(..., min_length=1, max_length=50)
    target_audience: Literal["colaboradores", "franqueados", "ambos"] = "ambos"
    media_urls: List[str] = []


class IdeaResponse(BaseModel):
    id: UUID
    title: str
    description: str
    category: str
    ai_category: Optional[str] = None
    target_audience: Optional[str] = None
    media_urls: Optional[List[str]] = None
    unit_code: Optional[str] = None
    status: str
    submitted_by: UUID
    created_at: Optional[datetime] = None
    approvals: int = 0
    rejections: int = 0

    class Config:
        from_attributes = True


class IdeaVoteRequest(BaseModel):
    vote: bool = Field(..., description="True approves, False rejects")
    comment: Optional[str] = Field(None, max_length=1000)


class IdeaVoteResponse(BaseModel):
    idea_id: UUID
    vote: bool
    comment: Optional[str] = None
    approvals: int
    rejections: int
