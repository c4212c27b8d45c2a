"""
Pydantic schemas for announcements
"""
from pydantic import BaseModel, Field
from typing import Optional, Literal
from uuid import UUID
from datetime import datetime


class AnnouncementCreate(BaseModel):
    """Schema for publishing an announcement"""
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    priority: Literal["normal", "alta", "urgente"] = "normal"
    target_audience: Literal["colaboradores", "franqueados", "ambos"] = "ambos"
    media_url: Optional[str] = None
    is_published: bool = True


class AnnouncementResponse(BaseModel):
    id: UUID
    title: str
    content: str
    priority: Optional[str] = None
    target_audience: Optional[str] = None
    media_url: Optional[str] = None
    is_published: bool
    created_at: Optional[datetime] = None
    likes_count: int = 0
    views_count: int = 0
    liked_by_me: bool = False

    class Config:
        from_attributes = True


class LikeToggleResponse(BaseModel):
    liked: bool
    likes_count: int


class ViewResponse(BaseModel):
    viewed: bool = True
    views_count: int
