"""
Pydantic schemas for the moderated mural
"""
from pydantic import BaseModel, Field, model_validator
from typing import Optional, Literal
from uuid import UUID
from datetime import datetime


class MuralPostCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    category_id: Optional[str] = None
    image_url: Optional[str] = None
    is_anonymous: bool = False


class MuralPostResponse(BaseModel):
    id: UUID
    author_id: Optional[UUID] = None
    category_id: Optional[str] = None
    content: str
    image_url: Optional[str] = None
    is_anonymous: bool
    status: str
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ModerationDecision(BaseModel):
    decision: Literal["approved", "rejected"]
    rejection_reason: Optional[str] = None

    @model_validator(mode="after")
    def _rejection_needs_reason(self):
        if self.decision == "rejected" and not self.rejection_reason:
            raise ValueError("rejection_reason is required when rejecting a post")
        return self
