"""
Pydantic schemas for notifications and dispatch requests
"""
from pydantic import BaseModel, Field, model_validator
from typing import List, Dict, Any, Optional, Literal
from uuid import UUID
from datetime import datetime


class NotificationResponse(BaseModel):
    id: UUID
    title: str
    message: str
    type: str
    channel: str
    priority: Optional[str] = None
    module: Optional[str] = None
    reference_id: Optional[str] = None
    status: str
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    unread_count: int


class MarkReadResponse(BaseModel):
    updated: int


class NotificationDispatchRequest(BaseModel):
    """Targets are explicit user ids, or every active profile matching roles/units"""
    user_ids: Optional[List[UUID]] = None
    roles: Optional[List[str]] = None
    units: Optional[List[str]] = None
    template_id: Optional[str] = None
    title: Optional[str] = None
    message: Optional[str] = None
    type: str = Field(..., min_length=1)
    channel: Literal["push", "whatsapp", "email"] = "push"
    priority: Literal["low", "normal", "high"] = "normal"
    module: Optional[str] = None
    reference_id: Optional[str] = None
    variables: Dict[str, str] = {}

    @model_validator(mode="after")
    def _has_content(self):
        if not self.template_id and not (self.title and self.message):
            raise ValueError("Either template_id or title and message are required")
        return self


class DeliveryResult(BaseModel):
    user_id: UUID
    success: bool
    result: Optional[Any] = None
    error: Optional[str] = None


class DispatchResult(BaseModel):
    success: bool = True
    total_users: int
    notifications_created: int
    whatsapp_sent: int = 0
    whatsapp_success: int = 0
    whatsapp_results: List[DeliveryResult] = []
