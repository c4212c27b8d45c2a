"""
Pydantic schemas for operational checklists
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Literal
from uuid import UUID
from datetime import datetime


class ChecklistQuestion(BaseModel):
    id: str
    text: str
    type: Literal["boolean", "photo", "text"] = "boolean"


class ChecklistCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: Literal["abertura", "fechamento", "vitrine", "limpeza"]
    questions: List[ChecklistQuestion] = Field(..., min_length=1)


class ChecklistView(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    type: str
    questions: List[ChecklistQuestion]

    class Config:
        from_attributes = True


class ChecklistSubmission(BaseModel):
    """Answers keyed by question id; photo questions may be omitted"""
    responses: Dict[str, Any]


class ChecklistSubmissionResult(BaseModel):
    id: UUID
    checklist_id: UUID
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
