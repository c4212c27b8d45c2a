"""
Pydantic schemas for trainings, progress, certificates and training paths
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from uuid import UUID
from datetime import datetime

from intranet.schemas.mandatory_content import QuestionResult, QuizQuestion


class TrainingModule(BaseModel):
    id: str
    title: str
    type: Optional[str] = None
    content_url: Optional[str] = None
    quiz: Optional[List[QuizQuestion]] = None
    min_score: int = Field(70, ge=0, le=100)


class TrainingCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, ge=0)
    modules: List[TrainingModule] = []
    certificate_enabled: bool = False
    is_published: bool = False


class TrainingView(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    duration_minutes: Optional[int] = None
    modules: List[TrainingModule] = []
    certificate_enabled: bool
    progress_percentage: int = 0
    completed: bool = False


class ModuleCompletionResponse(BaseModel):
    training_id: UUID
    modules_completed: List[str]
    progress_percentage: int
    completed: bool
    certificate_code: Optional[str] = None


class TrainingQuizSubmission(BaseModel):
    answers: Dict[int, str]


class TrainingQuizResult(BaseModel):
    module_id: str
    score: int
    min_score: int
    passed: bool
    results: List[QuestionResult]


class TrainingPathCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    training_ids: List[UUID] = Field(..., min_length=1)
    sequential: bool = True


class TrainingPathItemView(BaseModel):
    id: UUID
    training_id: UUID
    title: str
    order_index: int
    unlock_after: Optional[UUID] = None
    unlocked: bool
    completed: bool


class TrainingPathView(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    items: List[TrainingPathItemView]
    progress_percentage: int


class CertificateResponse(BaseModel):
    certificate_code: str
    training_id: UUID
    user_id: UUID
    issued_at: Optional[datetime] = None

    class Config:
        from_attributes = True
