"""
Pydantic schemas for mandatory contents, the confirmation workflow and compliance
"""
from pydantic import BaseModel, Field, model_validator
from typing import List, Dict, Optional, Any, Literal
from uuid import UUID
from datetime import datetime


class QuizQuestion(BaseModel):
    """Comprehension question attached to a text content"""
    question: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=2)
    correct_answer: str
    explanation: str = ""

    @model_validator(mode="after")
    def _correct_answer_is_an_option(self):
        if self.correct_answer not in self.options:
            raise ValueError("correct_answer must be one of the options")
        return self


class QuizDefinition(BaseModel):
    """Stored shape of mandatory_contents.quiz_questions"""
    questions: List[QuizQuestion]


class MandatoryContentBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    type: Literal["video", "text"]
    content_url: Optional[str] = None
    content_text: Optional[str] = None
    quiz_questions: Optional[QuizDefinition] = None
    target_audience: Literal["colaboradores", "franqueados", "ambos"] = "ambos"
    active: bool = True


class MandatoryContentCreate(MandatoryContentBase):
    """Admin payload for a new content item"""

    @model_validator(mode="after")
    def _body_matches_type(self):
        if self.type == "video" and not self.content_url:
            raise ValueError("content_url is required for video contents")
        if self.type == "text" and not self.content_text:
            raise ValueError("content_text is required for text contents")
        return self


class MandatoryContentUpdate(BaseModel):
    """Partial admin update"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[Literal["video", "text"]] = None
    content_url: Optional[str] = None
    content_text: Optional[str] = None
    quiz_questions: Optional[QuizDefinition] = None
    target_audience: Optional[Literal["colaboradores", "franqueados", "ambos"]] = None
    active: Optional[bool] = None


class MandatoryContentResponse(BaseModel):
    """Full admin view, correct answers included"""
    id: UUID
    title: str
    type: str
    content_url: Optional[str] = None
    content_text: Optional[str] = None
    quiz_questions: Optional[QuizDefinition] = None
    target_audience: str
    active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QuizGenerateRequest(BaseModel):
    """Request schema for AI quiz generation"""
    content_text: str = Field(..., min_length=1)
    num_questions: int = Field(3, ge=1, le=10)


# ---------------------------------------------------------------------------
# End-user workflow
# ---------------------------------------------------------------------------

class PublicQuizQuestion(BaseModel):
    """Question as shown to the user, without the answer key"""
    index: int
    question: str
    options: List[str]


class PendingContentView(BaseModel):
    id: UUID
    title: str
    type: str
    content_url: Optional[str] = None
    content_text: Optional[str] = None
    has_quiz: bool
    quiz: Optional[List[PublicQuizQuestion]] = None  # only once the reading gate is open


class QuestionResult(BaseModel):
    """Grading outcome of one question"""
    index: int
    selected: Optional[str] = None
    correct: bool
    explanation: str = ""


class QuizGradingResponse(BaseModel):
    results: List[QuestionResult]
    correct_count: int
    total_questions: int
    score: int
    all_correct: bool


class WorkflowView(BaseModel):
    """Snapshot of the confirmation state machine"""
    state: str
    content_id: UUID
    content_type: str
    video_ended: bool
    scrolled_to_end: bool
    quiz_results: Optional[QuizGradingResponse] = None
    can_confirm: bool


class PendingStatusResponse(BaseModel):
    """Answer of the gate status endpoint"""
    has_pending: bool
    block_access: bool
    content: Optional[PendingContentView] = None
    workflow: Optional[WorkflowView] = None
    redirect_to: Optional[str] = None


class PlaybackEvent(BaseModel):
    """Media element event reported by the player"""
    event: Literal["play", "pause", "timeupdate", "seeked", "ended"]
    position: Optional[float] = Field(None, ge=0)
    duration: Optional[float] = Field(None, ge=0)


class ScrollEvent(BaseModel):
    """Scroll metrics of the text viewport"""
    scroll_top: float = Field(..., ge=0)
    scroll_height: float = Field(..., ge=0)
    client_height: float = Field(..., ge=0)


class QuizSubmission(BaseModel):
    """Selected option per question index"""
    answers: Dict[int, str]


class ConfirmationResponse(BaseModel):
    signature_id: UUID
    content_id: UUID
    score: int
    confirmation_text: str
    ip_address: str
    message: str
    redirect_to: str
    redirect_after_seconds: int


# ---------------------------------------------------------------------------
# Compliance dashboard
# ---------------------------------------------------------------------------

class UserCompliance(BaseModel):
    user_id: UUID
    full_name: str
    email: Optional[str] = None
    role: str
    unit_code: Optional[str] = None
    completed: int
    pending: int
    total: int
    status: Literal["pending", "completed", "not_started"]


class ComplianceDashboard(BaseModel):
    total_users: int
    completed: int
    pending: int
    completion_rate: int
    contents: List[MandatoryContentResponse]
    users: List[UserCompliance]


class ReminderRunResponse(BaseModel):
    success: bool
    sent: int
    skipped: Dict[str, Any] = {}


class ComplianceStatus(BaseModel):
    """Gate decision for one user, cached between triggers"""
    user_id: UUID
    pending_content_id: Optional[UUID] = None
    block_access: bool = True
    degraded: bool = False  # read failed and the gate failed open

    @property
    def has_pending(self) -> bool:
        return self.pending_content_id is not None

    @property
    def blocks(self) -> bool:
        return self.block_access and self.has_pending
