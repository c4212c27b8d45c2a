"""
Pydantic schemas for surveys, responses and aggregated results
"""
from pydantic import BaseModel, Field, model_validator
from typing import Dict, List, Optional, Literal
from uuid import UUID
from datetime import datetime


class SurveyQuestion(BaseModel):
    question: str = Field(..., min_length=1)
    type: Literal["multiple_choice", "scale", "text"] = "multiple_choice"
    options: List[str] = []

    @model_validator(mode="after")
    def _choices_need_options(self):
        if self.type == "multiple_choice" and len(self.options) < 2:
            raise ValueError("multiple_choice questions need at least 2 options")
        return self


class SurveyCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    questions: List[SurveyQuestion] = Field(..., min_length=1)
    target_audience: str = "ambos"
    audience_units: List[str] = []
    anonymous: bool = False


class SurveyResponseModel(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    questions: List[SurveyQuestion]
    target_audience: Optional[str] = None
    anonymous: bool
    created_at: Optional[datetime] = None
    answered: bool = False

    class Config:
        from_attributes = True


class SurveyAnswerSubmission(BaseModel):
    """Answers keyed by question index"""
    answers: Dict[int, str]


class SurveySubmissionResult(BaseModel):
    response_id: UUID
    survey_id: UUID
    anonymous: bool


class OptionCount(BaseModel):
    option: str
    count: int
    percentage: float


class QuestionResults(BaseModel):
    index: int
    question: str
    type: str
    total_answers: int
    options: List[OptionCount] = []
    text_answers: List[str] = []


class SurveyResults(BaseModel):
    survey_id: UUID
    title: str
    total_responses: int
    questions: List[QuestionResults]
