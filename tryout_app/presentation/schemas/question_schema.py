# question_schema.py
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, computed_field

from .question_data_schema import DEFAULT_QUESTION_SCORE, QuestionType


class QuestionCreateRequest(BaseModel):
    # appended after the current last question when omitted
    question_number: Optional[int] = Field(default=None, ge=1)
    question_type: QuestionType
    question_data: Dict[str, Any]
    score: int = Field(default=DEFAULT_QUESTION_SCORE, ge=1)


class QuestionCreate(QuestionCreateRequest):
    tryout_id: str


class QuestionUpdate(BaseModel):
    question_number: Optional[int] = Field(default=None, ge=1)
    question_type: Optional[QuestionType] = None
    question_data: Optional[Dict[str, Any]] = None
    score: Optional[int] = Field(default=None, ge=1)


class QuestionOrderItem(BaseModel):
    id: str
    question_number: int = Field(ge=1)


class QuestionOut(BaseModel):
    id: str
    tryout_id: str
    question_number: int
    question_type: QuestionType
    question_data: Dict[str, Any]
    score: int
    created_at: Optional[datetime] = None

    @computed_field
    @property
    def requires_manual_grading(self) -> bool:
        return self.question_type == QuestionType.ESSAY

    class Config:
        from_attributes = True
