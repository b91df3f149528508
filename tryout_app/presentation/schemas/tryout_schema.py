from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from .question_schema import QuestionOut

PricingModel = Literal["free", "freemium", "premium"]

MAX_PRICE = 10_000_000

# ------------------ Tryout Inputs ------------------


class TryoutCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    school_id: Optional[str] = None
    is_global: bool = False
    pricing_model: PricingModel = "free"
    tryout_price: int = Field(default=0, ge=0, le=MAX_PRICE)
    explanation_price: int = Field(default=0, ge=0, le=MAX_PRICE)
    has_explanation: bool = False
    duration_minutes: Optional[int] = Field(default=None, ge=1, le=480)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @field_validator("end_time")
    @classmethod
    def check_schedule(cls, value: Optional[datetime], info: ValidationInfo):
        start_time = info.data.get("start_time")
        # mixed naive/aware pairs are compared by the service after normalising
        if value and start_time and (value.tzinfo is None) == (start_time.tzinfo is None) and value < start_time:
            raise ValueError("end_time must not be before start_time")
        return value


class TryoutUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    school_id: Optional[str] = None
    is_global: Optional[bool] = None
    pricing_model: Optional[PricingModel] = None
    tryout_price: Optional[int] = Field(default=None, ge=0, le=MAX_PRICE)
    explanation_price: Optional[int] = Field(default=None, ge=0, le=MAX_PRICE)
    has_explanation: Optional[bool] = None
    duration_minutes: Optional[int] = Field(default=None, ge=1, le=480)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class TryoutFilters(BaseModel):
    search: Optional[str] = None
    pricing_model: Optional[Literal["free", "freemium", "premium", "all"]] = None
    is_global: Optional[bool] = None
    school_id: Optional[str] = None  # admin only
    creator_id: Optional[str] = None  # admin only
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


class TryoutSort(BaseModel):
    field: Literal["created_at", "title", "start_time"] = "created_at"
    direction: Literal["asc", "desc"] = "desc"


# ------------------ Tryout Outputs ------------------


class CreatorOut(BaseModel):
    id: str
    name: str
    email: str
    role: str

    class Config:
        from_attributes = True


class SchoolOut(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class TryoutOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    creator_id: str
    school_id: Optional[str] = None
    is_global: bool
    pricing_model: PricingModel
    tryout_price: int
    explanation_price: int
    has_explanation: bool
    duration_minutes: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TryoutWithCreatorOut(TryoutOut):
    creator: Optional[CreatorOut] = None
    school: Optional[SchoolOut] = None
    total_questions: int = 0


class TryoutWithQuestionsOut(TryoutOut):
    creator: Optional[CreatorOut] = None
    questions: List[QuestionOut] = []
