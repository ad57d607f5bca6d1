from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Optional

class ReviewCreate(BaseModel):
    # Values are checked against the rubric by the review service so that
    # each offending question can be reported by name.
    answers: Optional[Dict[str, Any]] = None
    rating: Optional[Any] = None  # legacy 1–5
    comment: Optional[str] = Field(None, max_length=5000)
    note: Optional[str] = Field(None, max_length=5000)
    project_name: Optional[str] = Field(None, max_length=200)
    project_date: Optional[str] = Field(None, max_length=40)

class ReviewResponse(BaseModel):
    id: int
    user_id: int
    user_name: Optional[str]
    rating: Optional[int]
    comment: Optional[str]
    answers: Optional[Dict[str, int]]
    overall_rating: Optional[float]
    note: Optional[str]
    project_name: Optional[str]
    project_date: Optional[str]
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}

class RubricQuestionResponse(BaseModel):
    id: str
    label: str
    weight: float

class RubricResponse(BaseModel):
    version: str
    min_answer: int
    max_answer: int
    questions: List[RubricQuestionResponse]
