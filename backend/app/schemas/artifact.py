"""
Pydantic schemas for stored learning plans and quiz results.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime


class LearningPlanResponse(BaseModel):
    """Schema for a stored learning plan."""
    id: str
    title: Optional[str] = None
    content: Dict[str, Any]
    tier: str
    credits_used: int
    created_at: datetime

    class Config:
        from_attributes = True


class QuizResultResponse(BaseModel):
    """Schema for a stored quiz and its score."""
    id: str
    quiz_content: Dict[str, Any]
    score: int
    total_questions: int
    difficulty: str
    credits_used: int
    created_at: datetime
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QuizScoreRequest(BaseModel):
    """Schema for submitting the outcome of a taken quiz."""
    score: int = Field(..., ge=0, description="Number of correct answers")
    results: Optional[List[Dict[str, Any]]] = Field(None, description="Per-question answers")
