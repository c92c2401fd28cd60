"""
Pydantic schemas for the generation endpoints.
Field names follow the web client (camelCase).
"""
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.services.catalog import sanitize_topic

Language = Literal["english", "german", "french", "spanish"]


class LearningPlanRequest(BaseModel):
    """Schema for requesting a learning plan."""
    topic: str = Field(..., description="Up to 3 comma-separated topics, 75 characters max")
    selectedTier: Literal["basic", "premium"]
    language: Language = "english"
    budget: Literal["free", "mixed", "premium"] = "mixed"
    learningStyle: Literal["visual", "practical", "theoretical", "mixed"] = "mixed"

    @field_validator("topic")
    @classmethod
    def clean_topic(cls, value: str) -> str:
        return sanitize_topic(value)


class QuizRequest(BaseModel):
    """Schema for requesting a quiz."""
    topic: str = Field(..., description="Up to 3 comma-separated topics, 75 characters max")
    difficulty: Literal["easy", "medium", "hard"]
    language: Language = "english"

    @field_validator("topic")
    @classmethod
    def clean_topic(cls, value: str) -> str:
        return sanitize_topic(value)
