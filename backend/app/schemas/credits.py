"""
Pydantic schemas for credit endpoints.
"""
from pydantic import BaseModel
from datetime import datetime


class CreditsResponse(BaseModel):
    """Current balance of the authenticated user."""
    credits: int
    user_id: str
    last_credit_reset: datetime
