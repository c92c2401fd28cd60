"""
Pydantic schemas for marketing consent endpoints.
"""
from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime


class ConsentRequest(BaseModel):
    """Schema for granting or revoking marketing email consent."""
    action: Literal["grant", "revoke"]
    consentText: str = Field(..., min_length=1, description="Consent wording shown to the user")


class ConsentStatusResponse(BaseModel):
    """Current marketing consent for the settings page."""
    consent_type: str
    granted: bool
    timestamp: Optional[datetime] = None
    consent_method: Optional[str] = None
    consent_text: Optional[str] = None
