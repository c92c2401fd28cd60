"""
Marketing email consent endpoint.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.consent import ConsentRequest
from app.services.audience_client import ResendAudienceClient
from app.services.consent_service import ConsentService

router = APIRouter()


def get_audience_client() -> ResendAudienceClient:
    """Dependency returning the Resend audience client (overridden in tests)."""
    return ResendAudienceClient()


@router.post("/manage-marketing-consent")
async def manage_marketing_consent(
    request: ConsentRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    audience: ResendAudienceClient = Depends(get_audience_client),
):
    """
    Grant or revoke marketing email consent.

    Returns 200 when both the audience and the database were updated and
    207 (Multi-Status) when either side failed.
    """
    service = ConsentService(db, audience)
    outcome = await service.update(current_user, request.action, request.consentText)
    return JSONResponse(status_code=outcome.status_code, content=outcome.to_dict())
