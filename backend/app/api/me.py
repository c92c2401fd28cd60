"""
User profile endpoints.
Returns information about the authenticated user.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.consent import MARKETING_EMAILS
from app.models.user import User
from app.auth.dependencies import get_current_user
from app.schemas.consent import ConsentStatusResponse
from app.schemas.credits import CreditsResponse
from app.services.consent_service import ConsentService
from app.services.credit_service import CreditService

router = APIRouter()


@router.get("/credits", response_model=CreditsResponse)
async def get_credits(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Get current credit balance for authenticated user.
    Requires valid Firebase JWT token.
    """
    balance = await CreditService.get_balance(db, current_user.id)

    return CreditsResponse(
        credits=balance,
        user_id=current_user.id,
        last_credit_reset=current_user.last_credit_reset,
    )


@router.get("/consent", response_model=ConsentStatusResponse)
async def get_consent(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Current marketing email consent for the settings page."""
    record = await ConsentService(db).status(current_user.id)

    if record is None:
        return ConsentStatusResponse(consent_type=MARKETING_EMAILS, granted=False)

    return ConsentStatusResponse(
        consent_type=record.consent_type,
        granted=True,
        timestamp=record.timestamp,
        consent_method=record.consent_method,
        consent_text=record.consent_text,
    )
