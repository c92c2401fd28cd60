"""
Monthly credit reset endpoint.
Called by the client on load; resets at most once per calendar month.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.services.credit_service import CreditService

router = APIRouter()


@router.post("/reset-credits")
async def reset_credits(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Restore the monthly allotment if a new month has started.
    Requires valid Firebase JWT token.
    """
    result = await CreditService.reset_if_due(db, current_user.id)

    if result.reset:
        return {
            "success": True,
            "message": "Credits reset successfully",
            "credits": result.credits,
            "resetDate": result.last_reset.isoformat(),
            "previousCredits": result.previous_credits,
        }

    return {
        "success": True,
        "message": "No credit reset needed",
        "credits": result.credits,
        "lastReset": result.last_reset.isoformat(),
        "monthsUntilReset": result.months_until_reset,
    }
