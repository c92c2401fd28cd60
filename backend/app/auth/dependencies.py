"""
FastAPI dependencies for authentication.
Provides get_current_user dependency that verifies Firebase JWT tokens.
"""
import logging
from typing import Optional, Tuple

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select

from app.config import settings
from app.database import get_db
from app.models.base import utcnow
from app.models.user import User
from app.auth.firebase import verify_firebase_token

logger = logging.getLogger(__name__)

# HTTPBearer scheme for extracting Authorization header
security = HTTPBearer()


def _split_name(claims: dict) -> Tuple[Optional[str], Optional[str]]:
    name = (claims.get("name") or "").strip()
    if not name:
        return None, None
    first, _, last = name.partition(" ")
    return first, last or None


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    FastAPI dependency that verifies Firebase JWT token and returns User.

    Flow:
    1. Verify the Bearer token with Firebase Admin SDK
    2. Lookup user in database by firebase_uid
    3. Create the user with the monthly allotment if it doesn't exist

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
    """
    token = credentials.credentials

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        decoded_token = verify_firebase_token(token)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    firebase_uid = decoded_token.get("uid")
    if not firebase_uid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing uid"
        )

    result = await db.execute(
        select(User).where(User.firebase_uid == firebase_uid)
    )
    user = result.scalar_one_or_none()

    if not user:
        first_name, last_name = _split_name(decoded_token)
        now = utcnow()
        user = User(
            firebase_uid=firebase_uid,
            email=decoded_token.get("email"),
            first_name=first_name,
            last_name=last_name,
            credits=settings.monthly_credit_allotment,
            last_credit_reset=now,
            created_at=now,
            updated_at=now,
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            # Another request created the profile first
            await db.rollback()
            result = await db.execute(
                select(User).where(User.firebase_uid == firebase_uid)
            )
            return result.scalar_one()
        await db.refresh(user)
        logger.info(f"Created user {user.id} with {user.credits} credits", extra={"event": "user_created", "user_id": user.id})

    return user
