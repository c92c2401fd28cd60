"""
Marketing email consent management.

A grant or revoke touches two systems: the Resend audience and the
user_consents table. Both are attempted and each outcome is reported on
its own, so a partial failure is visible to the client (HTTP 207).
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import InvalidRequestError
from app.models.base import utcnow
from app.models.consent import UserConsent, ConsentStatus, MARKETING_EMAILS
from app.models.user import User
from app.services.audience_client import ResendAudienceClient, AudienceResult
from app.utils.logging import log_consent_updated
from app.utils.metrics import consent_updates_total

logger = logging.getLogger(__name__)

GRANT = "grant"
REVOKE = "revoke"


@dataclass
class ConsentOutcome:
    """Per-side result of a consent change."""
    action: str
    email: str
    database_success: bool
    database_error: Optional[str]
    audience: AudienceResult
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.database_success and self.audience.success

    @property
    def status_code(self) -> int:
        return 200 if self.success else 207

    def to_dict(self) -> dict:
        past = "granted" if self.action == GRANT else "revoked"
        return {
            "success": self.success,
            "action": self.action,
            "email": self.email,
            "database": {"success": self.database_success, "error": self.database_error},
            "resend": {"success": self.audience.success, "error": self.audience.error},
            "errors": self.errors or None,
            "message": (
                f"Marketing email consent {past} successfully"
                if self.success
                else f"Partial failure: {', '.join(self.errors)}"
            ),
        }


class ConsentService:
    """Grant, revoke and look up marketing consent for one user."""

    def __init__(self, db: AsyncSession, audience: Optional[ResendAudienceClient] = None):
        self.db = db
        self.audience = audience or ResendAudienceClient()

    async def update(self, user: User, action: str, consent_text: str) -> ConsentOutcome:
        """
        Apply a grant or revoke on both the audience and the database.

        Raises:
            InvalidRequestError: For an unknown action, a user without email
                or a missing Resend configuration (nothing is written)
        """
        if action not in (GRANT, REVOKE):
            raise InvalidRequestError('Invalid action. Must be "grant" or "revoke"')
        # Read up front: a failed write rolls back and expires the instance
        user_id, email = user.id, user.email
        if not email:
            raise InvalidRequestError("User email not found")
        config_error = self.audience.configuration_error()
        if config_error:
            raise InvalidRequestError(config_error, error=config_error)

        if action == GRANT:
            audience_result = await self.audience.add_contact(email, user.first_name, user.last_name)
            database_error = await self._grant(user_id, consent_text)
        else:
            audience_result = await self.audience.remove_contact(email)
            database_error = await self._revoke(user_id)

        errors = [e for e in (database_error, audience_result.error) if e]
        outcome = ConsentOutcome(
            action=action,
            email=email,
            database_success=database_error is None,
            database_error=database_error,
            audience=audience_result,
            errors=errors,
        )

        consent_updates_total.labels(action=action, outcome="success" if outcome.success else "partial").inc()
        log_consent_updated(
            logger,
            user_id=user_id,
            action=action,
            database_success=outcome.database_success,
            audience_success=audience_result.success,
            errors=errors,
        )
        return outcome

    async def _grant(self, user_id: str, consent_text: str) -> Optional[str]:
        now = utcnow()
        try:
            self.db.add(UserConsent(
                user_id=user_id,
                consent_type=MARKETING_EMAILS,
                status=ConsentStatus.GRANTED,
                timestamp=now,
                consent_text=consent_text,
                created_at=now,
                updated_at=now,
            ))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to save consent: {e}", extra={"event": "consent_write_failed", "user_id": user_id})
            return "Failed to save consent to database"
        return None

    async def _revoke(self, user_id: str) -> Optional[str]:
        now = utcnow()
        try:
            await self.db.execute(
                update(UserConsent)
                .where(UserConsent.user_id == user_id)
                .where(UserConsent.consent_type == MARKETING_EMAILS)
                .where(UserConsent.status == ConsentStatus.GRANTED)
                .values(status=ConsentStatus.REVOKED, timestamp=now, updated_at=now)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to revoke consent: {e}", extra={"event": "consent_write_failed", "user_id": user_id})
            return "Failed to update consent in database"
        return None

    async def status(self, user_id: str) -> Optional[UserConsent]:
        """Latest granted marketing consent, or None when not granted."""
        result = await self.db.execute(
            select(UserConsent)
            .where(UserConsent.user_id == user_id)
            .where(UserConsent.consent_type == MARKETING_EMAILS)
            .where(UserConsent.status == ConsentStatus.GRANTED)
            .order_by(UserConsent.timestamp.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()
