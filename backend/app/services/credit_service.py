"""
Credit service for managing generation credits.
Provides atomic debit/refund operations and the monthly allotment reset.
Every balance change is a single conditional UPDATE so concurrent requests
for the same user can never overdraw the balance.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select, update

from app.config import settings
from app.models.base import utcnow
from app.models.user import User
from app.utils.logging import log_credits_debited, log_credits_refunded, log_refund_failed

logger = logging.getLogger(__name__)

# UPDATE attempts when a concurrent refund lands between a failed debit and the balance read
_DEBIT_ATTEMPTS = 3


@dataclass
class DebitResult:
    """Outcome of a debit attempt. On failure nothing was changed."""
    success: bool
    required: int
    new_balance: Optional[int] = None
    available: Optional[int] = None


@dataclass
class RefundResult:
    """Outcome of a compensating refund."""
    success: bool
    amount: int
    new_balance: Optional[int] = None
    error: Optional[str] = None


@dataclass
class ResetResult:
    """Outcome of a monthly reset check."""
    reset: bool
    credits: int
    last_reset: datetime
    previous_credits: Optional[int] = None
    months_until_reset: Optional[int] = None


def months_between(earlier: datetime, later: datetime) -> int:
    """Calendar months from `earlier` to `later` (day of month is ignored)."""
    return (later.year - earlier.year) * 12 + (later.month - earlier.month)


def start_of_month(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class CreditService:
    """Service for credit management with atomic operations."""

    @staticmethod
    async def get_balance(db: AsyncSession, user_id: str) -> int:
        """
        Get current credit balance for user.

        Returns:
            Current credit balance (0 if user not found)
        """
        result = await db.execute(
            select(User.credits).where(User.id == user_id)
        )
        credits = result.scalar_one_or_none()
        return credits or 0

    @staticmethod
    async def debit(db: AsyncSession, user_id: str, amount: int, kind: Optional[str] = None) -> DebitResult:
        """
        Atomically debit credits from user balance.
        Prevents negative balances.

        Args:
            db: Database session
            user_id: User ID
            amount: Credits to debit
            kind: Optional artifact kind, for logging

        Returns:
            DebitResult with new_balance on success, or available/required
            on insufficient credits (balance untouched)

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError("Cannot debit negative amount")

        for _ in range(_DEBIT_ATTEMPTS):
            # Atomic update: only decrement if balance >= amount
            result = await db.execute(
                update(User)
                .where(User.id == user_id)
                .where(User.credits >= amount)
                .values(credits=User.credits - amount, updated_at=utcnow())
                .returning(User.credits)
            )
            balance = result.scalar_one_or_none()
            await db.commit()

            if balance is not None:
                log_credits_debited(logger, user_id=user_id, amount=amount, new_balance=balance, kind=kind)
                return DebitResult(success=True, required=amount, new_balance=balance)

            available = await CreditService.get_balance(db, user_id)
            if available < amount:
                break
            # Credits arrived between the UPDATE and the read; try again

        logger.info(
            f"Insufficient credits for user {user_id}: {available}/{amount}",
            extra={"event": "credits_insufficient", "user_id": user_id, "available": available, "required": amount}
        )
        return DebitResult(success=False, required=amount, available=available)

    @staticmethod
    async def refund(db: AsyncSession, user_id: str, amount: int, kind: Optional[str] = None) -> RefundResult:
        """
        Give back credits debited for a request that did not deliver.

        Refunds are best-effort compensation: database failures are logged
        under the ``credit_refund_failed`` event and reported in the result,
        never raised, so the caller can still surface its original error.
        Failed refunds are not retried.

        Raises:
            ValueError: If amount is not positive
        """
        if amount <= 0:
            raise ValueError("Refund amount must be positive")

        try:
            result = await db.execute(
                update(User)
                .where(User.id == user_id)
                .values(credits=User.credits + amount, updated_at=utcnow())
                .returning(User.credits)
            )
            balance = result.scalar_one_or_none()
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            log_refund_failed(logger, user_id=user_id, amount=amount, error=str(e), kind=kind)
            return RefundResult(success=False, amount=amount, error=str(e))

        if balance is None:
            log_refund_failed(logger, user_id=user_id, amount=amount, error="user not found", kind=kind)
            return RefundResult(success=False, amount=amount, error="user not found")

        log_credits_refunded(logger, user_id=user_id, amount=amount, new_balance=balance, kind=kind)
        return RefundResult(success=True, amount=amount, new_balance=balance)

    @staticmethod
    async def reset_if_due(
        db: AsyncSession,
        user_id: str,
        now: Optional[datetime] = None,
        allotment: Optional[int] = None,
    ) -> ResetResult:
        """
        Restore the monthly allotment on the first call in a new calendar month.

        The comparison is month-over-month against ``last_credit_reset``
        (a reset on the 31st is followed by another on the 1st), and the
        UPDATE is guarded by the same condition, so calling this any number
        of times within one month resets at most once.

        Raises:
            LookupError: If the user does not exist
        """
        now = now or utcnow()
        allotment = settings.monthly_credit_allotment if allotment is None else allotment

        result = await db.execute(
            select(User.credits, User.last_credit_reset).where(User.id == user_id)
        )
        row = result.one_or_none()
        if row is None:
            raise LookupError(f"User {user_id} not found")
        previous_credits, last_reset = row

        if months_between(last_reset, now) >= 1:
            result = await db.execute(
                update(User)
                .where(User.id == user_id)
                .where(User.last_credit_reset < start_of_month(now))
                .values(credits=allotment, last_credit_reset=now, updated_at=now)
            )
            await db.commit()

            if result.rowcount > 0:
                logger.info(
                    f"Credits reset for user {user_id}: {previous_credits} -> {allotment}",
                    extra={
                        "event": "credits_reset",
                        "user_id": user_id,
                        "previous_credits": previous_credits,
                        "credits": allotment,
                    }
                )
                return ResetResult(
                    reset=True,
                    credits=allotment,
                    last_reset=now,
                    previous_credits=previous_credits,
                )

            # A concurrent request reset first; report its state
            result = await db.execute(
                select(User.credits, User.last_credit_reset).where(User.id == user_id)
            )
            previous_credits, last_reset = result.one()

        return ResetResult(
            reset=False,
            credits=previous_credits,
            last_reset=last_reset,
            months_until_reset=1 - months_between(last_reset, now),
        )
