"""
Sliding-window rate limiter backed by the rate_limits table.

Each accepted request is logged as a row; a request is rejected when the
user already has `max_requests` rows of the same type inside the trailing
window. Limiter infrastructure errors fail open: a broken log must not
block generation.
"""
import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, func, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.errors import RateLimitExceeded
from app.models.base import utcnow
from app.models.rate_limit import RateLimitEntry
from app.utils.logging import log_rate_limited
from app.utils.metrics import rate_limit_rejections_total

logger = logging.getLogger(__name__)

PLAN_REQUEST = "generate_learning_plan"
QUIZ_REQUEST = "generate_quiz"


class RateLimiter:
    """Per-user, per-request-type request counter."""

    @staticmethod
    async def check(
        db: AsyncSession,
        user_id: str,
        request_type: str,
        max_requests: int,
        window_seconds: int,
        now: Optional[datetime] = None,
        label: Optional[str] = None,
    ) -> None:
        """
        Reject the request if the window is full, otherwise log it.

        Args:
            db: Database session
            user_id: User ID
            request_type: Request type key (e.g. generate_quiz)
            max_requests: Accepted requests per window
            window_seconds: Trailing window length
            now: Current time (defaults to utcnow)
            label: Human-readable name for the rejection message

        Raises:
            RateLimitExceeded: With retry_after = seconds until the oldest
                counted request leaves the window
        """
        now = now or utcnow()
        window_start = now - timedelta(seconds=window_seconds)

        try:
            result = await db.execute(
                select(func.count(RateLimitEntry.id), func.min(RateLimitEntry.created_at))
                .where(RateLimitEntry.user_id == user_id)
                .where(RateLimitEntry.request_type == request_type)
                .where(RateLimitEntry.created_at >= window_start)
            )
            count, oldest = result.one()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning(
                f"Error counting rate limit requests, allowing request: {e}",
                extra={"event": "rate_limit_check_failed", "user_id": user_id, "request_type": request_type}
            )
            count, oldest = None, None

        if count is not None and count >= max_requests:
            retry_after = window_seconds
            if oldest is not None:
                remaining = (oldest + timedelta(seconds=window_seconds) - now).total_seconds()
                retry_after = max(1, math.ceil(remaining))

            rate_limit_rejections_total.labels(request_type=request_type).inc()
            log_rate_limited(
                logger,
                user_id=user_id,
                request_type=request_type,
                count=count,
                limit=max_requests,
                retry_after=retry_after,
            )
            label = label or request_type.replace("_", " ")
            window_text = _describe_window(window_seconds)
            raise RateLimitExceeded(
                f"You have exceeded the rate limit for {label}. "
                f"You can make up to {max_requests} requests per {window_text}. Please try again later.",
                retry_after=retry_after,
            )

        try:
            db.add(RateLimitEntry(user_id=user_id, request_type=request_type, created_at=now))
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning(
                f"Error logging rate limit request, continuing: {e}",
                extra={"event": "rate_limit_log_failed", "user_id": user_id, "request_type": request_type}
            )

    @staticmethod
    async def cleanup(
        db: AsyncSession,
        now: Optional[datetime] = None,
        retention_hours: Optional[int] = None,
        window_seconds: Optional[int] = None,
    ) -> int:
        """
        Delete log entries older than the retention period.

        The retention period is never shorter than the rate-limit window,
        so entries that still count toward a limit are kept.
        Best-effort: failures are logged and reported as 0 deleted rows.

        Returns:
            Number of deleted entries
        """
        now = now or utcnow()
        hours = settings.rate_limit_retention_hours if retention_hours is None else retention_hours
        window = settings.rate_limit_window_seconds if window_seconds is None else window_seconds
        cutoff = now - max(timedelta(hours=hours), timedelta(seconds=window))

        try:
            result = await db.execute(
                delete(RateLimitEntry).where(RateLimitEntry.created_at < cutoff)
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.info(f"Rate limit cleanup failed (non-critical): {e}", extra={"event": "rate_limit_cleanup_failed"})
            return 0

        if result.rowcount:
            logger.debug(f"Removed {result.rowcount} expired rate limit entries")
        return result.rowcount or 0


def _describe_window(window_seconds: int) -> str:
    if window_seconds == 3600:
        return "hour"
    if window_seconds % 3600 == 0:
        return f"{window_seconds // 3600} hours"
    if window_seconds % 60 == 0:
        return f"{window_seconds // 60} minutes"
    return f"{window_seconds} seconds"
