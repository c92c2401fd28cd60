"""
Production logging utility for structured JSON logging.

Provides event-specific logging functions with mandatory fields:
- timestamp (ISO8601)
- level
- service
- event

Optional fields (included when applicable):
- user_id
- kind (learning_plan / quiz)
- artifact_id
- duration_ms

Usage:
    from app.utils.logging import configure_logging, log_generation_completed

    configure_logging('learnpath-api', 'INFO')
    log_generation_completed(logger, kind='quiz', user_id='456', artifact_id='789', duration_ms=4512.3)
"""
import logging
import sys
from typing import Optional, Dict, Any
from pythonjsonlogger import jsonlogger


class StructuredLogger:
    """Structured JSON logger with mandatory fields."""

    _service_name = None
    _configured = False

    @classmethod
    def configure(cls, service_name: str, log_level: str = "INFO"):
        """
        Configure structured JSON logging for the application.

        Args:
            service_name: Service identifier (learnpath-api)
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        if cls._configured:
            return  # Already configured

        cls._service_name = service_name

        # Remove default handlers
        root_logger = logging.getLogger()
        root_logger.handlers = []

        formatter = jsonlogger.JsonFormatter(
            '%(timestamp)s %(levelname)s %(name)s %(message)s',
            timestamp=True,
            json_ensure_ascii=False
        )

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)

        root_logger.addHandler(handler)
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        # Add service name to all log records via filter
        class ServiceFilter(logging.Filter):
            def filter(self, record):
                record.service = cls._service_name
                return True

        handler.addFilter(ServiceFilter())
        cls._configured = True


def _build_log_extra(
    event: str,
    user_id: Optional[str] = None,
    kind: Optional[str] = None,
    artifact_id: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> Dict[str, Any]:
    """
    Build extra fields for structured logging.

    Args:
        event: Event name (mandatory)
        user_id: Optional user ID
        kind: Optional artifact kind (learning_plan, quiz)
        artifact_id: Optional stored artifact ID
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields

    Returns:
        Dictionary of extra fields
    """
    extra = {
        "event": event,
        **kwargs
    }

    if user_id:
        extra["user_id"] = user_id
    if kind:
        extra["kind"] = kind
    if artifact_id:
        extra["artifact_id"] = artifact_id
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)

    return extra


# Generation event functions

def log_generation_started(
    logger: logging.Logger,
    kind: str,
    user_id: str,
    **kwargs
):
    """Log the start of a metered generation request."""
    extra = _build_log_extra(
        event="generation_started",
        user_id=user_id,
        kind=kind,
        **kwargs
    )
    logger.info(f"Generation started: {kind} for user {user_id}", extra=extra)


def log_generation_completed(
    logger: logging.Logger,
    kind: str,
    user_id: str,
    artifact_id: str,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log a successful generation.

    Args:
        logger: Logger instance
        kind: learning_plan or quiz
        user_id: User ID (required)
        artifact_id: ID of the stored plan / quiz (required)
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields (credits_used, new_balance, ...)
    """
    extra = _build_log_extra(
        event="generation_completed",
        user_id=user_id,
        kind=kind,
        artifact_id=artifact_id,
        duration_ms=duration_ms,
        **kwargs
    )
    logger.info(f"Generation completed: {kind} {artifact_id}", extra=extra)


def log_generation_failed(
    logger: logging.Logger,
    kind: str,
    user_id: str,
    state: str,
    error: str,
    duration_ms: Optional[float] = None,
    include_traceback: bool = True,
    **kwargs
):
    """
    Log a generation that failed after the credit debit.

    Args:
        logger: Logger instance
        kind: learning_plan or quiz
        user_id: User ID (required)
        state: Workflow state the failure happened in
        error: Error message
        duration_ms: Optional duration in milliseconds
        include_traceback: Whether to include stack trace
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="generation_failed",
        user_id=user_id,
        kind=kind,
        duration_ms=duration_ms,
        state=state,
        error=str(error),
        **kwargs
    )
    message = f"Generation failed in {state}: {kind} for user {user_id} - {error}"

    if include_traceback and sys.exc_info()[0] is not None:
        logger.error(message, extra=extra, exc_info=True)
    else:
        logger.error(message, extra=extra)


def log_rate_limited(
    logger: logging.Logger,
    user_id: str,
    request_type: str,
    count: int,
    limit: int,
    retry_after: int,
    **kwargs
):
    """Log a request rejected by the rate limiter."""
    extra = _build_log_extra(
        event="rate_limited",
        user_id=user_id,
        request_type=request_type,
        count=count,
        limit=limit,
        retry_after=retry_after,
        **kwargs
    )
    logger.info(
        f"Rate limit exceeded for user {user_id}: {count}/{limit} {request_type}",
        extra=extra
    )


# Credit ledger event functions

def log_credits_debited(
    logger: logging.Logger,
    user_id: str,
    amount: int,
    new_balance: int,
    kind: Optional[str] = None,
    **kwargs
):
    """Log a successful debit."""
    extra = _build_log_extra(
        event="credits_debited",
        user_id=user_id,
        kind=kind,
        amount=amount,
        new_balance=new_balance,
        **kwargs
    )
    logger.info(f"Debited {amount} credits from user {user_id}, balance {new_balance}", extra=extra)


def log_credits_refunded(
    logger: logging.Logger,
    user_id: str,
    amount: int,
    new_balance: Optional[int] = None,
    kind: Optional[str] = None,
    **kwargs
):
    """Log a compensating refund that went through."""
    extra = _build_log_extra(
        event="credits_refunded",
        user_id=user_id,
        kind=kind,
        amount=amount,
        new_balance=new_balance,
        **kwargs
    )
    logger.info(f"Refunded {amount} credits to user {user_id}, balance {new_balance}", extra=extra)


def log_refund_failed(
    logger: logging.Logger,
    user_id: str,
    amount: int,
    error: str,
    kind: Optional[str] = None,
    **kwargs
):
    """
    Log a compensating refund that did not go through.

    These entries are the only trace of a debit without a delivered
    artifact, so they are logged at ERROR with a dedicated event name
    for out-of-band reconciliation.
    """
    extra = _build_log_extra(
        event="credit_refund_failed",
        user_id=user_id,
        kind=kind,
        amount=amount,
        error=str(error),
        **kwargs
    )
    logger.error(
        f"Credit refund failed: {amount} credits for user {user_id} - {error}",
        extra=extra,
        exc_info=sys.exc_info()[0] is not None
    )


# Provider event functions

def log_provider_request(
    logger: logging.Logger,
    provider: str,
    operation: str,
    duration_ms: Optional[float] = None,
    user_id: Optional[str] = None,
    **kwargs
):
    """
    Log AI provider request event.

    Args:
        logger: Logger instance
        provider: Provider name (openai, deepseek) (required)
        operation: Operation name (required)
        duration_ms: Optional duration in milliseconds
        user_id: Optional user ID
        **kwargs: Additional fields (model, tokens)
    """
    extra = _build_log_extra(
        event="provider_request",
        user_id=user_id,
        duration_ms=duration_ms,
        provider=provider,
        operation=operation,
        **kwargs
    )

    logger.info(f"Provider request: {provider}.{operation}", extra=extra)


def log_provider_failure(
    logger: logging.Logger,
    provider: str,
    operation: str,
    error: str,
    duration_ms: Optional[float] = None,
    user_id: Optional[str] = None,
    **kwargs
):
    """
    Log AI provider failure event.

    Stack traces are not attached; the provider error message carries the
    status code and reason.
    """
    extra = _build_log_extra(
        event="provider_failure",
        user_id=user_id,
        duration_ms=duration_ms,
        provider=provider,
        operation=operation,
        error=str(error),
        **kwargs
    )

    logger.error(f"Provider failure: {provider}.{operation} - {error}", extra=extra)


# Consent event functions

def log_consent_updated(
    logger: logging.Logger,
    user_id: str,
    action: str,
    database_success: bool,
    audience_success: bool,
    **kwargs
):
    """Log the outcome of a consent grant / revoke, one flag per side."""
    extra = _build_log_extra(
        event="consent_updated",
        user_id=user_id,
        action=action,
        database_success=database_success,
        audience_success=audience_success,
        **kwargs
    )
    if database_success and audience_success:
        logger.info(f"Marketing consent {action} for user {user_id}", extra=extra)
    else:
        logger.warning(f"Marketing consent {action} partially failed for user {user_id}", extra=extra)


def configure_logging(service_name: str, log_level: str = "INFO"):
    """Configure logging (alias for StructuredLogger.configure)."""
    StructuredLogger.configure(service_name, log_level)
