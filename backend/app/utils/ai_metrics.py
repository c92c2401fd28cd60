"""
Decorator for tracking AI provider metrics.
"""
import time
import functools
from app.utils.metrics import (
    ai_provider_requests_total,
    ai_provider_failures_total,
    ai_provider_latency_seconds,
    ai_provider_tokens_total
)


def _record_token_usage(result, provider_name: str, operation: str) -> None:
    """Count prompt/completion tokens when the result carries an OpenAI-style usage block."""
    usage = getattr(result, "usage", None)
    if usage is None:
        return
    for token_type in ("prompt", "completion"):
        count = getattr(usage, f"{token_type}_tokens", None)
        if isinstance(count, int):
            ai_provider_tokens_total.labels(
                provider=provider_name,
                operation=operation,
                token_type=token_type
            ).inc(count)


def track_ai_provider_metrics(operation: str):
    """
    Decorator for provider methods that call the remote API.

    The provider name is read from the instance (``self.name``) so that
    OpenAI-compatible providers sharing one implementation are labelled
    separately.

    Args:
        operation: Operation name (e.g. chat_completion)
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            provider_name = getattr(self, "name", type(self).__name__)
            start_time = time.time()

            ai_provider_requests_total.labels(
                provider=provider_name,
                operation=operation
            ).inc()

            try:
                result = func(self, *args, **kwargs)
            except Exception:
                ai_provider_failures_total.labels(
                    provider=provider_name,
                    operation=operation
                ).inc()
                raise
            finally:
                ai_provider_latency_seconds.labels(
                    provider=provider_name,
                    operation=operation
                ).observe(time.time() - start_time)

            _record_token_usage(result, provider_name, operation)
            return result

        return wrapper
    return decorator
