"""
ASGI middleware for tracking HTTP request metrics.
Records request count and duration per route.
"""
import re
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from app.utils.metrics import http_requests_total, http_request_duration_seconds, errors_total

_UUID = re.compile(r'[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}', re.IGNORECASE)
_NUMERIC_SEGMENT = re.compile(r'/\d+(?=/|$)')


def normalize_path(path: str) -> str:
    """Replace UUIDs and numeric IDs with {id} to keep label cardinality low."""
    path = _UUID.sub('{id}', path)
    return _NUMERIC_SEGMENT.sub('/{id}', path)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to track HTTP metrics for Prometheus."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path == "/metrics":
            return await call_next(request)

        start_time = time.time()
        method = request.method
        path = normalize_path(request.url.path)

        try:
            response = await call_next(request)
        except Exception:
            errors_total.labels(error_type="exception").inc()
            raise

        http_requests_total.labels(
            method=method,
            path=path,
            status=response.status_code
        ).inc()
        http_request_duration_seconds.labels(
            method=method,
            path=path
        ).observe(time.time() - start_time)

        return response
