"""
Request tracing middleware
"""
import time
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from libseat.core.logging_config import set_trace_id, generate_trace_id
from libseat.core.metrics import http_requests_total, http_request_duration_seconds

logger = logging.getLogger(__name__)


def _endpoint_label(request: Request) -> str:
    """Route template rather than the raw path, so ids don't explode label cardinality"""
    route = request.scope.get('route')
    return getattr(route, 'path', request.url.path)


class TracingMiddleware(BaseHTTPMiddleware):
    """Adds a trace ID to every request and records HTTP metrics"""

    async def dispatch(self, request: Request, call_next):
        trace_id = request.headers.get('X-Trace-ID') or generate_trace_id()
        set_trace_id(trace_id)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else None

        logger.debug(
            f"Request started: {request.method} {request.url.path}",
            extra={'method': request.method, 'path': request.url.path, 'client_ip': client_ip},
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.url.path}",
                extra={'duration_ms': round(duration_ms, 2), 'error': str(e)},
                exc_info=True,
            )
            raise

        duration = time.perf_counter() - start_time
        endpoint = _endpoint_label(request)
        http_requests_total.labels(method=request.method, endpoint=endpoint, status=response.status_code).inc()
        http_request_duration_seconds.labels(method=request.method, endpoint=endpoint).observe(duration)

        logger.info(
            f"Request completed: {request.method} {request.url.path}",
            extra={'status_code': response.status_code, 'duration_ms': round(duration * 1000, 2)},
        )

        response.headers['X-Trace-ID'] = trace_id
        return response
