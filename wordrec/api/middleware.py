import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

UNGROUPED_PATHS = ("/health", "/ready", "/metrics", "/docs", "/openapi.json")


def group_endpoint(path: str) -> str:
    """Collapse path parameters so metric label cardinality stays bounded.

    /api/v1/recommendations/explain/w-42 -> /api/v1/recommendations/explain/
    """
    if path in UNGROUPED_PATHS:
        return path

    if path.startswith("/api/v1/"):
        parts = path.split("/")
        if len(parts) >= 5:
            return f"/api/v1/{parts[3]}/{parts[4]}/"
        if len(parts) == 4:
            return f"/api/v1/{parts[3]}/"

    return "other"


request_counter = Counter(
    "wordrec_http_requests_total", "Total HTTP requests", ["method", "endpoint_group", "status_code"]
)

request_latency = Histogram(
    "wordrec_http_request_duration_seconds", "HTTP request latency", ["method", "endpoint_group"]
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Per-request Prometheus metrics"""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.time()

        response = await call_next(request)

        endpoint_group = group_endpoint(request.url.path)
        request_counter.labels(
            method=request.method,
            endpoint_group=endpoint_group,
            status_code=str(response.status_code),
        ).inc()
        request_latency.labels(method=request.method, endpoint_group=endpoint_group).observe(
            time.time() - start_time
        )

        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.time()

        response = await call_next(request)

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({time.time() - start_time:.4f}s)"
        )
        return response
