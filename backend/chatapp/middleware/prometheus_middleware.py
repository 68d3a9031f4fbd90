"""
HTTP timing middleware.

Route paths are collapsed to templates before they become labels, so
`/api/users/01H.../follow-info` and every other user id share one series.
WebSocket upgrades bypass BaseHTTPMiddleware and are not counted here.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.ulid_helper import is_valid_ulid
from ..monitoring.prometheus_metrics import prometheus_metrics

UNTRACKED_PATHS = frozenset({"/metrics"})


def normalize_path(raw_path: str) -> str:
    """Replace identifier segments with `:id`."""
    return "/".join(":id" if is_valid_ulid(segment) else segment for segment in raw_path.split("/"))


class PrometheusMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in UNTRACKED_PATHS:
            return await call_next(request)

        method = request.method
        endpoint = normalize_path(request.url.path)
        prometheus_metrics.track_http_request_start(method, endpoint)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            prometheus_metrics.track_http_request_end(method, endpoint)

        prometheus_metrics.record_http_request(
            method, endpoint, time.perf_counter() - started, response.status_code
        )
        return response
