"""Request tracing and rate limiting for the shardkey API."""

from __future__ import annotations

import time
import uuid
from collections import OrderedDict
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from shardkey.api.metrics import RATE_LIMIT_REJECTIONS, REQUEST_COUNT, REQUEST_LATENCY

log = structlog.get_logger()

# Probes and scrapes: not traced, not limited
_OPS_PATHS = frozenset({"/health", "/health/ready", "/metrics"})

_RESPONSE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    # Bodies carry secrets or shares
    "Cache-Control": "no-store",
}


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request ID to the log context and stamp response headers.

    A caller-supplied ``X-Request-ID`` is reused; otherwise one is generated.
    Engine routes are counted and timed, ops routes are not.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        with structlog.contextvars.bound_contextvars(request_id=request_id):
            started = time.perf_counter()
            response = await call_next(request)
            elapsed = time.perf_counter() - started

            response.headers["X-Request-ID"] = request_id
            for name, value in _RESPONSE_HEADERS.items():
                response.headers.setdefault(name, value)

            if request.url.path not in _OPS_PATHS:
                self._observe(request, response.status_code, elapsed)
        return response

    @staticmethod
    def _observe(request: Request, status: int, elapsed: float) -> None:
        path = request.url.path
        REQUEST_COUNT.labels(method=request.method, endpoint=path, status=status).inc()
        REQUEST_LATENCY.labels(endpoint=path).observe(elapsed)
        log.info(
            "request",
            method=request.method,
            path=path,
            status=status,
            duration_ms=round(elapsed * 1000, 1),
        )


@dataclass
class TokenBucket:
    """Holds up to ``capacity`` tokens, refilled at ``rate`` per second."""

    capacity: float
    rate: float
    tokens: float = field(init=False)
    updated: float = field(default_factory=time.monotonic)

    def __post_init__(self) -> None:
        self.tokens = self.capacity

    def take(self) -> bool:
        now = time.monotonic()
        self.tokens = min(self.capacity, self.tokens + (now - self.updated) * self.rate)
        self.updated = now
        if self.tokens < 1:
            return False
        self.tokens -= 1
        return True


class RateLimiter:
    """Token buckets keyed by (client, route group).

    Requests whose path starts with a prefix in ``route_limits`` draw from a
    bucket of their own with that prefix's (capacity, rate); everything else
    shares the default bucket. At most ``max_keys`` buckets are kept, least
    recently used dropped first.
    """

    def __init__(
        self,
        capacity: float,
        rate: float,
        route_limits: Mapping[str, tuple[float, float]] | None = None,
        max_keys: int = 10_000,
    ) -> None:
        self._limits: dict[str, tuple[float, float]] = {"": (capacity, rate)}
        self._limits.update(route_limits or {})
        self._max_keys = max_keys
        self._buckets: OrderedDict[tuple[str, str], TokenBucket] = OrderedDict()

    def route_group(self, path: str) -> str:
        return next((p for p in self._limits if p and path.startswith(p)), "")

    def allow(self, client_ip: str, path: str = "") -> bool:
        key = (client_ip, self.route_group(path))
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = self._buckets[key] = TokenBucket(*self._limits[key[1]])
            if len(self._buckets) > self._max_keys:
                self._buckets.popitem(last=False)
        else:
            self._buckets.move_to_end(key)
        return bucket.take()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Answer 429 once a client exhausts its bucket for the route."""

    def __init__(self, app: object, limiter: RateLimiter) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._limiter = limiter

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        client_ip = _client_ip(request)
        if path in _OPS_PATHS or self._limiter.allow(client_ip, path):
            return await call_next(request)

        RATE_LIMIT_REJECTIONS.inc()
        log.warning("rate_limited", client_ip=client_ip, route=self._limiter.route_group(path) or "default")
        return JSONResponse(
            status_code=429,
            content={"detail": "Too many requests"},
            headers={"Retry-After": "1"},
        )


def get_cors_origins(env_value: str = "", environment: str = "") -> list[str]:
    """Origins allowed to call the API, from a comma-separated ``CORS_ORIGINS``.

    An empty value means any origin, which production refuses because the UI
    posts secrets here.
    """
    origins = [o.strip() for o in env_value.split(",") if o.strip()]
    if origins:
        return origins
    if environment == "production":
        raise ValueError("CORS_ORIGINS is required when SHARDKEY_ENV=production")
    log.warning("cors_any_origin")
    return ["*"]
