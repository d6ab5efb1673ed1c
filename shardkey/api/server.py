"""FastAPI server exposing the secret-sharing engine to a UI.

Endpoints:
- POST /v1/split            Split secret text into share strings
- POST /v1/reconstruct      Recover secret text from share strings
- POST /v1/shares/inspect   Verify a single share and read its metadata
- GET  /health              Liveness
- GET  /health/ready        Readiness (config + engine self-test)
- GET  /metrics             Prometheus metrics

Secrets and share strings are never logged.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from shardkey.api.health import HealthTracker
from shardkey.api.metrics import (
    RECONSTRUCTIONS,
    SHARE_ERRORS,
    SHARES_ISSUED,
    SPLITS,
    UPTIME_SECONDS,
    metrics_response,
)
from shardkey.api.middleware import (
    RateLimiter,
    RateLimitMiddleware,
    RequestIdMiddleware,
    get_cors_origins,
)
from shardkey.api.models import (
    ErrorResponse,
    HealthResponse,
    InspectRequest,
    InspectResponse,
    ReadinessResponse,
    ReconstructRequest,
    ReconstructResponse,
    SplitRequest,
    SplitResponse,
)
from shardkey.core.errors import ShareError
from shardkey.core.sss import inspect_share, reconstruct, split

if TYPE_CHECKING:
    from shardkey.config import Config

log = structlog.get_logger()

_ERROR_RESPONSES = {400: {"model": ErrorResponse}}


def create_app(
    config: Config | None = None,
    health_tracker: HealthTracker | None = None,
) -> FastAPI:
    """Build the FastAPI application with all routes wired."""
    from shardkey import __version__
    from shardkey.config import Config

    cfg = config or Config()
    health = health_tracker or HealthTracker()

    app = FastAPI(title="shardkey", version=__version__)

    @app.exception_handler(ShareError)
    async def _share_error(request: Request, exc: ShareError) -> JSONResponse:
        SHARE_ERRORS.labels(kind=exc.kind).inc()
        log.info("share_error", kind=exc.kind, error=str(exc), path=request.url.path)
        return JSONResponse(status_code=400, content={"detail": str(exc), "error": exc.kind})

    # Catch unhandled exceptions; never leak stack traces to clients
    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        log.error(
            "unhandled_exception",
            error=str(exc),
            path=request.url.path,
            method=request.method,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    cors_origins = get_cors_origins(os.getenv("CORS_ORIGINS", ""), cfg.environment)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials="*" not in cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    body_limit = cfg.max_body_bytes

    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):  # type: ignore[no-untyped-def]
        """Enforce the body limit on both Content-Length and the actual body."""
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                if int(content_length) > body_limit:
                    return JSONResponse(status_code=413, content={"detail": f"Request body too large (max {body_limit} bytes)"})
            except (ValueError, OverflowError):
                return JSONResponse(status_code=400, content={"detail": "Invalid Content-Length header"})
        elif request.method in ("POST", "PUT", "PATCH"):
            body = await request.body()
            if len(body) > body_limit:
                return JSONResponse(status_code=413, content={"detail": f"Request body too large (max {body_limit} bytes)"})
        return await call_next(request)

    limiter = RateLimiter(
        capacity=cfg.rate_limit_capacity,
        rate=cfg.rate_limit_rate,
        # Forged-share guessing happens on reconstruct
        route_limits={"/v1/reconstruct": (10, 1)},
    )
    app.add_middleware(RateLimitMiddleware, limiter=limiter)

    # Request ID tracing (outermost, so added last)
    app.add_middleware(RequestIdMiddleware)

    @app.post("/v1/split", response_model=SplitResponse, responses=_ERROR_RESPONSES)
    async def split_secret(request: SplitRequest) -> SplitResponse:
        """Split a secret into share strings.

        Omitted counts fall back to DEFAULT_NUM_SHARES / DEFAULT_THRESHOLD.
        """
        num_shares = request.num_shares if request.num_shares is not None else cfg.default_num_shares
        threshold = request.threshold if request.threshold is not None else cfg.default_threshold

        shares = split(request.secret, num_shares, threshold)

        SPLITS.inc()
        SHARES_ISSUED.inc(len(shares))
        health.record_split()
        log.info("secret_split", num_shares=num_shares, threshold=threshold)
        return SplitResponse(shares=shares, num_shares=num_shares, threshold=threshold)

    @app.post("/v1/reconstruct", response_model=ReconstructResponse, responses=_ERROR_RESPONSES)
    async def reconstruct_secret(request: ReconstructRequest) -> ReconstructResponse:
        """Recover the secret from threshold-or-more share strings.

        Any bad share fails the whole request; shares are never silently dropped.
        """
        try:
            secret = reconstruct(request.shares)
        except ShareError:
            RECONSTRUCTIONS.labels(result="error").inc()
            raise
        RECONSTRUCTIONS.labels(result="success").inc()
        health.record_reconstruction()
        log.info("secret_reconstructed", shares_supplied=len(request.shares))
        return ReconstructResponse(secret=secret)

    @app.post("/v1/shares/inspect", response_model=InspectResponse, responses=_ERROR_RESPONSES)
    async def inspect(request: InspectRequest) -> InspectResponse:
        """Check a share's checksum as it is typed. Y-values are not returned."""
        share = inspect_share(request.share)
        return InspectResponse(threshold=share.threshold, index=share.index, lanes=share.lanes)

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        return health.get_status()

    @app.get("/health/ready", response_model=ReadinessResponse)
    async def readiness() -> ReadinessResponse:
        """Deep readiness probe: config validates and the engine round-trips."""
        checks: dict[str, bool] = {}
        try:
            cfg.validate()
            checks["config"] = True
        except ValueError as e:
            log.warning("readiness_config_error", error=str(e))
            checks["config"] = False
        checks["engine"] = health.engine_self_test()
        return ReadinessResponse(ready=all(checks.values()), checks=checks)

    @app.get("/metrics")
    async def metrics() -> bytes:
        """Prometheus metrics endpoint."""
        from fastapi.responses import Response

        UPTIME_SECONDS.set(health.uptime_seconds)
        return Response(
            content=metrics_response(),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    return app
