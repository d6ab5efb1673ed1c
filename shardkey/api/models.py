"""Pydantic request/response models for the shardkey REST API."""

from __future__ import annotations

from pydantic import BaseModel, Field

# Bounds here only keep request bodies small; the engine enforces the real
# limits and reports them with its own error kinds.
_MAX_SECRET_CHARS = 256
_MAX_SHARE_CHARS = 256
_MAX_SHARES_PER_REQUEST = 64


class SplitRequest(BaseModel):
    """POST /v1/split: split a secret into share strings."""

    secret: str = Field(max_length=_MAX_SECRET_CHARS, description="Secret text, at most 32 UTF-8 bytes")
    num_shares: int | None = Field(default=None, description="Shares to produce; server default when omitted")
    threshold: int | None = Field(default=None, description="Shares needed to reconstruct; server default when omitted")


class SplitResponse(BaseModel):
    shares: list[str]
    num_shares: int
    threshold: int


class ReconstructRequest(BaseModel):
    """POST /v1/reconstruct: recover a secret from share strings."""

    shares: list[str] = Field(max_length=_MAX_SHARES_PER_REQUEST)


class ReconstructResponse(BaseModel):
    secret: str


class InspectRequest(BaseModel):
    """POST /v1/shares/inspect: verify one share's checksum and read its metadata."""

    share: str = Field(max_length=_MAX_SHARE_CHARS)


class InspectResponse(BaseModel):
    threshold: int
    index: int
    lanes: int = Field(description="Secret length in bytes")


class ErrorResponse(BaseModel):
    detail: str
    error: str = Field(description="Engine error kind, e.g. 'corrupt_share'")


class HealthResponse(BaseModel):
    """GET /health: liveness check."""

    status: str
    version: str
    uptime_seconds: float = 0.0
    splits: int = 0
    reconstructions: int = 0


class ReadinessResponse(BaseModel):
    """GET /health/ready: deep readiness probe."""

    ready: bool
    checks: dict[str, bool] = Field(default_factory=dict)
