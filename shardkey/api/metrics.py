"""Prometheus metrics for the shardkey API."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, generate_latest

REQUEST_COUNT = Counter(
    "shardkey_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

REQUEST_LATENCY = Histogram(
    "shardkey_request_latency_seconds",
    "Request latency in seconds",
    ["endpoint"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

SPLITS = Counter(
    "shardkey_splits_total",
    "Secrets split into shares",
)

SHARES_ISSUED = Counter(
    "shardkey_shares_issued_total",
    "Share strings handed out by split",
)

RECONSTRUCTIONS = Counter(
    "shardkey_reconstructions_total",
    "Reconstruction attempts",
    ["result"],  # success, error
)

SHARE_ERRORS = Counter(
    "shardkey_share_errors_total",
    "Engine errors returned to callers",
    ["kind"],  # validation, corrupt_share, insufficient_shares, ...
)

RATE_LIMIT_REJECTIONS = Counter(
    "shardkey_rate_limit_rejections_total",
    "Total requests rejected by rate limiter",
)

UPTIME_SECONDS = Gauge(
    "shardkey_uptime_seconds",
    "Service uptime in seconds",
)


def metrics_response() -> bytes:
    """Generate Prometheus-compatible metrics text."""
    return generate_latest()
