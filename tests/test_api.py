"""Tests for the FastAPI server endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from shardkey import __version__
from shardkey.api.health import HealthTracker
from shardkey.api.server import create_app
from shardkey.config import Config


def _config(**overrides: object) -> Config:
    """Create a Config with overridden fields (bypasses frozen restriction)."""
    config = Config()
    for k, v in overrides.items():
        object.__setattr__(config, k, v)
    return config


@pytest.fixture
def app() -> TestClient:
    return TestClient(create_app(config=_config()))


class TestRequestIdMiddleware:
    def test_response_has_request_id_header(self, app: TestClient) -> None:
        resp = app.get("/health")
        assert "x-request-id" in resp.headers
        assert len(resp.headers["x-request-id"]) == 32  # UUID hex

    def test_forwarded_request_id_is_echoed(self, app: TestClient) -> None:
        resp = app.get("/health", headers={"X-Request-ID": "my-trace-123"})
        assert resp.headers["x-request-id"] == "my-trace-123"

    def test_security_headers(self, app: TestClient) -> None:
        resp = app.post("/v1/split", json={"secret": "AB", "num_shares": 3, "threshold": 2})
        assert resp.headers["cache-control"] == "no-store"
        assert resp.headers["x-content-type-options"] == "nosniff"


class TestSplitEndpoint:
    def test_split(self, app: TestClient) -> None:
        resp = app.post("/v1/split", json={"secret": "AB", "num_shares": 5, "threshold": 3})
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["shares"]) == 5
        assert data["num_shares"] == 5
        assert data["threshold"] == 3

    def test_defaults_from_config(self) -> None:
        client = TestClient(create_app(config=_config(default_num_shares=4, default_threshold=2)))
        resp = client.post("/v1/split", json={"secret": "AB"})
        assert resp.status_code == 200
        assert resp.json()["num_shares"] == 4
        assert resp.json()["threshold"] == 2

    def test_empty_secret(self, app: TestClient) -> None:
        resp = app.post("/v1/split", json={"secret": "", "num_shares": 3, "threshold": 2})
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation"
        assert "empty" in resp.json()["detail"]

    def test_secret_too_long(self, app: TestClient) -> None:
        resp = app.post("/v1/split", json={"secret": "a" * 33, "num_shares": 3, "threshold": 2})
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation"

    def test_too_many_shares(self, app: TestClient) -> None:
        resp = app.post("/v1/split", json={"secret": "a", "num_shares": 37, "threshold": 2})
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation"

    def test_lone_surrogate_is_400(self, app: TestClient) -> None:
        resp = app.post(
            "/v1/split",
            content=b'{"secret": "a\\ud800", "num_shares": 3, "threshold": 2}',
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation"

    def test_missing_secret_is_422(self, app: TestClient) -> None:
        resp = app.post("/v1/split", json={"num_shares": 3})
        assert resp.status_code == 422


class TestReconstructEndpoint:
    def test_round_trip(self, app: TestClient) -> None:
        shares = app.post("/v1/split", json={"secret": "AB", "num_shares": 5, "threshold": 3}).json()["shares"]
        resp = app.post("/v1/reconstruct", json={"shares": [shares[1], shares[3], shares[4]]})
        assert resp.status_code == 200
        assert resp.json() == {"secret": "AB"}

    def test_insufficient(self, app: TestClient) -> None:
        shares = app.post("/v1/split", json={"secret": "AB", "num_shares": 5, "threshold": 3}).json()["shares"]
        resp = app.post("/v1/reconstruct", json={"shares": shares[:2]})
        assert resp.status_code == 400
        assert resp.json()["error"] == "insufficient_shares"

    def test_corrupt(self, app: TestClient) -> None:
        shares = app.post("/v1/split", json={"secret": "AB", "num_shares": 3, "threshold": 2}).json()["shares"]
        bad = ("2" if shares[0][0] != "2" else "3") + shares[0][1:]
        resp = app.post("/v1/reconstruct", json={"shares": [bad, shares[1]]})
        assert resp.status_code == 400
        assert resp.json()["error"] == "corrupt_share"

    def test_empty_list(self, app: TestClient) -> None:
        resp = app.post("/v1/reconstruct", json={"shares": []})
        assert resp.status_code == 400
        assert resp.json()["error"] == "insufficient_shares"


class TestInspectEndpoint:
    def test_inspect(self, app: TestClient) -> None:
        resp = app.post("/v1/shares/inspect", json={"share": "312V-2WV"})
        assert resp.status_code == 200
        assert resp.json() == {"threshold": 3, "index": 1, "lanes": 2}

    def test_inspect_corrupt(self, app: TestClient) -> None:
        resp = app.post("/v1/shares/inspect", json={"share": "312V-2WW"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "corrupt_share"

    def test_inspect_too_short(self, app: TestClient) -> None:
        resp = app.post("/v1/shares/inspect", json={"share": "31"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "length"


class TestHealthEndpoints:
    def test_health_returns_ok(self, app: TestClient) -> None:
        resp = app.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["version"] == __version__
        assert data["uptime_seconds"] >= 0

    def test_health_counts_operations(self) -> None:
        tracker = HealthTracker()
        client = TestClient(create_app(config=_config(), health_tracker=tracker))
        shares = client.post("/v1/split", json={"secret": "x", "num_shares": 2, "threshold": 2}).json()["shares"]
        client.post("/v1/reconstruct", json={"shares": shares})
        data = client.get("/health").json()
        assert data["splits"] == 1
        assert data["reconstructions"] == 1

    def test_readiness(self, app: TestClient) -> None:
        resp = app.get("/health/ready")
        assert resp.status_code == 200
        assert resp.json() == {"ready": True, "checks": {"config": True, "engine": True}}

    def test_readiness_bad_config(self) -> None:
        client = TestClient(create_app(config=_config(api_port=0)))
        data = client.get("/health/ready").json()
        assert data["ready"] is False
        assert data["checks"]["config"] is False


class TestLimits:
    def test_rate_limited(self) -> None:
        client = TestClient(create_app(config=_config(rate_limit_capacity=2, rate_limit_rate=0.001)))
        body = {"secret": "x", "num_shares": 2, "threshold": 2}
        assert client.post("/v1/split", json=body).status_code == 200
        assert client.post("/v1/split", json=body).status_code == 200
        resp = client.post("/v1/split", json=body)
        assert resp.status_code == 429
        assert resp.headers["retry-after"] == "1"

    def test_health_not_rate_limited(self) -> None:
        client = TestClient(create_app(config=_config(rate_limit_capacity=1, rate_limit_rate=0.001)))
        for _ in range(5):
            assert client.get("/health").status_code == 200

    def test_body_too_large(self) -> None:
        client = TestClient(create_app(config=_config(max_body_bytes=1024)))
        resp = client.post("/v1/split", json={"secret": "a" * 2000})
        assert resp.status_code == 413


class TestMetricsEndpoint:
    def test_metrics_exposed(self, app: TestClient) -> None:
        app.post("/v1/split", json={"secret": "m", "num_shares": 2, "threshold": 2})
        resp = app.get("/metrics")
        assert resp.status_code == 200
        assert "shardkey_splits_total" in resp.text
        assert "shardkey_uptime_seconds" in resp.text

    def test_share_errors_counted_by_kind(self, app: TestClient) -> None:
        app.post("/v1/shares/inspect", json={"share": "31"})
        resp = app.get("/metrics")
        assert 'shardkey_share_errors_total{kind="length"}' in resp.text
