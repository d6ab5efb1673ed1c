"""Tests for the health tracker."""

from __future__ import annotations

from unittest.mock import patch

from shardkey.api.health import HealthTracker


class TestHealthTracker:
    def test_initial_status(self) -> None:
        status = HealthTracker().get_status()
        assert status.status == "ok"
        assert status.splits == 0
        assert status.reconstructions == 0
        assert status.uptime_seconds >= 0

    def test_counters(self) -> None:
        tracker = HealthTracker()
        tracker.record_split()
        tracker.record_split()
        tracker.record_reconstruction()
        status = tracker.get_status()
        assert status.splits == 2
        assert status.reconstructions == 1

    def test_engine_self_test_passes(self) -> None:
        assert HealthTracker.engine_self_test() is True

    def test_engine_self_test_reports_failure(self) -> None:
        with patch("shardkey.api.health.reconstruct", return_value="wrong"):
            assert HealthTracker.engine_self_test() is False

    def test_engine_self_test_catches_errors(self) -> None:
        with patch("shardkey.api.health.split", side_effect=RuntimeError("entropy unavailable")):
            assert HealthTracker.engine_self_test() is False
