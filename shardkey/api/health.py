"""Health tracking: uptime and operation counters for /health."""

from __future__ import annotations

import time

import structlog

from shardkey import __version__
from shardkey.api.models import HealthResponse
from shardkey.core.sss import reconstruct, split

log = structlog.get_logger()

_PROBE_SECRET = "ready"


class HealthTracker:
    """Tracks service uptime and how many operations succeeded.

    Thread safety: not needed. All callers run on the asyncio event loop.
    """

    def __init__(self) -> None:
        self._start_time = time.monotonic()
        self._splits = 0
        self._reconstructions = 0

    def record_split(self) -> None:
        self._splits += 1

    def record_reconstruction(self) -> None:
        self._reconstructions += 1

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self._start_time

    def get_status(self) -> HealthResponse:
        return HealthResponse(
            status="ok",
            version=__version__,
            uptime_seconds=round(self.uptime_seconds, 1),
            splits=self._splits,
            reconstructions=self._reconstructions,
        )

    @staticmethod
    def engine_self_test() -> bool:
        """Split and recover a fixed probe, using a non-leading subset of shares."""
        try:
            shares = split(_PROBE_SECRET, 3, 2)
            return reconstruct(shares[1:]) == _PROBE_SECRET
        except Exception as e:
            log.error("engine_self_test_failed", error=str(e), exc_info=True)
            return False
