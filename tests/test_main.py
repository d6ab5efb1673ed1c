"""Tests for the server entry point."""

from __future__ import annotations

from shardkey.config import Config
from shardkey.main import build_server


class TestBuildServer:
    def test_binds_configured_address(self) -> None:
        config = Config()
        object.__setattr__(config, "api_host", "127.0.0.2")
        object.__setattr__(config, "api_port", 9101)
        server = build_server(config)
        assert server.config.host == "127.0.0.2"
        assert server.config.port == 9101
        assert server.config.timeout_graceful_shutdown == 10
