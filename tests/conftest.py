"""Shared test fixtures for the shardkey test suite."""

from __future__ import annotations

import os

# Config reads the environment at import time; pin it before any test module
# imports shardkey.config so a local .env cannot change the defaults under test.
os.environ["SHARDKEY_ENV"] = "test"
os.environ.setdefault("CORS_ORIGINS", "http://localhost:3000")
for _key in ("API_PORT", "DEFAULT_NUM_SHARES", "DEFAULT_THRESHOLD", "RATE_LIMIT_CAPACITY", "RATE_LIMIT_RATE"):
    os.environ.pop(_key, None)
