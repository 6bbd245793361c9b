"""
Shared fixtures for the shardflake test suite.
"""

import os

import pytest

from shardflake.core.config import reset_config
from shardflake.core.interfaces import ClockInterface


class FakeClock(ClockInterface):
    """Manually advanced clock returning a fixed elapsed millisecond value."""

    def __init__(self, elapsed: int = 400_000_000_000):
        self.elapsed = elapsed

    def elapsed_ms(self) -> int:
        return self.elapsed

    def advance(self, ms: int = 1) -> None:
        self.elapsed += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Isolate tests from SHARDFLAKE_* variables, .env files and cached config."""
    for key in list(os.environ):
        if key.startswith("SHARDFLAKE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield
    reset_config()
