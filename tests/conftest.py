"""Shared fixtures for cpubars tests."""

import pytest


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Make sure no CPUBARS_* variables leak in from the shell."""
    for name in (
        "CPUBARS_URL",
        "CPUBARS_MODE",
        "CPUBARS_POLL_INTERVAL",
        "CPUBARS_ORDERED",
        "CPUBARS_TIMEOUT",
        "CPUBARS_BAR_WIDTH",
        "CPUBARS_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
