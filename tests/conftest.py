"""
Pytest configuration for the dronepilot test suite.

Async tests are marked with ``@pytest.mark.anyio`` and run on asyncio only.
"""

import os

import pytest


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    """Keep a developer's environment and dotfiles out of settings-driven tests."""
    for name in list(os.environ):
        if name.startswith("DRONEPILOT_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DRONEPILOT_DATA_DIR", str(tmp_path))
    monkeypatch.chdir(tmp_path)
