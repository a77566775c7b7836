"""Shared fixtures."""

import os

import pytest

from dotenv_azure.constants import CONNECTION_STRING_VAR


@pytest.fixture(autouse=True)
def isolated_environ(monkeypatch):
    """Restore os.environ after each test; python-dotenv writes to it directly."""
    monkeypatch.delenv(CONNECTION_STRING_VAR, raising=False)
    saved = dict(os.environ)
    yield
    os.environ.clear()
    os.environ.update(saved)
