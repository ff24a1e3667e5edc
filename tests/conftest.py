"""Shared test fixtures for ripplestore."""

from __future__ import annotations

import pytest

from ripplestore import reset_runtime


@pytest.fixture(autouse=True)
def fresh_runtime():
    """Leave no tracking frame or pending notification behind a test."""
    yield
    reset_runtime()
