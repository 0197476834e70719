"""Shared fixtures for permstore tests."""

from __future__ import annotations

import pytest

from permstore import Store


@pytest.fixture
def store() -> Store:
    """Empty store with the default read-write policy."""
    return Store()
