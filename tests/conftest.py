"""Pytest fixtures for the backlog analysis tests."""

from __future__ import annotations

import pytest

from models.schemas import Signal
from tests.helpers import MockProvider


@pytest.fixture
def make_signal():
    def _make(title: str, **kwargs) -> Signal:
        kwargs.setdefault("kind", "todo")
        kwargs.setdefault("source", "todos")
        kwargs.setdefault("confidence", 0.5)
        return Signal(title=title, **kwargs)
    return _make


@pytest.fixture
def signals(make_signal):
    return [
        make_signal("Fix auth token refresh", file_path="auth/token.go", line=12,
                    confidence=0.9, tags=["auth", "security"]),
        make_signal("Rotate signing keys", file_path="auth/keys.go", line=40,
                    confidence=0.6, tags=["auth"]),
        make_signal("Add index on users.email", kind="fixme", source="gitlog",
                    file_path="db/schema.sql", confidence=0.7, tags=["db"]),
        make_signal("Update README badges", file_path="README.md",
                    confidence=0.3, tags=["docs"]),
    ]


@pytest.fixture
def failing_provider():
    return MockProvider(RuntimeError("connection refused"))
