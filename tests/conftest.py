"""Shared test fixtures."""

from __future__ import annotations

import pytest

from fieldwatch.auth.models import TokenPair
from fieldwatch.auth.session import SessionContext
from fieldwatch.auth.store import MemoryTokenStore


@pytest.fixture
def anonymous_session() -> SessionContext:
    return SessionContext(MemoryTokenStore())


@pytest.fixture
def logged_in_session() -> SessionContext:
    """A session resumed from previously stored tokens."""
    return SessionContext(MemoryTokenStore(TokenPair(access="access-1", refresh="refresh-1")))
