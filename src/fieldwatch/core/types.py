"""Core type definitions shared across FieldWatch modules."""

from __future__ import annotations

from enum import StrEnum


class SessionState(StrEnum):
    """Lifecycle states of a user session."""

    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"
    EXPIRED = "expired"
