"""Session context: the single owner of the user's credentials.

A ``SessionContext`` is created once at startup and handed to every
component that talks to the API. It tracks where the session is in its
lifecycle and writes every token change through to a ``TokenStore``::

    anonymous --authenticate--> authenticated
    expired   --authenticate--> authenticated
    authenticated --begin_refresh--> refreshing
    refreshing --complete_refresh--> authenticated
    refreshing --fail_refresh--> expired
    (any) --logout--> anonymous
"""

from __future__ import annotations

import logging

from fieldwatch.auth.models import TokenPair
from fieldwatch.auth.store import MemoryTokenStore, TokenStore
from fieldwatch.core.errors import InvalidSessionTransition
from fieldwatch.core.types import SessionState

logger = logging.getLogger(__name__)

_ALLOWED: dict[str, set[SessionState]] = {
    "authenticate": {SessionState.ANONYMOUS, SessionState.EXPIRED},
    "begin_refresh": {SessionState.AUTHENTICATED},
    "complete_refresh": {SessionState.REFRESHING},
    "fail_refresh": {SessionState.REFRESHING},
}


class SessionContext:
    """Holds the current tokens and session state.

    Tokens already present in the store are picked up on construction, so
    a persisted session resumes as ``authenticated``.
    """

    def __init__(self, store: TokenStore | None = None) -> None:
        self._store = store if store is not None else MemoryTokenStore()
        self._tokens = self._store.load()
        self._pseudo: str | None = None
        self._state = SessionState.AUTHENTICATED if self._tokens else SessionState.ANONYMOUS

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def pseudo(self) -> str | None:
        return self._pseudo

    @property
    def access_token(self) -> str | None:
        return self._tokens.access if self._tokens else None

    @property
    def refresh_token(self) -> str | None:
        return self._tokens.refresh if self._tokens else None

    @property
    def is_authenticated(self) -> bool:
        return self._state == SessionState.AUTHENTICATED

    def _transition(self, action: str, target: SessionState) -> None:
        if self._state not in _ALLOWED[action]:
            raise InvalidSessionTransition(
                f"Cannot {action.replace('_', ' ')} from state {self._state.value!r}"
            )
        logger.debug("Session %s: %s -> %s", action, self._state.value, target.value)
        self._state = target

    def authenticate(self, tokens: TokenPair, pseudo: str | None = None) -> None:
        """Record a successful login."""
        self._transition("authenticate", SessionState.AUTHENTICATED)
        self._tokens = tokens
        self._pseudo = pseudo
        self._store.save(tokens)

    def begin_refresh(self) -> str | None:
        """Enter the refreshing state and return the token to refresh with.

        Servers that issue no separate refresh token accept the access token
        instead, so it is returned when no refresh token is held.
        """
        self._transition("begin_refresh", SessionState.REFRESHING)
        return self.refresh_token or self.access_token

    def complete_refresh(self, access: str, refresh: str | None = None) -> None:
        """Replace the access token (and, when rotated, the refresh token)."""
        self._transition("complete_refresh", SessionState.AUTHENTICATED)
        self._tokens = TokenPair(access=access, refresh=refresh or self.refresh_token)
        self._store.save(self._tokens)

    def fail_refresh(self) -> None:
        """Mark the session as expired; a new login is required."""
        self._transition("fail_refresh", SessionState.EXPIRED)
        self._tokens = None
        self._store.clear()

    def logout(self) -> None:
        """Drop all credentials. Allowed from every state."""
        logger.debug("Session logout: %s -> anonymous", self._state.value)
        self._state = SessionState.ANONYMOUS
        self._tokens = None
        self._pseudo = None
        self._store.clear()
