"""Token storage backends for the session context."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

import yaml

from fieldwatch.auth.models import TokenPair
from fieldwatch.core.config import SessionConfig

logger = logging.getLogger(__name__)


@runtime_checkable
class TokenStore(Protocol):
    """Protocol for durable session credential storage."""

    def load(self) -> TokenPair | None: ...

    def save(self, tokens: TokenPair) -> None: ...

    def clear(self) -> None: ...


class MemoryTokenStore:
    """Keeps tokens for the lifetime of the process only."""

    def __init__(self, tokens: TokenPair | None = None) -> None:
        self._tokens = tokens

    def load(self) -> TokenPair | None:
        return self._tokens

    def save(self, tokens: TokenPair) -> None:
        self._tokens = tokens

    def clear(self) -> None:
        self._tokens = None


class YamlTokenStore:
    """Persists tokens to a YAML file so a session survives restarts.

    The file holds a single mapping with ``access`` and ``refresh`` keys.
    A missing, empty or unreadable file is treated as "no session".
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> TokenPair | None:
        if not self._path.exists():
            return None
        try:
            with open(self._path) as fh:
                data = yaml.safe_load(fh) or {}
        except yaml.YAMLError:
            logger.exception("Unreadable token file %s", self._path)
            return None
        if not isinstance(data, dict) or not data.get("access"):
            return None
        return TokenPair(access=data["access"], refresh=data.get("refresh"))

    def save(self, tokens: TokenPair) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w") as fh:
            yaml.safe_dump(tokens.model_dump(), fh, default_flow_style=False)
        self._path.chmod(0o600)

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)


def create_token_store(config: SessionConfig) -> TokenStore:
    """Factory: select a token store based on config.token_store."""
    kind = config.token_store.lower()
    if kind == "memory":
        return MemoryTokenStore()
    if kind == "yaml":
        return YamlTokenStore(config.token_path)
    raise ValueError(
        f"Unknown token store {config.token_store!r}. Available: memory, yaml"
    )
