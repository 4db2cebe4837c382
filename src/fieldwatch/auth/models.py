"""Authentication data models."""

from __future__ import annotations

from pydantic import BaseModel


class Credentials(BaseModel):
    username: str
    password: str


class TokenPair(BaseModel):
    access: str
    refresh: str | None = None


class LoginResult(BaseModel):
    tokens: TokenPair
    pseudo: str
