"""Local validation of login form input."""

from __future__ import annotations

from fieldwatch.auth.models import Credentials
from fieldwatch.core.errors import CredentialsError

MIN_PASSWORD_LENGTH = 5


def username_error(username: str) -> str | None:
    if not username or not username.strip():
        return "Username can't be empty"
    return None


def password_error(password: str) -> str | None:
    if not password:
        return "Password can't be empty"
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
    return None


def validate_credentials(username: str, password: str) -> Credentials:
    """Check login input and return the credentials to send.

    The username is trimmed; the password is kept verbatim.

    Raises:
        CredentialsError: On the first failing field, username first.
    """
    error = username_error(username)
    if error:
        raise CredentialsError("username", error)
    error = password_error(password)
    if error:
        raise CredentialsError("password", error)
    return Credentials(username=username.strip(), password=password)
