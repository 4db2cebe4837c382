"""Exception hierarchy shared across FieldWatch modules."""

from __future__ import annotations


class FieldWatchError(Exception):
    """Base class for all FieldWatch errors."""


class GeometryParseError(FieldWatchError, ValueError):
    """A geometry string could not be decoded.

    Attributes:
        fragment: The substring that failed to parse.
    """

    def __init__(self, message: str, fragment: str = "") -> None:
        super().__init__(message)
        self.fragment = fragment


class ViewportResolutionError(FieldWatchError, ValueError):
    """No finite map center could be derived from the available inputs."""


class CredentialsError(FieldWatchError, ValueError):
    """Login credentials failed local validation."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class NotAuthenticatedError(FieldWatchError):
    """An authenticated call was made without an access token."""


class SessionExpiredError(FieldWatchError):
    """The session could not be refreshed and must log in again."""


class InvalidSessionTransition(FieldWatchError):
    """A session state change that the state machine does not allow."""


class ApiError(FieldWatchError):
    """The remote API answered with a non-success status."""

    def __init__(self, status_code: int, detail: str | None = None) -> None:
        message = f"API request failed with status {status_code}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail
