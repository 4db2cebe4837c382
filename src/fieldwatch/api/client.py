"""Async client for the farm/forestry monitoring API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from fieldwatch.api.models import ClientProject, ParcelsPayload, ProjectsPayload
from fieldwatch.auth.models import LoginResult, TokenPair
from fieldwatch.auth.session import SessionContext
from fieldwatch.auth.validators import validate_credentials
from fieldwatch.core.config import ApiConfig
from fieldwatch.core.errors import ApiError, NotAuthenticatedError, SessionExpiredError
from fieldwatch.core.types import SessionState

logger = logging.getLogger(__name__)

LOGIN_PATH = "/authmobile/login/"
REFRESH_PATH = "/authmobile/refresh/"
LOGOUT_PATH = "/authmobile/logout/"
PROJECTS_PATH = "/projC/"
CLIENT_PROJECTS_PATH = "/client_projects/"
PARCELS_PATH = "/fetch_parcelles/"


def _detail(resp: httpx.Response) -> str | None:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or None
    if isinstance(body, dict):
        detail = body.get("detail")
        return str(detail) if detail is not None else None
    return None


def _raise_for_status(resp: httpx.Response) -> None:
    if resp.is_success:
        return
    raise ApiError(resp.status_code, _detail(resp))


def _json_object(resp: httpx.Response) -> dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        raise ApiError(resp.status_code, "Response body is not JSON") from None
    if not isinstance(body, dict):
        raise ApiError(resp.status_code, "Response body is not a JSON object")
    return body


class FieldWatchClient:
    """Talks to the monitoring API on behalf of one session.

    Every authenticated call goes through the injected ``SessionContext``.
    A 401 answer triggers one token refresh and one retry of the request.
    """

    def __init__(
        self,
        config: ApiConfig,
        session: SessionContext,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.session = session
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout_seconds),
            transport=transport,
        )
        self._max_retries = config.max_retries

    async def __aenter__(self) -> FieldWatchClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -- authentication ------------------------------------------------------

    async def login(self, username: str, password: str) -> LoginResult:
        """Log in and start an authenticated session.

        Raises:
            CredentialsError: If the input fails local validation.
            ApiError: If the server rejects the login or answers with
                something other than a JSON object.
        """
        credentials = validate_credentials(username, password)
        resp = await self._send("POST", LOGIN_PATH, json=credentials.model_dump())
        _raise_for_status(resp)
        data = _json_object(resp)
        access = data.get("access")
        if not access:
            raise ApiError(resp.status_code, "Login response did not include an access token")

        tokens = TokenPair(access=access, refresh=data.get("refresh"))
        pseudo = data.get("pseudo") or credentials.username
        if self.session.state in (SessionState.AUTHENTICATED, SessionState.REFRESHING):
            self.session.logout()
        self.session.authenticate(tokens, pseudo=pseudo)
        logger.info("Logged in as %s", pseudo)
        return LoginResult(tokens=tokens, pseudo=pseudo)

    async def refresh(self) -> str:
        """Exchange the refresh token for a new access token.

        Returns:
            The new access token.

        Raises:
            SessionExpiredError: If there is no session to refresh or the
                server refuses; the session is then ``expired``.
        """
        if self.session.state != SessionState.AUTHENTICATED:
            raise SessionExpiredError(
                f"No active session to refresh (state {self.session.state.value!r})"
            )
        token = self.session.begin_refresh()
        if not token:
            self.session.fail_refresh()
            raise SessionExpiredError("No refresh token available")

        try:
            resp = await self._send("POST", REFRESH_PATH, json={"refresh": token})
            _raise_for_status(resp)
            data = _json_object(resp)
        except (ApiError, httpx.HTTPError) as exc:
            logger.exception("Token refresh failed")
            self.session.fail_refresh()
            raise SessionExpiredError("Token refresh failed") from exc

        access = data.get("access")
        if not access:
            self.session.fail_refresh()
            raise SessionExpiredError("Refresh response did not include an access token")
        self.session.complete_refresh(access, data.get("refresh"))
        return access

    async def logout(self) -> None:
        """End the session on the server, then locally.

        Local credentials are always dropped, even when the server call fails.
        """
        access = self.session.access_token
        try:
            if access:
                resp = await self._send(
                    "POST",
                    LOGOUT_PATH,
                    json={"refresh": self.session.refresh_token},
                    headers=self._bearer(access),
                )
                _raise_for_status(resp)
        except (ApiError, httpx.HTTPError):
            logger.exception("Server-side logout failed")
        finally:
            self.session.logout()

    # -- data ----------------------------------------------------------------

    async def fetch_projects(self) -> ProjectsPayload:
        """Projects visible to the user, with every sensor node attached to them."""
        resp = await self._authorized("GET", PROJECTS_PATH)
        return ProjectsPayload.model_validate(resp.json())

    async def fetch_client_projects(self) -> list[ClientProject]:
        resp = await self._authorized("GET", CLIENT_PROJECTS_PATH)
        return [ClientProject.model_validate(item) for item in resp.json()]

    async def fetch_parcels(self, project_id: int) -> ParcelsPayload:
        """Boundary geometries and city center for one project.

        The endpoint does not require authentication; the access token is
        sent when one is held.
        """
        headers = self._bearer(self.session.access_token) if self.session.access_token else None
        resp = await self._send(
            "GET", PARCELS_PATH, params={"polygon_id": project_id}, headers=headers
        )
        _raise_for_status(resp)
        return ParcelsPayload.model_validate(resp.json())

    def attachment_url(self, path: str | None) -> str | None:
        """Absolute URL of a project attachment served by the API host."""
        if not path:
            return None
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"

    async def close(self) -> None:
        await self._http.aclose()

    # -- internal ------------------------------------------------------------

    @staticmethod
    def _bearer(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    async def _authorized(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        token = self.session.access_token
        if not token or self.session.state != SessionState.AUTHENTICATED:
            raise NotAuthenticatedError(f"{method} {path} requires an authenticated session")

        resp = await self._send(method, path, headers=self._bearer(token), **kwargs)
        if resp.status_code == 401:
            logger.info("Access token rejected for %s %s, refreshing", method, path)
            token = await self.refresh()
            resp = await self._send(method, path, headers=self._bearer(token), **kwargs)
        _raise_for_status(resp)
        return resp

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        last_exc: Exception | None = None
        for attempt in range(self._max_retries + 1):
            try:
                resp = await self._http.request(method, path, **kwargs)
                if resp.status_code >= 500 and attempt < self._max_retries:
                    last_exc = httpx.HTTPStatusError(
                        f"Server error {resp.status_code}",
                        request=resp.request,
                        response=resp,
                    )
                    await asyncio.sleep(2**attempt * 0.5)
                    continue
                return resp
            except httpx.TransportError as exc:
                last_exc = exc
                if attempt < self._max_retries:
                    logger.warning("%s %s failed (%s), retrying", method, path, exc)
                    await asyncio.sleep(2**attempt * 0.5)
                    continue
                raise
        raise last_exc  # type: ignore[misc]
