"""Tests for the async monitoring API client."""

from __future__ import annotations

import json

import httpx
import pytest

from fieldwatch.api.client import FieldWatchClient
from fieldwatch.api.models import ProjectsPayload
from fieldwatch.auth.models import TokenPair
from fieldwatch.auth.session import SessionContext
from fieldwatch.auth.store import MemoryTokenStore
from fieldwatch.core.config import ApiConfig
from fieldwatch.core.errors import (
    ApiError,
    CredentialsError,
    NotAuthenticatedError,
    SessionExpiredError,
)
from fieldwatch.core.types import SessionState

BASE_URL = "http://fieldwatch.test"

PROJECTS_BODY = {
    "projects": [
        {
            "polygon_id": 7,
            "name": "Oak Ridge",
            "descp": "North forest block",
            "date_debut": "2024-01-01",
            "date_fin": "2030-12-31",
            "piece_joindre": "/media/oak.jpg",
        }
    ],
    "nodes": [{"id": 1, "name": "N1", "parcelle": 7, "FWI": 12.5}],
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _config(**overrides) -> ApiConfig:
    defaults = {"base_url": BASE_URL, "timeout_seconds": 5, "max_retries": 0}
    defaults.update(overrides)
    return ApiConfig(**defaults)


def _auth_header(request: httpx.Request) -> str | None:
    return request.headers.get("Authorization")


# ---------------------------------------------------------------------------
# Login / refresh / logout
# ---------------------------------------------------------------------------

class TestLogin:
    @pytest.mark.asyncio
    async def test_login_authenticates_session(self, httpx_mock, anonymous_session):
        httpx_mock.add_response(
            url=f"{BASE_URL}/authmobile/login/",
            method="POST",
            json={"access": "acc", "refresh": "ref", "pseudo": "Farmer Joe"},
        )
        async with FieldWatchClient(_config(), anonymous_session) as client:
            result = await client.login("  joe ", "secret1")

        assert result.pseudo == "Farmer Joe"
        assert anonymous_session.state == SessionState.AUTHENTICATED
        assert anonymous_session.access_token == "acc"
        assert anonymous_session.refresh_token == "ref"

        body = json.loads(httpx_mock.get_request().content)
        assert body == {"username": "joe", "password": "secret1"}

    @pytest.mark.asyncio
    async def test_pseudo_defaults_to_username(self, httpx_mock, anonymous_session):
        httpx_mock.add_response(
            url=f"{BASE_URL}/authmobile/login/", method="POST", json={"access": "acc"}
        )
        async with FieldWatchClient(_config(), anonymous_session) as client:
            result = await client.login("joe", "secret1")
        assert result.pseudo == "joe"
        assert result.tokens.refresh is None

    @pytest.mark.asyncio
    async def test_invalid_credentials_never_sent(self, anonymous_session):
        async with FieldWatchClient(_config(), anonymous_session) as client:
            with pytest.raises(CredentialsError):
                await client.login("", "secret1")
        assert anonymous_session.state == SessionState.ANONYMOUS

    @pytest.mark.asyncio
    async def test_rejected_login_carries_detail(self, httpx_mock, anonymous_session):
        httpx_mock.add_response(
            url=f"{BASE_URL}/authmobile/login/",
            method="POST",
            status_code=401,
            json={"detail": "No active account found with the given credentials"},
        )
        async with FieldWatchClient(_config(), anonymous_session) as client:
            with pytest.raises(ApiError) as excinfo:
                await client.login("joe", "wrong-pass")
        assert excinfo.value.status_code == 401
        assert "No active account" in excinfo.value.detail
        assert anonymous_session.state == SessionState.ANONYMOUS

    @pytest.mark.asyncio
    async def test_login_without_access_token(self, httpx_mock, anonymous_session):
        httpx_mock.add_response(url=f"{BASE_URL}/authmobile/login/", method="POST", json={})
        async with FieldWatchClient(_config(), anonymous_session) as client:
            with pytest.raises(ApiError, match="access token"):
                await client.login("joe", "secret1")

    @pytest.mark.asyncio
    async def test_non_json_login_body(self, httpx_mock, anonymous_session):
        httpx_mock.add_response(
            url=f"{BASE_URL}/authmobile/login/", method="POST", text="<html>gateway</html>"
        )
        async with FieldWatchClient(_config(), anonymous_session) as client:
            with pytest.raises(ApiError, match="not JSON"):
                await client.login("joe", "secret1")
        assert anonymous_session.state == SessionState.ANONYMOUS

    @pytest.mark.asyncio
    async def test_json_list_login_body(self, httpx_mock, anonymous_session):
        httpx_mock.add_response(
            url=f"{BASE_URL}/authmobile/login/", method="POST", json=["acc"]
        )
        async with FieldWatchClient(_config(), anonymous_session) as client:
            with pytest.raises(ApiError, match="not a JSON object"):
                await client.login("joe", "secret1")

    @pytest.mark.asyncio
    async def test_login_replaces_existing_session(self, httpx_mock, logged_in_session):
        httpx_mock.add_response(
            url=f"{BASE_URL}/authmobile/login/", method="POST", json={"access": "new"}
        )
        async with FieldWatchClient(_config(), logged_in_session) as client:
            await client.login("joe", "secret1")
        assert logged_in_session.access_token == "new"
        assert logged_in_session.refresh_token is None


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_stores_new_access(self, httpx_mock, logged_in_session):
        httpx_mock.add_response(
            url=f"{BASE_URL}/authmobile/refresh/", method="POST", json={"access": "access-2"}
        )
        async with FieldWatchClient(_config(), logged_in_session) as client:
            token = await client.refresh()
        assert token == "access-2"
        assert logged_in_session.access_token == "access-2"
        assert json.loads(httpx_mock.get_request().content) == {"refresh": "refresh-1"}

    @pytest.mark.asyncio
    async def test_refresh_failure_expires_session(self, httpx_mock, logged_in_session):
        httpx_mock.add_response(
            url=f"{BASE_URL}/authmobile/refresh/",
            method="POST",
            status_code=401,
            json={"detail": "Token is invalid or expired"},
        )
        async with FieldWatchClient(_config(), logged_in_session) as client:
            with pytest.raises(SessionExpiredError):
                await client.refresh()
        assert logged_in_session.state == SessionState.EXPIRED

    @pytest.mark.asyncio
    async def test_non_json_refresh_body_expires_session(self, httpx_mock, logged_in_session):
        httpx_mock.add_response(
            url=f"{BASE_URL}/authmobile/refresh/", method="POST", text="<html>oops</html>"
        )
        async with FieldWatchClient(_config(), logged_in_session) as client:
            with pytest.raises(SessionExpiredError):
                await client.refresh()
        assert logged_in_session.state == SessionState.EXPIRED
        assert logged_in_session.access_token is None

    @pytest.mark.asyncio
    async def test_refresh_without_session(self, anonymous_session):
        async with FieldWatchClient(_config(), anonymous_session) as client:
            with pytest.raises(SessionExpiredError):
                await client.refresh()


class TestLogout:
    @pytest.mark.asyncio
    async def test_logout_posts_refresh_token(self, httpx_mock, logged_in_session):
        httpx_mock.add_response(url=f"{BASE_URL}/authmobile/logout/", method="POST", json={})
        async with FieldWatchClient(_config(), logged_in_session) as client:
            await client.logout()

        request = httpx_mock.get_request()
        assert _auth_header(request) == "Bearer access-1"
        assert json.loads(request.content) == {"refresh": "refresh-1"}
        assert logged_in_session.state == SessionState.ANONYMOUS

    @pytest.mark.asyncio
    async def test_local_logout_even_if_server_fails(self, httpx_mock, logged_in_session):
        httpx_mock.add_response(
            url=f"{BASE_URL}/authmobile/logout/", method="POST", status_code=400
        )
        async with FieldWatchClient(_config(), logged_in_session) as client:
            await client.logout()
        assert logged_in_session.access_token is None

    @pytest.mark.asyncio
    async def test_anonymous_logout_sends_nothing(self, anonymous_session):
        async with FieldWatchClient(_config(), anonymous_session) as client:
            await client.logout()
        assert anonymous_session.state == SessionState.ANONYMOUS


# ---------------------------------------------------------------------------
# Data endpoints
# ---------------------------------------------------------------------------

class TestFetchProjects:
    @pytest.mark.asyncio
    async def test_sends_bearer_and_parses(self, httpx_mock, logged_in_session):
        httpx_mock.add_response(url=f"{BASE_URL}/projC/", method="GET", json=PROJECTS_BODY)
        async with FieldWatchClient(_config(), logged_in_session) as client:
            payload = await client.fetch_projects()

        assert isinstance(payload, ProjectsPayload)
        assert payload.projects[0].name == "Oak Ridge"
        assert payload.nodes[0].fwi == 12.5
        assert _auth_header(httpx_mock.get_request()) == "Bearer access-1"

    @pytest.mark.asyncio
    async def test_requires_token(self, anonymous_session):
        async with FieldWatchClient(_config(), anonymous_session) as client:
            with pytest.raises(NotAuthenticatedError):
                await client.fetch_projects()

    @pytest.mark.asyncio
    async def test_401_refreshes_and_retries_once(self, httpx_mock, logged_in_session):
        httpx_mock.add_response(url=f"{BASE_URL}/projC/", method="GET", status_code=401)
        httpx_mock.add_response(
            url=f"{BASE_URL}/authmobile/refresh/", method="POST", json={"access": "access-2"}
        )
        httpx_mock.add_response(url=f"{BASE_URL}/projC/", method="GET", json=PROJECTS_BODY)

        async with FieldWatchClient(_config(), logged_in_session) as client:
            payload = await client.fetch_projects()

        assert len(payload.projects) == 1
        project_requests = httpx_mock.get_requests(url=f"{BASE_URL}/projC/")
        assert [_auth_header(r) for r in project_requests] == [
            "Bearer access-1",
            "Bearer access-2",
        ]
        assert logged_in_session.state == SessionState.AUTHENTICATED

    @pytest.mark.asyncio
    async def test_401_with_failed_refresh(self, httpx_mock, logged_in_session):
        httpx_mock.add_response(url=f"{BASE_URL}/projC/", method="GET", status_code=401)
        httpx_mock.add_response(
            url=f"{BASE_URL}/authmobile/refresh/", method="POST", status_code=401
        )
        async with FieldWatchClient(_config(), logged_in_session) as client:
            with pytest.raises(SessionExpiredError):
                await client.fetch_projects()
        assert logged_in_session.state == SessionState.EXPIRED

    @pytest.mark.asyncio
    async def test_second_401_is_an_api_error(self, httpx_mock, logged_in_session):
        httpx_mock.add_response(url=f"{BASE_URL}/projC/", method="GET", status_code=401)
        httpx_mock.add_response(
            url=f"{BASE_URL}/authmobile/refresh/", method="POST", json={"access": "access-2"}
        )
        httpx_mock.add_response(url=f"{BASE_URL}/projC/", method="GET", status_code=401)
        async with FieldWatchClient(_config(), logged_in_session) as client:
            with pytest.raises(ApiError) as excinfo:
                await client.fetch_projects()
        assert excinfo.value.status_code == 401

    @pytest.mark.asyncio
    async def test_server_error_retried(self, httpx_mock, logged_in_session):
        httpx_mock.add_response(url=f"{BASE_URL}/projC/", method="GET", status_code=503)
        httpx_mock.add_response(url=f"{BASE_URL}/projC/", method="GET", json=PROJECTS_BODY)
        async with FieldWatchClient(_config(max_retries=1), logged_in_session) as client:
            payload = await client.fetch_projects()
        assert payload.projects[0].polygon_id == 7

    @pytest.mark.asyncio
    async def test_server_error_after_retries(self, httpx_mock, logged_in_session):
        httpx_mock.add_response(url=f"{BASE_URL}/projC/", method="GET", status_code=500)
        async with FieldWatchClient(_config(), logged_in_session) as client:
            with pytest.raises(ApiError) as excinfo:
                await client.fetch_projects()
        assert excinfo.value.status_code == 500

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, httpx_mock, logged_in_session):
        httpx_mock.add_exception(
            httpx.ConnectError("connection refused"), url=f"{BASE_URL}/projC/"
        )
        async with FieldWatchClient(_config(), logged_in_session) as client:
            with pytest.raises(httpx.ConnectError):
                await client.fetch_projects()


class TestFetchClientProjects:
    @pytest.mark.asyncio
    async def test_parses_list(self, httpx_mock, logged_in_session):
        httpx_mock.add_response(
            url=f"{BASE_URL}/client_projects/",
            method="GET",
            json=[{"id": 3, "name": "Olive grove", "description": "Sfax"}],
        )
        async with FieldWatchClient(_config(), logged_in_session) as client:
            projects = await client.fetch_client_projects()
        assert projects[0].id == 3
        assert projects[0].description == "Sfax"


class TestFetchParcels:
    @pytest.mark.asyncio
    async def test_parcels_and_city(self, httpx_mock, anonymous_session):
        httpx_mock.add_response(
            url=f"{BASE_URL}/fetch_parcelles/?polygon_id=7",
            method="GET",
            json={
                "parcelles": [{"polygon": "SRID=4326;POLYGON ((9.01 33.81, 9.02 33.82))"}],
                "city_data": {"latitude": 33.811, "longitude": 9.0748},
            },
        )
        async with FieldWatchClient(_config(), anonymous_session) as client:
            payload = await client.fetch_parcels(7)

        assert len(payload.parcelles) == 1
        assert payload.city_data.latitude == 33.811
        assert _auth_header(httpx_mock.get_request()) is None

    @pytest.mark.asyncio
    async def test_sends_token_when_held(self, httpx_mock, logged_in_session):
        httpx_mock.add_response(
            url=f"{BASE_URL}/fetch_parcelles/?polygon_id=2", method="GET", json={}
        )
        async with FieldWatchClient(_config(), logged_in_session) as client:
            payload = await client.fetch_parcels(2)
        assert payload.parcelles == []
        assert payload.city_data is None
        assert _auth_header(httpx_mock.get_request()) == "Bearer access-1"

    @pytest.mark.asyncio
    async def test_not_found(self, httpx_mock, anonymous_session):
        httpx_mock.add_response(
            url=f"{BASE_URL}/fetch_parcelles/?polygon_id=99",
            method="GET",
            status_code=404,
            json={"detail": "Not found."},
        )
        async with FieldWatchClient(_config(), anonymous_session) as client:
            with pytest.raises(ApiError) as excinfo:
                await client.fetch_parcels(99)
        assert excinfo.value.detail == "Not found."


class TestAttachmentUrl:
    def setup_method(self) -> None:
        session = SessionContext(MemoryTokenStore(TokenPair(access="a")))
        self.client = FieldWatchClient(_config(base_url=f"{BASE_URL}/"), session)

    def test_relative_path(self) -> None:
        assert self.client.attachment_url("/media/oak.jpg") == f"{BASE_URL}/media/oak.jpg"

    def test_absolute_url_untouched(self) -> None:
        url = "https://cdn.example.com/oak.jpg"
        assert self.client.attachment_url(url) == url

    def test_missing(self) -> None:
        assert self.client.attachment_url(None) is None
        assert self.client.attachment_url("") is None
