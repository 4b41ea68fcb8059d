"""Tests for web dependencies (authentication and authorization)."""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock, patch

import pytest
from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException

from src.modules.auth.models import Role, User
from src.web.auth_routes import LOGIN_PATH
from src.web.dependencies import (
    AuthenticationRequired,
    auth_exception_handler,
    get_current_user,
    require_admin,
    require_auth,
    require_roles,
)


def user_with(*roles: Role) -> User:
    now = datetime.now(UTC)
    return User(
        id=5,
        github_id=500,
        github_username="someone",
        email=None,
        name=None,
        avatar_url=None,
        is_active=True,
        team_id=None,
        created_at=now,
        updated_at=now,
        roles=set(roles),
    )


class TestAuthenticationRequired:
    """Tests for AuthenticationRequired exception."""

    def test_exception_has_correct_status_code(self):
        """AuthenticationRequired carries a 401 status."""
        exc = AuthenticationRequired()
        assert exc.status_code == 401
        assert exc.detail == "Authentication required"


class TestGetCurrentUser:
    """Tests for get_current_user dependency."""

    @patch("src.web.dependencies.get_current_user_from_cookie", new_callable=AsyncMock)
    async def test_records_user_id_on_request_state(self, mock_get_user):
        """The session user id is stored for the rate limiter."""
        mock_get_user.return_value = user_with(Role.DEVELOPER)
        request = Mock(spec=Request)
        request.state = SimpleNamespace()

        result = await get_current_user(request)

        assert result is not None
        assert request.state.user_id == 5
        mock_get_user.assert_called_once_with(request)

    @patch("src.web.dependencies.get_current_user_from_cookie", new_callable=AsyncMock)
    async def test_returns_none_when_not_authenticated(self, mock_get_user):
        mock_get_user.return_value = None
        request = Mock(spec=Request)
        request.state = SimpleNamespace()

        assert await get_current_user(request) is None
        assert not hasattr(request.state, "user_id")


class TestRequireAuth:
    """Tests for require_auth dependency."""

    async def test_returns_user_when_authenticated(self):
        user = user_with(Role.DEVELOPER)
        assert await require_auth(user) is user

    async def test_raises_when_not_authenticated(self):
        with pytest.raises(AuthenticationRequired):
            await require_auth(None)


class TestRequireRoles:
    """Tests for role-gated dependencies."""

    async def test_accepts_any_listed_role(self):
        dependency = require_roles(Role.TECH_LEAD, Role.ADMIN)
        user = user_with(Role.ADMIN)

        assert await dependency(user) is user

    async def test_rejects_missing_role_with_403(self):
        dependency = require_roles(Role.ENGINEERING_MANAGER)

        with pytest.raises(HTTPException) as exc_info:
            await dependency(user_with(Role.DEVELOPER, Role.TECH_LEAD))

        assert exc_info.value.status_code == 403

    async def test_require_admin(self):
        with pytest.raises(HTTPException):
            await require_admin(user_with(Role.ENGINEERING_MANAGER))
        assert (await require_admin(user_with(Role.ADMIN))).is_admin


class TestAuthExceptionHandler:
    """Tests for auth_exception_handler."""

    async def test_api_requests_get_json_401(self):
        request = Mock(spec=Request)
        request.url.path = "/api/v1/users/me"

        response = await auth_exception_handler(request, AuthenticationRequired())

        assert isinstance(response, JSONResponse)
        assert response.status_code == 401
        assert response.body == b'{"detail":"Authentication required"}'

    async def test_pages_redirect_to_github_login(self):
        request = Mock(spec=Request)
        request.url.path = "/dashboard"

        response = await auth_exception_handler(request, AuthenticationRequired())

        assert isinstance(response, RedirectResponse)
        assert response.status_code == 303
        assert response.headers["location"] == LOGIN_PATH
