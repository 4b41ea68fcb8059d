"""Web authentication routes for the GitHub OAuth flow and logout."""

import secrets
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from src.config import Settings, get_settings
from src.infrastructure.github import GitHubOAuthClient, GitHubOAuthError
from src.modules.auth.exceptions import (
    AccessDeniedError,
    AuthConfigurationError,
    AuthenticationError,
)
from src.modules.auth.models import User
from src.modules.auth.service import AuthService
from src.web.templates import templates

logger = structlog.get_logger()

router = APIRouter(tags=["authentication"])

# Cookie configuration
AUTH_COOKIE_NAME = "auth_token"
STATE_COOKIE_NAME = "oauth_state"
STATE_COOKIE_MAX_AGE = 10 * 60  # 10 minutes in seconds

LOGIN_PATH = "/oauth2/authorization/github"
SETUP_PATH = "/admin/setup"

# Dependency placeholders - configured during app startup
_auth_service: AuthService | None = None
_oauth_client: GitHubOAuthClient | None = None


def get_auth_service() -> AuthService | None:
    """Get the auth service instance, or None if not configured."""
    return _auth_service


def set_auth_service(service: AuthService | None) -> None:
    """Set the auth service instance during app startup."""
    global _auth_service
    _auth_service = service


def get_oauth_client() -> GitHubOAuthClient:
    """Get the OAuth client, failing with 503 when GitHub OAuth is not configured."""
    if _oauth_client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="GitHub login not configured",
        )
    return _oauth_client


def set_oauth_client(client: GitHubOAuthClient | None) -> None:
    global _oauth_client
    _oauth_client = client


def _session_token(request: Request) -> str | None:
    token = request.cookies.get(AUTH_COOKIE_NAME)
    if token:
        return token
    header = request.headers.get("authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value:
        return value.strip()
    return None


async def get_current_user_from_cookie(request: Request) -> User | None:
    """Resolve the session user from the auth cookie or a bearer token.

    The token subject must still be an existing, active user; roles are
    taken from the database, not from the token.

    Returns:
        The active User, or None when unauthenticated.
    """
    auth_service = get_auth_service()
    if auth_service is None:
        return None

    token = _session_token(request)
    if not token:
        return None

    try:
        payload = auth_service.verify_token(token)
    except AuthenticationError:
        return None

    return await auth_service.get_active_user(payload.sub)


def _callback_url(request: Request) -> str:
    return str(request.url_for("oauth_callback"))


@router.get(LOGIN_PATH)
async def start_login(
    request: Request,
    oauth_client: Annotated[GitHubOAuthClient, Depends(get_oauth_client)],
) -> Response:
    """Redirect the browser to GitHub to authorize the application."""
    state = secrets.token_urlsafe(32)
    url = oauth_client.authorization_url(state=state, redirect_uri=_callback_url(request))

    response = RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        key=STATE_COOKIE_NAME,
        value=state,
        max_age=STATE_COOKIE_MAX_AGE,
        httponly=True,
        samesite="lax",
    )
    return response


@router.get("/login/oauth2/code/github", name="oauth_callback", response_class=HTMLResponse)
async def oauth_callback(
    request: Request,
    oauth_client: Annotated[GitHubOAuthClient, Depends(get_oauth_client)],
    settings: Annotated[Settings, Depends(get_settings)],
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
) -> Response:
    """Complete the GitHub OAuth flow and start a session."""
    auth_service = get_auth_service()
    if auth_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service not configured",
        )

    expected_state = request.cookies.get(STATE_COOKIE_NAME)
    if error or not code or not state or not expected_state:
        logger.warning("oauth_callback_rejected", error=error)
        return _login_error(request, "GitHub login was cancelled or incomplete.", 400)
    if not secrets.compare_digest(state, expected_state):
        logger.warning("oauth_state_mismatch")
        return _login_error(request, "Login session expired. Please try again.", 400)

    try:
        access_token = await oauth_client.exchange_code(
            code, redirect_uri=_callback_url(request)
        )
        github_user = await oauth_client.get_authenticated_user(access_token)
        result = await auth_service.process_login(github_user)

    except GitHubOAuthError as e:
        logger.warning("oauth_login_failed", error=str(e))
        return _login_error(request, "Could not complete GitHub login.", 502)

    except AccessDeniedError as e:
        return _login_error(request, str(e), status.HTTP_403_FORBIDDEN)

    except AuthConfigurationError as e:
        return _login_error(request, str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

    if result.is_first_admin:
        redirect_url = SETUP_PATH
    else:
        redirect_url = f"{settings.frontend_url.rstrip('/')}/home"

    response = RedirectResponse(url=redirect_url, status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=auth_service.create_token(result.user),
        max_age=auth_service.expire_seconds,
        httponly=True,  # Prevent JavaScript access
        samesite="lax",  # CSRF protection
        secure=request.url.scheme == "https",
    )
    response.delete_cookie(key=STATE_COOKIE_NAME)

    logger.info(
        "user_session_started",
        user_id=result.user.id,
        username=result.user.github_username,
        first_admin=result.is_first_admin,
    )
    return response


@router.post("/logout")
async def logout(request: Request) -> Response:
    """Log out the user by clearing the auth cookie."""
    user = await get_current_user_from_cookie(request)
    if user:
        logger.info("user_logged_out", user_id=user.id)

    response = JSONResponse({"message": "Logged out"})
    response.delete_cookie(key=AUTH_COOKIE_NAME)
    return response


def _login_error(request: Request, message: str, status_code: int) -> Response:
    return templates.TemplateResponse(
        request=request,
        name="auth/login_error.html",
        context={"error": message, "login_url": LOGIN_PATH},
        status_code=status_code,
    )
