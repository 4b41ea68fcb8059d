"""GitHub OAuth web application flow."""

from urllib.parse import urlencode

import httpx
import structlog

from src.infrastructure.github.exceptions import (
    GitHubConfigurationError,
    GitHubOAuthError,
)
from src.infrastructure.github.schemas import GitHubUser

logger = structlog.get_logger()


class GitHubOAuthClient:
    """Exchanges OAuth authorization codes and reads the signed-in user.

    The flow is the standard web application flow: redirect to
    ``authorize_url``, receive ``code`` on the callback, exchange it for an
    access token, then call ``GET /user`` with that token.
    """

    SCOPES = "read:user user:email read:org"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        authorize_url: str = "https://github.com/login/oauth/authorize",
        token_url: str = "https://github.com/login/oauth/access_token",
        api_url: str = "https://api.github.com",
        timeout_seconds: float = 10.0,
    ) -> None:
        if not client_id or not client_secret:
            raise GitHubConfigurationError("GitHub OAuth client id and secret are required")

        self._client_id = client_id
        self._client_secret = client_secret
        self._authorize_url = authorize_url
        self._token_url = token_url
        self._api_url = api_url.rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            headers={"Accept": "application/json"},
        )

    def authorization_url(self, *, state: str, redirect_uri: str) -> str:
        """Build the GitHub authorization URL for a login attempt."""
        query = urlencode(
            {
                "client_id": self._client_id,
                "redirect_uri": redirect_uri,
                "scope": self.SCOPES,
                "state": state,
            }
        )
        return f"{self._authorize_url}?{query}"

    async def exchange_code(self, code: str, *, redirect_uri: str) -> str:
        """Exchange an authorization code for an access token.

        Raises:
            GitHubOAuthError: If GitHub rejects the code or cannot be reached.
        """
        try:
            response = await self._client.post(
                self._token_url,
                data={
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "code": code,
                    "redirect_uri": redirect_uri,
                },
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning("github_oauth_exchange_failed", status_code=e.response.status_code)
            raise GitHubOAuthError(
                "GitHub rejected the authorization code",
                status_code=e.response.status_code,
            ) from e
        except httpx.TransportError as e:
            logger.error("github_oauth_connection_error", error=str(e))
            raise GitHubOAuthError("Unable to reach GitHub") from e

        data = response.json()
        token = data.get("access_token")
        if not token:
            logger.warning("github_oauth_exchange_failed", error=data.get("error"))
            raise GitHubOAuthError(
                data.get("error_description") or "No access token returned"
            )
        return str(token)

    async def get_authenticated_user(self, access_token: str) -> GitHubUser:
        """Fetch the user the access token belongs to.

        Raises:
            GitHubOAuthError: If the request fails or the payload lacks id/login.
        """
        try:
            response = await self._client.get(
                f"{self._api_url}/user",
                headers={
                    "Authorization": f"token {access_token}",
                    "Accept": "application/vnd.github+json",
                },
            )
            response.raise_for_status()
            return GitHubUser.from_api(response.json())
        except httpx.HTTPStatusError as e:
            raise GitHubOAuthError(
                "Unable to load GitHub user", status_code=e.response.status_code
            ) from e
        except httpx.TransportError as e:
            raise GitHubOAuthError("Unable to reach GitHub") from e
        except ValueError as e:
            raise GitHubOAuthError(str(e)) from e

    async def close(self) -> None:
        await self._client.aclose()
