"""Web dependencies for authentication and authorization."""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response
from starlette.exceptions import HTTPException

from src.modules.auth.models import Role, User
from src.web.auth_routes import LOGIN_PATH, get_current_user_from_cookie


class AuthenticationRequired(HTTPException):
    """Exception raised when authentication is required.

    API requests receive a 401 JSON body; page requests are redirected to
    the GitHub login.
    """

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required"
        )


async def get_current_user(request: Request) -> User | None:
    """Get the current user from the request cookie.

    Returns:
        User if authenticated, None otherwise.
    """
    user = await get_current_user_from_cookie(request)
    if user is not None:
        request.state.user_id = user.id
    return user


async def require_auth(
    user: Annotated[User | None, Depends(get_current_user)],
) -> User:
    """Dependency that requires an authenticated, active user.

    Raises:
        AuthenticationRequired: If the request carries no valid session.
    """
    if user is None:
        raise AuthenticationRequired()
    return user


def require_roles(*roles: Role) -> Callable[[User], Awaitable[User]]:
    """Build a dependency that requires any of the given roles.

    Args:
        roles: Accepted roles.

    Returns:
        Dependency returning the user, raising 403 when no role matches.
    """

    async def dependency(user: Annotated[User, Depends(require_auth)]) -> User:
        if not user.has_any_role(*roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role",
            )
        return user

    return dependency


require_admin = require_roles(Role.ADMIN)


# Exception handler for AuthenticationRequired
async def auth_exception_handler(
    request: Request, exc: AuthenticationRequired
) -> Response:
    """Handle AuthenticationRequired.

    ``/api`` paths get a 401 JSON body, everything else is redirected to
    the GitHub login.
    """
    if request.url.path.startswith("/api/"):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )
    return RedirectResponse(url=LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)
