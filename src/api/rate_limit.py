"""Rate limiting configuration using slowapi."""

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from src.config import get_settings


def _get_rate_limit_key(request: Request) -> str:
    """Get the rate limit key from the request.

    Authenticated requests are limited per user; the user id is set on
    ``request.state`` by the authentication dependency. Anything else falls
    back to the remote address.
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id is not None:
        return f"user:{user_id}"
    addr: str = get_remote_address(request)
    return addr


# Create limiter instance
limiter = Limiter(key_func=_get_rate_limit_key)


def get_rate_limit_string() -> str:
    """Get the rate limit string from settings."""
    settings = get_settings()
    return f"{settings.rate_limit_requests}/{settings.rate_limit_window}"


async def rate_limit_exceeded_handler(
    request: Request,
    _exc: RateLimitExceeded,
) -> Response:
    """Handle rate limit exceeded errors with a JSON body."""
    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please wait a moment before triggering another sync.",
        },
    )
