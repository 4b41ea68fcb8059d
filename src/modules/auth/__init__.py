"""Authentication module: GitHub users, roles and sessions."""

from src.modules.auth.exceptions import (
    AccessDeniedError,
    AuthConfigurationError,
    AuthenticationError,
    AuthError,
    UserNotFoundError,
)
from src.modules.auth.models import LoginResult, Role, User
from src.modules.auth.repository import UserRepository
from src.modules.auth.schemas import (
    AssignRolesRequest,
    CurrentUserResponse,
    TokenPayload,
    UserSummaryResponse,
)
from src.modules.auth.service import AuthService, MembershipChecker

__all__ = [
    "AccessDeniedError",
    "AssignRolesRequest",
    "AuthConfigurationError",
    "AuthError",
    "AuthService",
    "AuthenticationError",
    "CurrentUserResponse",
    "LoginResult",
    "MembershipChecker",
    "Role",
    "TokenPayload",
    "User",
    "UserNotFoundError",
    "UserRepository",
    "UserSummaryResponse",
]
