"""User API routes."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from src.modules.auth.exceptions import UserNotFoundError
from src.modules.auth.models import User
from src.modules.auth.schemas import (
    AssignRolesRequest,
    CurrentUserResponse,
    UserSummaryResponse,
)
from src.modules.auth.service import AuthService
from src.web.auth_routes import get_auth_service as get_configured_auth_service
from src.web.dependencies import require_admin, require_auth

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/users", tags=["users"])


def get_auth_service() -> AuthService:
    """Get the auth service, failing with 503 when it is not configured."""
    service = get_configured_auth_service()
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service not configured",
        )
    return service


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(
    user: Annotated[User, Depends(require_auth)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> CurrentUserResponse:
    """Return the signed-in user with current roles."""
    try:
        current = await auth_service.get_user(user.id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return CurrentUserResponse.from_user(current)


@router.get("", response_model=list[UserSummaryResponse])
async def list_users(
    _user: Annotated[User, Depends(require_auth)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> list[UserSummaryResponse]:
    """List active users."""
    users = await auth_service.list_active_users()
    return [UserSummaryResponse.from_user(u) for u in users]


@router.put("/{user_id}/roles", response_model=UserSummaryResponse)
async def assign_roles(
    user_id: int,
    data: AssignRolesRequest,
    admin: Annotated[User, Depends(require_admin)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> UserSummaryResponse:
    """Replace the roles of a user (admin only)."""
    try:
        user = await auth_service.assign_roles(user_id, data.roles)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    logger.info(
        "user_roles_assigned",
        user_id=user_id,
        roles=[r.value for r in data.roles],
        assigned_by=admin.id,
    )
    return UserSummaryResponse.from_user(user)
