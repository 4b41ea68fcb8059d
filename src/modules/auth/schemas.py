"""Pydantic schemas for authentication and user API."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.modules.auth.models import Role, User


class TokenPayload(BaseModel):
    """Schema for JWT token payload."""

    sub: str  # Subject (user ID)
    login: str
    exp: datetime  # Expiration time
    iat: datetime  # Issued at time


class CurrentUserResponse(BaseModel):
    """The signed-in user."""

    id: int
    github_username: str
    email: str | None
    roles: list[Role]

    @classmethod
    def from_user(cls, user: User) -> "CurrentUserResponse":
        return cls(
            id=user.id,
            github_username=user.github_username,
            email=user.email,
            roles=sorted(user.roles, key=lambda r: r.value),
        )


class UserSummaryResponse(BaseModel):
    """Schema for users in listings (team pickers, role admin)."""

    id: int
    github_username: str
    name: str | None
    avatar_url: str | None
    roles: list[Role]

    @classmethod
    def from_user(cls, user: User) -> "UserSummaryResponse":
        return cls(
            id=user.id,
            github_username=user.github_username,
            name=user.name,
            avatar_url=user.avatar_url,
            roles=sorted(user.roles, key=lambda r: r.value),
        )


class AssignRolesRequest(BaseModel):
    """Schema for replacing a user's roles."""

    roles: list[Role] = Field(min_length=1)
