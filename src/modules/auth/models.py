"""User and role domain models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from src.infrastructure.database import from_db


class Role(str, Enum):
    """Application roles granted to users."""

    ADMIN = "ADMIN"
    ENGINEERING_MANAGER = "ENGINEERING_MANAGER"
    TECH_LEAD = "TECH_LEAD"
    DEVELOPER = "DEVELOPER"


@dataclass
class User:
    """A GitHub user known to the platform.

    Attributes:
        id: Local user identifier.
        github_id: Numeric GitHub account id.
        github_username: GitHub login (case-insensitive).
        email: Email reported by GitHub, if public.
        name: Display name reported by GitHub.
        avatar_url: GitHub avatar URL.
        is_active: False once the user left the organization.
        team_id: Team the user belongs to, if any.
        created_at: When the user was first seen.
        updated_at: When the user was last updated.
        roles: Granted roles.
    """

    id: int
    github_id: int
    github_username: str
    email: str | None
    name: str | None
    avatar_url: str | None
    is_active: bool
    team_id: int | None
    created_at: datetime
    updated_at: datetime
    roles: set[Role] = field(default_factory=set)

    def has_role(self, role: Role) -> bool:
        return role in self.roles

    def has_any_role(self, *roles: Role) -> bool:
        return any(role in self.roles for role in roles)

    @property
    def is_admin(self) -> bool:
        return Role.ADMIN in self.roles

    @classmethod
    def from_row(
        cls, row: dict[str, object], roles: set[Role] | None = None
    ) -> "User":
        """Create a User from a database row.

        Args:
            row: Database row as a dictionary.
            roles: Roles loaded from the user_roles table.

        Returns:
            User instance.
        """
        return cls(
            id=int(row["id"]),
            github_id=int(row["github_id"]),
            github_username=str(row["github_username"]),
            email=str(row["email"]) if row["email"] else None,
            name=str(row["name"]) if row["name"] else None,
            avatar_url=str(row["avatar_url"]) if row["avatar_url"] else None,
            is_active=bool(row["is_active"]),
            team_id=int(row["team_id"]) if row["team_id"] is not None else None,
            created_at=from_db(row["created_at"]),
            updated_at=from_db(row["updated_at"]),
            roles=set(roles or ()),
        )


@dataclass
class LoginResult:
    """Outcome of a successful OAuth login."""

    user: User
    is_first_admin: bool
