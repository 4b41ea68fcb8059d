"""Team domain models."""

from dataclasses import dataclass, field
from datetime import datetime

from src.infrastructure.database import from_db
from src.modules.auth.models import User
from src.modules.repositories.models import RepositoryConfig


@dataclass
class Team:
    """A development team.

    Attributes:
        id: Local identifier.
        name: Unique team name.
        created_at: When the team was created.
        updated_at: When the team was last renamed.
    """

    id: int
    name: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: dict[str, object]) -> "Team":
        return cls(
            id=int(row["id"]),
            name=str(row["name"]),
            created_at=from_db(row["created_at"]),
            updated_at=from_db(row["updated_at"]),
        )


@dataclass
class TeamOverview:
    """A team with its membership counts, as shown in listings."""

    team: Team
    member_count: int
    tech_lead_count: int
    repository_count: int
    tech_lead_ids: list[int] = field(default_factory=list)


@dataclass
class TeamDetail:
    """A team with its members, tech leads and repositories."""

    team: Team
    members: list[User]
    tech_leads: list[User]
    repositories: list[RepositoryConfig]
