"""Pydantic schemas for team management API."""

from pydantic import BaseModel, Field

from src.modules.auth.models import Role, User
from src.modules.repositories.schemas import RepositoryConfigResponse
from src.modules.teams.models import TeamDetail, TeamOverview


class TeamCreate(BaseModel):
    """Schema for creating a team."""

    name: str = Field(min_length=1, max_length=100)
    tech_lead_ids: list[int] | None = None


class TeamUpdate(BaseModel):
    """Schema for renaming a team and optionally replacing its tech leads."""

    name: str = Field(min_length=1, max_length=100)
    tech_lead_ids: list[int] | None = None


class AssignMemberRequest(BaseModel):
    user_id: int


class AssignRepositoryRequest(BaseModel):
    repository_id: int


class TeamResponse(BaseModel):
    """Schema for a team in listings."""

    id: int
    name: str
    member_count: int
    tech_lead_count: int
    repository_count: int
    tech_lead_ids: list[int]

    @classmethod
    def from_overview(cls, overview: TeamOverview) -> "TeamResponse":
        return cls(
            id=overview.team.id,
            name=overview.team.name,
            member_count=overview.member_count,
            tech_lead_count=overview.tech_lead_count,
            repository_count=overview.repository_count,
            tech_lead_ids=overview.tech_lead_ids,
        )


class TeamMemberResponse(BaseModel):
    """Schema for a team member."""

    user_id: int
    github_username: str
    email: str | None
    name: str | None
    roles: list[Role]
    is_tech_lead: bool

    @classmethod
    def from_user(cls, user: User) -> "TeamMemberResponse":
        return cls(
            user_id=user.id,
            github_username=user.github_username,
            email=user.email,
            name=user.name,
            roles=sorted(user.roles, key=lambda r: r.value),
            is_tech_lead=user.has_role(Role.TECH_LEAD),
        )


class TeamDetailResponse(BaseModel):
    """Schema for a team with members, tech leads and repositories."""

    id: int
    name: str
    members: list[TeamMemberResponse]
    tech_leads: list[TeamMemberResponse]
    repositories: list[RepositoryConfigResponse]

    @classmethod
    def from_detail(cls, detail: TeamDetail) -> "TeamDetailResponse":
        return cls(
            id=detail.team.id,
            name=detail.team.name,
            members=[TeamMemberResponse.from_user(u) for u in detail.members],
            tech_leads=[TeamMemberResponse.from_user(u) for u in detail.tech_leads],
            repositories=[
                RepositoryConfigResponse.from_config(r) for r in detail.repositories
            ],
        )
