"""Team management API routes."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status

from src.modules.auth.models import Role, User
from src.modules.repositories.schemas import RepositoryConfigResponse
from src.modules.teams.exceptions import (
    TeamError,
    TeamHasMembersError,
    TeamMembershipConflictError,
    TeamNameConflictError,
    TeamNotFoundError,
    TeamValidationError,
)
from src.modules.teams.schemas import (
    AssignMemberRequest,
    AssignRepositoryRequest,
    TeamCreate,
    TeamDetailResponse,
    TeamMemberResponse,
    TeamResponse,
    TeamUpdate,
)
from src.modules.teams.service import TeamService
from src.web.dependencies import require_auth, require_roles

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/teams", tags=["teams"])

require_team_manager = require_roles(Role.ADMIN, Role.ENGINEERING_MANAGER)

# Dependency placeholder - configured during app startup
_team_service: TeamService | None = None


def get_team_service() -> TeamService:
    """Get the team service instance."""
    if _team_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Team service not configured",
        )
    return _team_service


def set_team_service(service: TeamService) -> None:
    """Set the team service instance during app startup."""
    global _team_service
    _team_service = service


def _to_http_error(error: TeamError) -> HTTPException:
    if isinstance(error, TeamNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, TeamMembershipConflictError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(
        error, (TeamNameConflictError, TeamHasMembersError, TeamValidationError)
    ):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(error))


@router.post("", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(
    data: TeamCreate,
    user: Annotated[User, Depends(require_team_manager)],
    service: Annotated[TeamService, Depends(get_team_service)],
) -> TeamResponse:
    """Create a team with an optional set of tech leads."""
    try:
        overview = await service.create_team(data.name, data.tech_lead_ids)
    except TeamError as e:
        raise _to_http_error(e) from e

    logger.info("team_created_via_api", team_id=overview.team.id, created_by=user.id)
    return TeamResponse.from_overview(overview)


@router.get("", response_model=list[TeamResponse])
async def list_teams(
    _user: Annotated[User, Depends(require_auth)],
    service: Annotated[TeamService, Depends(get_team_service)],
) -> list[TeamResponse]:
    return [TeamResponse.from_overview(o) for o in await service.list_teams()]


@router.get("/{team_id}", response_model=TeamDetailResponse)
async def get_team(
    team_id: int,
    _user: Annotated[User, Depends(require_auth)],
    service: Annotated[TeamService, Depends(get_team_service)],
) -> TeamDetailResponse:
    try:
        detail = await service.get_team(team_id)
    except TeamError as e:
        raise _to_http_error(e) from e
    return TeamDetailResponse.from_detail(detail)


@router.put("/{team_id}", response_model=TeamResponse)
async def update_team(
    team_id: int,
    data: TeamUpdate,
    _user: Annotated[User, Depends(require_team_manager)],
    service: Annotated[TeamService, Depends(get_team_service)],
) -> TeamResponse:
    """Rename a team; a provided ``tech_lead_ids`` list replaces its tech leads."""
    try:
        overview = await service.update_team(team_id, data.name, data.tech_lead_ids)
    except TeamError as e:
        raise _to_http_error(e) from e
    return TeamResponse.from_overview(overview)


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team(
    team_id: int,
    _user: Annotated[User, Depends(require_team_manager)],
    service: Annotated[TeamService, Depends(get_team_service)],
) -> Response:
    try:
        await service.delete_team(team_id)
    except TeamError as e:
        raise _to_http_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{team_id}/members", response_model=list[TeamMemberResponse])
async def list_members(
    team_id: int,
    _user: Annotated[User, Depends(require_auth)],
    service: Annotated[TeamService, Depends(get_team_service)],
) -> list[TeamMemberResponse]:
    try:
        members = await service.list_members(team_id)
    except TeamError as e:
        raise _to_http_error(e) from e
    return [TeamMemberResponse.from_user(m) for m in members]


@router.post("/{team_id}/members", status_code=status.HTTP_200_OK)
async def assign_member(
    team_id: int,
    data: AssignMemberRequest,
    _user: Annotated[User, Depends(require_team_manager)],
    service: Annotated[TeamService, Depends(get_team_service)],
) -> Response:
    """Add a developer or tech lead to the team."""
    try:
        await service.assign_member(team_id, data.user_id)
    except TeamError as e:
        raise _to_http_error(e) from e
    return Response(status_code=status.HTTP_200_OK)


@router.delete("/{team_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    team_id: int,
    user_id: int,
    _user: Annotated[User, Depends(require_team_manager)],
    service: Annotated[TeamService, Depends(get_team_service)],
) -> Response:
    try:
        await service.remove_member(team_id, user_id)
    except TeamError as e:
        raise _to_http_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{team_id}/repositories", response_model=list[RepositoryConfigResponse])
async def list_repositories(
    team_id: int,
    _user: Annotated[User, Depends(require_auth)],
    service: Annotated[TeamService, Depends(get_team_service)],
) -> list[RepositoryConfigResponse]:
    try:
        repositories = await service.list_repositories(team_id)
    except TeamError as e:
        raise _to_http_error(e) from e
    return [RepositoryConfigResponse.from_config(r) for r in repositories]


@router.post("/{team_id}/repositories", status_code=status.HTTP_200_OK)
async def assign_repository(
    team_id: int,
    data: AssignRepositoryRequest,
    _user: Annotated[User, Depends(require_team_manager)],
    service: Annotated[TeamService, Depends(get_team_service)],
) -> Response:
    try:
        await service.assign_repository(team_id, data.repository_id)
    except TeamError as e:
        raise _to_http_error(e) from e
    return Response(status_code=status.HTTP_200_OK)


@router.delete(
    "/{team_id}/repositories/{repository_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def remove_repository(
    team_id: int,
    repository_id: int,
    _user: Annotated[User, Depends(require_team_manager)],
    service: Annotated[TeamService, Depends(get_team_service)],
) -> Response:
    try:
        await service.remove_repository(team_id, repository_id)
    except TeamError as e:
        raise _to_http_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
