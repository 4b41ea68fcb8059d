"""Team management: teams, members and repository assignments."""

from src.modules.teams.exceptions import (
    TeamError,
    TeamHasMembersError,
    TeamMembershipConflictError,
    TeamNameConflictError,
    TeamNotFoundError,
    TeamValidationError,
)
from src.modules.teams.models import Team, TeamDetail, TeamOverview
from src.modules.teams.repository import TeamRepository
from src.modules.teams.service import TeamService

__all__ = [
    "Team",
    "TeamDetail",
    "TeamError",
    "TeamHasMembersError",
    "TeamMembershipConflictError",
    "TeamNameConflictError",
    "TeamNotFoundError",
    "TeamOverview",
    "TeamRepository",
    "TeamService",
    "TeamValidationError",
]
