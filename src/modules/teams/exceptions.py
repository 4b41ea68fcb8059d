"""Team management exceptions."""


class TeamError(Exception):
    """Base exception for team operations."""

    pass


class TeamNotFoundError(TeamError):
    """Raised when a team is not found."""

    def __init__(self, team_id: int) -> None:
        self.team_id = team_id
        super().__init__(f"Team not found: {team_id}")


class TeamNameConflictError(TeamError):
    """Raised when another team already uses the name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Team with name '{name}' already exists")


class TeamHasMembersError(TeamError):
    """Raised when deleting a team that still has members."""

    def __init__(self, team_id: int) -> None:
        self.team_id = team_id
        super().__init__(
            "Cannot delete team with active members. Remove all members first."
        )


class TeamMembershipConflictError(TeamError):
    """Raised when a user already belongs to a different team."""

    def __init__(self, user_id: int, current_team_id: int) -> None:
        self.user_id = user_id
        self.current_team_id = current_team_id
        super().__init__(
            f"User {user_id} already belongs to team {current_team_id}. "
            "Remove them from that team first."
        )


class TeamValidationError(TeamError):
    """Raised when a team operation references invalid users or repositories."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
