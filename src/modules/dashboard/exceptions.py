"""Dashboard module exceptions."""


class DashboardError(Exception):
    """Base exception for dashboard errors."""

    pass


class NoTeamAssignedError(DashboardError):
    """Raised when a tech lead asks for team metrics without a team."""

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"Tech lead {username} has no team assigned")


class MembersOutsideTeamsError(DashboardError):
    """Raised when requested members do not belong to the selected teams."""

    def __init__(self, member_ids: list[int], team_ids: list[int]) -> None:
        self.member_ids = member_ids
        self.team_ids = team_ids
        super().__init__(
            f"Members {member_ids} do not belong to the selected teams {team_ids}"
        )
