"""Developer, tech lead and engineering manager dashboards."""

from src.modules.dashboard.calculator import DashboardCalculator
from src.modules.dashboard.exceptions import (
    DashboardError,
    MembersOutsideTeamsError,
    NoTeamAssignedError,
)
from src.modules.dashboard.models import (
    CommitSetMetrics,
    DashboardFilters,
    DeveloperMetrics,
    EngineeringManagerMetrics,
    TeamMemberStats,
    TeamMetrics,
    TechLeadMetrics,
)
from src.modules.dashboard.service import DashboardService

__all__ = [
    "CommitSetMetrics",
    "DashboardCalculator",
    "DashboardError",
    "DashboardFilters",
    "DashboardService",
    "DeveloperMetrics",
    "EngineeringManagerMetrics",
    "MembersOutsideTeamsError",
    "NoTeamAssignedError",
    "TeamMemberStats",
    "TeamMetrics",
    "TechLeadMetrics",
]
