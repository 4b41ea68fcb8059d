"""Collectors that import GitHub and Datadog data on a schedule."""

from src.modules.collector.authors import AuthorResolver
from src.modules.collector.commit_sync import CommitSyncService
from src.modules.collector.deployment_sync import DeploymentSyncService, LeadTimeProcessor
from src.modules.collector.incident_sync import IncidentSyncResult, IncidentSyncService
from src.modules.collector.models import (
    PRODUCTION_ENVIRONMENT,
    Commit,
    Deployment,
    Incident,
    IncidentSeverity,
    IncidentState,
    PullRequest,
    SyncStatus,
    environment_for_branch,
)
from src.modules.collector.pull_request_sync import PullRequestSyncService
from src.modules.collector.repository import (
    CommitRepository,
    DeploymentRepository,
    IncidentRepository,
    PullRequestRepository,
    SyncStatusRepository,
)
from src.modules.collector.repository_sync import RepositorySyncService
from src.modules.collector.scheduler import ScheduledJob, SyncScheduler
from src.modules.collector.user_sync import UserSyncResult, UserSyncService

__all__ = [
    "PRODUCTION_ENVIRONMENT",
    "AuthorResolver",
    "Commit",
    "CommitRepository",
    "CommitSyncService",
    "Deployment",
    "DeploymentRepository",
    "DeploymentSyncService",
    "Incident",
    "IncidentRepository",
    "IncidentSeverity",
    "IncidentState",
    "IncidentSyncResult",
    "IncidentSyncService",
    "LeadTimeProcessor",
    "PullRequest",
    "PullRequestRepository",
    "PullRequestSyncService",
    "RepositorySyncService",
    "ScheduledJob",
    "SyncScheduler",
    "SyncStatus",
    "SyncStatusRepository",
    "UserSyncResult",
    "UserSyncService",
    "environment_for_branch",
]
