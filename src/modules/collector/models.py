"""Domain models for data collected from GitHub and Datadog."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from src.infrastructure.database import from_db

PRODUCTION_ENVIRONMENT = "production"
PRODUCTION_BRANCH = "main"

MERGE_MESSAGE_PREFIXES = (
    "merge pull request",
    "merge branch",
    "merge remote-tracking branch",
)


class IncidentState(str, Enum):
    """Lifecycle state of a Datadog incident."""

    ACTIVE = "ACTIVE"
    STABLE = "STABLE"
    RESOLVED = "RESOLVED"

    @classmethod
    def from_datadog(cls, value: str | None) -> "IncidentState":
        """Map a Datadog state, case-insensitively; unknown values are ACTIVE."""
        normalized = (value or "").strip().lower()
        if normalized == "resolved":
            return cls.RESOLVED
        if normalized == "stable":
            return cls.STABLE
        return cls.ACTIVE


class IncidentSeverity(str, Enum):
    """Incident severity, SEV1 being the most severe."""

    SEV1 = "SEV1"
    SEV2 = "SEV2"
    SEV3 = "SEV3"
    SEV4 = "SEV4"
    SEV5 = "SEV5"

    @classmethod
    def from_datadog(cls, value: str | None) -> "IncidentSeverity":
        """Map ``SEV-1``/``sev1`` style values; anything unknown is SEV5."""
        normalized = (value or "").upper().replace("-", "").strip()
        if normalized in {"SEV1", "SEV2", "SEV3", "SEV4"}:
            return cls(normalized)
        return cls.SEV5


@dataclass
class Commit:
    """A commit stored for lead time calculation.

    Attributes:
        sha: Commit SHA.
        repository_id: Repository the commit was collected from.
        author: Resolved GitHub username (or a fallback name).
        message: Commit message.
        date: Author date.
        parent_shas: Parents known locally.
    """

    sha: str
    repository_id: int
    author: str
    message: str
    date: datetime
    parent_shas: list[str] = field(default_factory=list)

    @property
    def is_merge(self) -> bool:
        """Whether this is a merge commit, by parent count or message."""
        if len(self.parent_shas) >= 2:
            return True
        message = (self.message or "").strip().lower()
        return message.startswith(MERGE_MESSAGE_PREFIXES)

    @classmethod
    def from_row(
        cls, row: dict[str, object], parent_shas: list[str] | None = None
    ) -> "Commit":
        return cls(
            sha=str(row["sha"]),
            repository_id=int(row["repository_id"]),
            author=str(row["author"]),
            message=str(row["message"] or ""),
            date=from_db(row["date"]),
            parent_shas=list(parent_shas or []),
        )


@dataclass
class PullRequest:
    """A pull request stored for dashboard statistics."""

    id: int
    repository_id: int
    number: int | None
    title: str | None
    state: str
    created_at: datetime | None
    updated_at: datetime | None
    merged_at: datetime | None
    first_commit_sha: str | None

    @property
    def is_merged(self) -> bool:
        return self.state == "closed" and self.merged_at is not None

    @property
    def is_open(self) -> bool:
        return self.state == "open"

    @classmethod
    def from_row(cls, row: dict[str, object]) -> "PullRequest":
        return cls(
            id=int(row["id"]),
            repository_id=int(row["repository_id"]),
            number=int(row["number"]) if row["number"] is not None else None,
            title=str(row["title"]) if row["title"] else None,
            state=str(row["state"]),
            created_at=from_db(row["created_at"]),
            updated_at=from_db(row["updated_at"]),
            merged_at=from_db(row["merged_at"]),
            first_commit_sha=(
                str(row["first_commit_sha"]) if row["first_commit_sha"] else None
            ),
        )


@dataclass
class Deployment:
    """A successful deployment workflow run."""

    id: int
    github_id: int
    repository_id: int
    name: str | None
    head_branch: str | None
    sha: str
    service_name: str | None
    status: str | None
    conclusion: str | None
    environment: str | None
    created_at: datetime
    updated_at: datetime | None
    lead_time_processed: bool = False

    @classmethod
    def from_row(cls, row: dict[str, object]) -> "Deployment":
        return cls(
            id=int(row["id"]),
            github_id=int(row["github_id"]),
            repository_id=int(row["repository_id"]),
            name=str(row["name"]) if row["name"] else None,
            head_branch=str(row["head_branch"]) if row["head_branch"] else None,
            sha=str(row["sha"]),
            service_name=str(row["service_name"]) if row["service_name"] else None,
            status=str(row["status"]) if row["status"] else None,
            conclusion=str(row["conclusion"]) if row["conclusion"] else None,
            environment=str(row["environment"]) if row["environment"] else None,
            created_at=from_db(row["created_at"]),
            updated_at=from_db(row["updated_at"]),
            lead_time_processed=bool(row["lead_time_processed"]),
        )


def environment_for_branch(head_branch: str | None) -> str | None:
    """Runs on the production branch are production deployments; others have no environment."""
    if head_branch == PRODUCTION_BRANCH:
        return PRODUCTION_ENVIRONMENT
    return None


@dataclass
class Incident:
    """A Datadog incident linked to a repository through its service name."""

    id: int
    datadog_incident_id: str
    repository_id: int | None
    title: str | None
    state: IncidentState
    severity: IncidentSeverity
    start_time: datetime
    resolved_time: datetime | None
    duration_seconds: int | None
    service_name: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: dict[str, object]) -> "Incident":
        return cls(
            id=int(row["id"]),
            datadog_incident_id=str(row["datadog_incident_id"]),
            repository_id=(
                int(row["repository_id"]) if row["repository_id"] is not None else None
            ),
            title=str(row["title"]) if row["title"] else None,
            state=IncidentState(row["state"]),
            severity=IncidentSeverity(row["severity"]),
            start_time=from_db(row["start_time"]),
            resolved_time=from_db(row["resolved_time"]),
            duration_seconds=(
                int(row["duration_seconds"])
                if row["duration_seconds"] is not None
                else None
            ),
            service_name=str(row["service_name"]) if row["service_name"] else None,
            created_at=from_db(row["created_at"]),
            updated_at=from_db(row["updated_at"]),
        )


@dataclass
class SyncStatus:
    """Watermark of the last successful run of a sync job."""

    job_name: str
    last_successful_run: datetime

    @classmethod
    def from_row(cls, row: dict[str, object]) -> "SyncStatus":
        return cls(
            job_name=str(row["job_name"]),
            last_successful_run=from_db(row["last_successful_run"]),
        )
