"""Builders for test data."""

from datetime import UTC, datetime
from itertools import count

from src.infrastructure.database import Database
from src.modules.auth.models import Role, User
from src.modules.auth.repository import UserRepository
from src.modules.collector.models import Commit, Deployment
from src.modules.collector.repository import CommitRepository, DeploymentRepository

TEST_JWT_SECRET = "test-secret-key-for-testing-only"

_github_ids = count(1000)


def at(day: int, hour: int = 0, month: int = 3, year: int = 2024) -> datetime:
    """A UTC instant in March 2024 unless told otherwise."""
    return datetime(year, month, day, hour, tzinfo=UTC)


async def make_user(
    users: UserRepository,
    username: str,
    *roles: Role,
    team_id: int | None = None,
) -> User:
    """Create a user with the given roles, optionally on a team."""
    user = await users.create(
        next(_github_ids),
        username,
        email=f"{username}@example.com",
        name=username.title(),
        roles=roles,
    )
    if team_id is not None:
        await users.set_team(user.id, team_id)
        user.team_id = team_id
    return user


async def make_commits(
    commits: CommitRepository,
    repository_id: int,
    chain: list[tuple[str, str, datetime]],
    *,
    message: str = "Change",
) -> None:
    """Store a linear history; each commit's parent is the previous one."""
    await commits.save_many(
        [
            Commit(sha=sha, repository_id=repository_id, author=author, message=message, date=date)
            for sha, author, date in chain
        ]
    )
    await commits.save_parent_links(
        [(chain[i][0], chain[i - 1][0]) for i in range(1, len(chain))]
    )


async def make_deployment(
    deployments: DeploymentRepository,
    repository_id: int,
    github_id: int,
    sha: str,
    created_at: datetime,
    *,
    branch: str = "main",
    service_name: str | None = None,
) -> Deployment:
    """Store a successful deployment and return it with its local id."""
    await deployments.save_many(
        [
            Deployment(
                id=0,
                github_id=github_id,
                repository_id=repository_id,
                name="deploy",
                head_branch=branch,
                sha=sha,
                service_name=service_name,
                status="completed",
                conclusion="success",
                environment="production" if branch == "main" else None,
                created_at=created_at,
                updated_at=created_at,
            )
        ]
    )
    return await _deployment_by_github_id(deployments, github_id)


async def _deployment_by_github_id(
    deployments: DeploymentRepository, github_id: int
) -> Deployment:
    database: Database = deployments._db
    row = await database.fetch_one(
        "SELECT id FROM deployments WHERE github_id = ?", (github_id,)
    )
    assert row is not None
    (deployment,) = await deployments.get_many([int(row["id"])])
    return deployment
