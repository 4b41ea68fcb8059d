"""Tests for commit synchronization and author resolution."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.infrastructure.database import Database, utc_now
from src.infrastructure.github import GitHubCommit, GitHubUnavailableError
from src.modules.auth.repository import UserRepository
from src.modules.collector.authors import UNKNOWN_AUTHOR, AuthorResolver
from src.modules.collector.commit_sync import CommitSyncService
from src.modules.collector.models import Commit
from src.modules.collector.repository import CommitRepository, SyncStatusRepository
from src.modules.repositories.repository import RepositoryConfigRepository
from tests.helpers import at


def github_commit(
    sha: str,
    *,
    email: str | None = "dev@example.com",
    name: str | None = "Dev",
    parents: tuple[str, ...] = (),
    message: str = "Change",
    day: int = 1,
) -> GitHubCommit:
    return GitHubCommit(
        sha=sha,
        message=message,
        author_name=name,
        author_email=email,
        author_date=at(day),
        parent_shas=list(parents),
    )


@pytest.fixture
def commits(database: Database) -> CommitRepository:
    return CommitRepository(database)


@pytest.fixture
def sync_status(database: Database) -> SyncStatusRepository:
    return SyncStatusRepository(database)


@pytest.fixture
def repositories(database: Database) -> RepositoryConfigRepository:
    return RepositoryConfigRepository(database)


class TestAuthorResolver:
    """Tests for mapping commit emails to usernames."""

    async def test_noreply_with_known_github_id(self, users: UserRepository) -> None:
        await users.create(583231, "octocat")
        resolver = AuthorResolver(users)

        author = await resolver.resolve(
            github_commit("a", email="583231+renamed@users.noreply.github.com")
        )

        assert author == "octocat"

    async def test_noreply_with_unknown_id_uses_login(self, users: UserRepository) -> None:
        resolver = AuthorResolver(users)

        author = await resolver.resolve(
            github_commit("a", email="42+newcomer@users.noreply.github.com")
        )

        assert author == "newcomer"

    async def test_plain_noreply_matches_username(self, users: UserRepository) -> None:
        await users.create(1, "OctoCat")
        resolver = AuthorResolver(users)

        assert (
            await resolver.resolve(github_commit("a", email="octocat@users.noreply.github.com"))
            == "OctoCat"
        )
        assert (
            await resolver.resolve(github_commit("b", email="ghost@users.noreply.github.com"))
            == "ghost"
        )

    async def test_email_matches_user_ignoring_case(self, users: UserRepository) -> None:
        await users.create(1, "octocat", email="octo@example.com")
        resolver = AuthorResolver(users)

        assert await resolver.resolve(github_commit("a", email="OCTO@example.com")) == "octocat"

    async def test_falls_back_to_author_name(self, users: UserRepository) -> None:
        resolver = AuthorResolver(users)

        assert await resolver.resolve(github_commit("a", email="who@else.org")) == "Dev"
        assert await resolver.resolve(github_commit("b", email=None, name=" ")) == UNKNOWN_AUTHOR

    async def test_renamed_user_resolves_to_new_username(
        self, users: UserRepository
    ) -> None:
        alice = await users.create(42, "alice")
        resolver = AuthorResolver(users)
        commit = github_commit("a", email="42+alice@users.noreply.github.com")
        assert await resolver.resolve(commit) == "alice"

        await users.update_profile(
            alice.id, github_username="alice-renamed", avatar_url=None, is_active=True
        )

        assert await resolver.resolve(commit) == "alice-renamed"

    async def test_each_commit_is_looked_up(self) -> None:
        users = AsyncMock()
        users.get_by_email.return_value = MagicMock(github_username="octocat")
        resolver = AuthorResolver(users)

        await resolver.resolve(github_commit("a", email="octo@example.com"))
        await resolver.resolve(github_commit("b", email="Octo@Example.com"))

        assert users.get_by_email.await_count == 2


class TestCommitModel:
    @pytest.mark.parametrize(
        ("parents", "message", "expected"),
        [
            (["p1", "p2"], "Change", True),
            (["p1"], "Merge pull request #12 from acme/feature", True),
            (["p1"], "  merge branch 'main' into feature", True),
            (["p1"], "Merge remote-tracking branch 'origin/main'", True),
            (["p1"], "Merged the config files", False),
            ([], "Initial commit", False),
        ],
    )
    def test_is_merge(self, parents: list[str], message: str, expected: bool) -> None:
        commit = Commit(
            sha="x",
            repository_id=1,
            author="dev",
            message=message,
            date=at(1),
            parent_shas=parents,
        )
        assert commit.is_merge is expected


class TestCommitSyncService:
    """Tests for CommitSyncService."""

    @pytest.fixture
    def github(self) -> AsyncMock:
        return AsyncMock()

    @pytest.fixture
    def service(
        self,
        github: AsyncMock,
        commits: CommitRepository,
        sync_status: SyncStatusRepository,
        repositories: RepositoryConfigRepository,
        users: UserRepository,
    ) -> CommitSyncService:
        return CommitSyncService(
            github, commits, sync_status, repositories, AuthorResolver(users)
        )

    async def test_stores_commits_and_parent_links(
        self,
        service: CommitSyncService,
        github: AsyncMock,
        commits: CommitRepository,
        repositories: RepositoryConfigRepository,
    ) -> None:
        config = await repositories.create("https://github.com/acme/api")
        github.get_commits.return_value = [
            github_commit("c2", parents=("c1", "outside"), day=2),
            github_commit("c1", day=1),
        ]

        assert await service.sync_all() == 2

        stored = await commits.get("c2")
        assert stored is not None
        assert stored.repository_id == config.id
        assert stored.parent_shas == ["c1"]
        assert stored.author == "Dev"

    async def test_second_run_only_counts_new_commits(
        self,
        service: CommitSyncService,
        github: AsyncMock,
        repositories: RepositoryConfigRepository,
    ) -> None:
        await repositories.create("https://github.com/acme/api")
        github.get_commits.return_value = [github_commit("c1")]
        await service.sync_all()

        github.get_commits.return_value = [
            github_commit("c2", parents=("c1",)),
            github_commit("c1"),
        ]

        assert await service.sync_all() == 1

    async def test_uses_watermark_after_first_run(
        self,
        service: CommitSyncService,
        github: AsyncMock,
        repositories: RepositoryConfigRepository,
        sync_status: SyncStatusRepository,
    ) -> None:
        await repositories.create("https://github.com/acme/api")
        github.get_commits.return_value = []

        await service.sync_all()
        first_since = github.get_commits.await_args.args[2]
        watermark = await sync_status.get_last_run("COMMIT_SYNC_acme/api")
        await service.sync_all()
        second_since = github.get_commits.await_args.args[2]

        assert first_since < utc_now() - timedelta(days=364)
        assert watermark is not None
        assert second_since == watermark

    async def test_failure_skips_watermark(
        self,
        service: CommitSyncService,
        github: AsyncMock,
        repositories: RepositoryConfigRepository,
        sync_status: SyncStatusRepository,
    ) -> None:
        await repositories.create("https://github.com/acme/api")
        github.get_commits.side_effect = GitHubUnavailableError("down")

        assert await service.sync_all() == 0
        assert await sync_status.get_last_run("COMMIT_SYNC_acme/api") is None

    async def test_invalid_repository_url_is_skipped(
        self,
        service: CommitSyncService,
        github: AsyncMock,
        repositories: RepositoryConfigRepository,
    ) -> None:
        await repositories.create("https://github.com/acme")

        assert await service.sync_all() == 0
        github.get_commits.assert_not_called()

    async def test_commits_without_date_are_skipped(
        self,
        service: CommitSyncService,
        github: AsyncMock,
        commits: CommitRepository,
        repositories: RepositoryConfigRepository,
    ) -> None:
        await repositories.create("https://github.com/acme/api")
        undated = github_commit("c1")
        undated.author_date = None
        github.get_commits.return_value = [undated]

        assert await service.sync_all() == 0
        assert await commits.get("c1") is None
