"""Schemas for GitHub API payloads.

Only the fields the collectors use are kept. Each ``from_api`` classmethod
tolerates missing keys the same way the GitHub API omits them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.infrastructure.database import from_db


@dataclass
class GitHubCommit:
    """A commit from ``GET /repos/{owner}/{repo}/commits``.

    Attributes:
        sha: Commit SHA.
        message: Commit message.
        author_name: Git author name.
        author_email: Git author email.
        author_date: Git author date.
        author_login: Login of the linked GitHub account, if any.
        parent_shas: SHAs of the parent commits.
    """

    sha: str
    message: str
    author_name: str | None
    author_email: str | None
    author_date: datetime | None
    author_login: str | None = None
    parent_shas: list[str] = field(default_factory=list)

    @property
    def is_merge(self) -> bool:
        return len(self.parent_shas) > 1

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "GitHubCommit":
        commit = data.get("commit") or {}
        author = commit.get("author") or {}
        account = data.get("author") or {}
        return cls(
            sha=data["sha"],
            message=commit.get("message") or "",
            author_name=author.get("name"),
            author_email=author.get("email"),
            author_date=from_db(author.get("date")),
            author_login=account.get("login"),
            parent_shas=[p["sha"] for p in data.get("parents") or [] if p.get("sha")],
        )


@dataclass
class GitHubPullRequest:
    """A pull request from ``GET /repos/{owner}/{repo}/pulls``."""

    id: int
    number: int
    title: str | None
    state: str
    created_at: datetime | None
    updated_at: datetime | None
    merged_at: datetime | None
    first_commit_sha: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "GitHubPullRequest":
        return cls(
            id=int(data["id"]),
            number=int(data["number"]),
            title=data.get("title"),
            state=data.get("state") or "open",
            created_at=from_db(data.get("created_at")),
            updated_at=from_db(data.get("updated_at")),
            merged_at=from_db(data.get("merged_at")),
        )


@dataclass
class GitHubWorkflowRun:
    """A GitHub Actions workflow run."""

    id: int
    name: str | None
    head_branch: str | None
    head_sha: str | None
    status: str | None
    conclusion: str | None
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "GitHubWorkflowRun":
        return cls(
            id=int(data["id"]),
            name=data.get("name"),
            head_branch=data.get("head_branch"),
            head_sha=data.get("head_sha"),
            status=data.get("status"),
            conclusion=data.get("conclusion"),
            created_at=from_db(data.get("created_at")),
            updated_at=from_db(data.get("updated_at")),
        )


@dataclass
class GitHubRepository:
    """A repository visible to the configured token."""

    id: int
    name: str
    full_name: str
    html_url: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "GitHubRepository":
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            full_name=data.get("full_name") or "",
            html_url=data["html_url"],
        )


@dataclass
class GitHubMember:
    """A member of a GitHub organization."""

    id: int
    login: str
    avatar_url: str | None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "GitHubMember":
        return cls(
            id=int(data["id"]),
            login=data["login"],
            avatar_url=data.get("avatar_url"),
        )


@dataclass
class GitHubUser:
    """The authenticated GitHub user returned during OAuth login."""

    id: int
    login: str
    email: str
    name: str | None = None
    avatar_url: str | None = None

    PLACEHOLDER_EMAIL = "no-email@placeholder.com"

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "GitHubUser":
        """Build the user from ``GET /user``.

        Raises:
            ValueError: If the id or login is missing.
        """
        if data.get("id") is None or not data.get("login"):
            raise ValueError("GitHub user payload is missing id or login")
        return cls(
            id=int(data["id"]),
            login=data["login"],
            email=data.get("email") or cls.PLACEHOLDER_EMAIL,
            name=data.get("name"),
            avatar_url=data.get("avatar_url"),
        )
