"""Resolve commit authors to GitHub usernames."""

import re

import structlog

from src.infrastructure.github.schemas import GitHubCommit
from src.modules.auth.repository import UserRepository

logger = structlog.get_logger()

NOREPLY_DOMAIN = "@users.noreply.github.com"
UNKNOWN_AUTHOR = "N/A"

# <id>+<login>@users.noreply.github.com
_ID_LOGIN_PATTERN = re.compile(r"^(?P<id>[^+@]+)\+(?P<login>[^@]+)$")


class AuthorResolver:
    """Maps a commit's author email to the username of a known user.

    Resolution order:
    1. ``<id>+<login>@users.noreply.github.com``: user by GitHub id, else login.
    2. ``<login>@users.noreply.github.com``: user by username, else login.
    3. Any other email: user by email, ignoring case.
    4. The git author name, else ``"N/A"``.

    Every commit is looked up against the current users, so renamed
    accounts resolve to their new username.
    """

    def __init__(self, users: UserRepository) -> None:
        self._users = users

    async def resolve(self, commit: GitHubCommit) -> str:
        email = (commit.author_email or "").strip()
        if email:
            resolved = await self._resolve_email(email)
            if resolved:
                return resolved

        if commit.author_name and commit.author_name.strip():
            return commit.author_name
        return UNKNOWN_AUTHOR

    async def _resolve_email(self, email: str) -> str | None:
        if email.lower().endswith(NOREPLY_DOMAIN):
            local = email[: -len(NOREPLY_DOMAIN)]
            match = _ID_LOGIN_PATTERN.match(local)
            if match:
                login = match.group("login")
                github_id = match.group("id")
                if github_id.isdigit():
                    user = await self._users.get_by_github_id(int(github_id))
                    if user is not None:
                        return user.github_username
                return login

            user = await self._users.get_by_username(local)
            return user.github_username if user is not None else local

        user = await self._users.get_by_email(email)
        if user is not None:
            return user.github_username

        logger.debug("commit_author_unresolved", email=email)
        return None
