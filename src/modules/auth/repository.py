"""User repository for database operations."""

import sqlite3
from collections.abc import Iterable

import structlog

from src.infrastructure.database import Database, from_db, to_db, utc_now
from src.modules.auth.models import Role, User

logger = structlog.get_logger()


class UserRepository:
    """Repository for User and role persistence.

    Roles live in the ``user_roles`` join table and are loaded alongside
    every user returned.
    """

    def __init__(self, database: Database) -> None:
        """Initialize the repository.

        Args:
            database: Database connection.
        """
        self._db = database

    async def create(
        self,
        github_id: int,
        github_username: str,
        *,
        email: str | None = None,
        name: str | None = None,
        avatar_url: str | None = None,
        roles: Iterable[Role] = (),
        is_active: bool = True,
    ) -> User:
        """Create a new user.

        Args:
            github_id: GitHub account id.
            github_username: GitHub login.
            email: Email address.
            name: Display name.
            avatar_url: Avatar URL.
            roles: Roles to grant.
            is_active: Whether the user is active.

        Returns:
            The created User.

        Raises:
            ValueError: If the GitHub id or username already exists.
        """
        now = to_db(utc_now())
        role_set = set(roles)

        try:
            async with self._db.transaction() as conn:
                cursor = await conn.execute(
                    """
                    INSERT INTO users (github_id, github_username, email, name,
                                       avatar_url, is_active, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        github_id,
                        github_username,
                        email,
                        name,
                        avatar_url,
                        int(is_active),
                        now,
                        now,
                    ),
                )
                user_id = cursor.lastrowid
                await conn.executemany(
                    "INSERT INTO user_roles (user_id, role) VALUES (?, ?)",
                    [(user_id, role.value) for role in role_set],
                )
        except sqlite3.IntegrityError as e:
            if "UNIQUE constraint failed" in str(e):
                raise ValueError(
                    f"User {github_username} already exists"
                ) from e
            raise

        logger.info(
            "user_created",
            user_id=user_id,
            github_username=github_username,
            roles=sorted(r.value for r in role_set),
        )

        created = from_db(now)
        return User(
            id=int(user_id or 0),
            github_id=github_id,
            github_username=github_username,
            email=email,
            name=name,
            avatar_url=avatar_url,
            is_active=is_active,
            team_id=None,
            created_at=created,
            updated_at=created,
            roles=role_set,
        )

    async def get_by_id(self, user_id: int) -> User | None:
        """Get a user by ID.

        Args:
            user_id: Local user id.

        Returns:
            User if found, None otherwise.
        """
        row = await self._db.fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))
        return await self._to_user(row)

    async def get_by_github_id(self, github_id: int) -> User | None:
        row = await self._db.fetch_one(
            "SELECT * FROM users WHERE github_id = ?", (github_id,)
        )
        return await self._to_user(row)

    async def get_by_username(self, github_username: str) -> User | None:
        """Get a user by GitHub login, ignoring case."""
        row = await self._db.fetch_one(
            "SELECT * FROM users WHERE github_username = ? COLLATE NOCASE",
            (github_username,),
        )
        return await self._to_user(row)

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by email, ignoring case."""
        row = await self._db.fetch_one(
            "SELECT * FROM users WHERE email = ? COLLATE NOCASE ORDER BY id LIMIT 1",
            (email,),
        )
        return await self._to_user(row)

    async def get_many(self, user_ids: Iterable[int]) -> list[User]:
        """Get the users with the given ids, ordered by id."""
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        rows = await self._db.fetch_all(
            f"SELECT * FROM users WHERE id IN ({placeholders}) ORDER BY id",  # nosec B608
            tuple(ids),
        )
        return await self._to_users(rows)

    async def update_profile(
        self,
        user_id: int,
        *,
        github_username: str,
        avatar_url: str | None,
        is_active: bool,
    ) -> None:
        """Update the GitHub-sourced fields of a user.

        Raises:
            ValueError: If another user already has ``github_username``.
        """
        try:
            await self._db.execute(
                """
                UPDATE users
                SET github_username = ?, avatar_url = ?, is_active = ?, updated_at = ?
                WHERE id = ?
                """,
                (github_username, avatar_url, int(is_active), to_db(utc_now()), user_id),
            )
        except sqlite3.IntegrityError as e:
            if "UNIQUE constraint failed" in str(e):
                raise ValueError(f"User {github_username} already exists") from e
            raise
        logger.info("user_updated", user_id=user_id, github_username=github_username)

    async def set_active(self, user_id: int, is_active: bool) -> None:
        await self._db.execute(
            "UPDATE users SET is_active = ?, updated_at = ? WHERE id = ?",
            (int(is_active), to_db(utc_now()), user_id),
        )
        logger.info("user_active_changed", user_id=user_id, is_active=is_active)

    async def set_team(self, user_id: int, team_id: int | None) -> None:
        """Move a user into a team, or out of any team when team_id is None."""
        await self._db.execute(
            "UPDATE users SET team_id = ?, updated_at = ? WHERE id = ?",
            (team_id, to_db(utc_now()), user_id),
        )
        logger.info("user_team_changed", user_id=user_id, team_id=team_id)

    async def add_role(self, user_id: int, role: Role) -> None:
        await self._db.execute(
            "INSERT OR IGNORE INTO user_roles (user_id, role) VALUES (?, ?)",
            (user_id, role.value),
        )
        logger.info("user_role_added", user_id=user_id, role=role.value)

    async def replace_roles(self, user_id: int, roles: Iterable[Role]) -> None:
        """Replace the full role set of a user."""
        role_set = set(roles)
        async with self._db.transaction() as conn:
            await conn.execute("DELETE FROM user_roles WHERE user_id = ?", (user_id,))
            await conn.executemany(
                "INSERT INTO user_roles (user_id, role) VALUES (?, ?)",
                [(user_id, role.value) for role in role_set],
            )
        logger.info(
            "user_roles_replaced",
            user_id=user_id,
            roles=sorted(r.value for r in role_set),
        )

    async def exists_with_role(self, role: Role) -> bool:
        row = await self._db.fetch_one(
            "SELECT 1 FROM user_roles WHERE role = ? LIMIT 1", (role.value,)
        )
        return row is not None

    async def list_all(self, *, include_inactive: bool = False) -> list[User]:
        """List users.

        Args:
            include_inactive: Whether to include inactive users.

        Returns:
            List of users ordered by id.
        """
        if include_inactive:
            rows = await self._db.fetch_all("SELECT * FROM users ORDER BY id")
        else:
            rows = await self._db.fetch_all(
                "SELECT * FROM users WHERE is_active = 1 ORDER BY id"
            )
        return await self._to_users(rows)

    async def list_by_team(self, team_id: int) -> list[User]:
        rows = await self._db.fetch_all(
            "SELECT * FROM users WHERE team_id = ? ORDER BY id", (team_id,)
        )
        return await self._to_users(rows)

    async def count_by_team(self, team_id: int) -> int:
        row = await self._db.fetch_one(
            "SELECT COUNT(*) AS count FROM users WHERE team_id = ?", (team_id,)
        )
        return int(row["count"]) if row else 0

    async def _load_roles(self, user_ids: list[int]) -> dict[int, set[Role]]:
        if not user_ids:
            return {}
        placeholders = ", ".join("?" for _ in user_ids)
        rows = await self._db.fetch_all(
            f"SELECT user_id, role FROM user_roles WHERE user_id IN ({placeholders})",  # nosec B608
            tuple(user_ids),
        )
        roles: dict[int, set[Role]] = {uid: set() for uid in user_ids}
        for row in rows:
            roles[int(row["user_id"])].add(Role(row["role"]))
        return roles

    async def _to_user(self, row: sqlite3.Row | None) -> User | None:
        if row is None:
            return None
        users = await self._to_users([row])
        return users[0]

    async def _to_users(self, rows: list[sqlite3.Row]) -> list[User]:
        roles = await self._load_roles([int(row["id"]) for row in rows])
        return [User.from_row(dict(row), roles.get(int(row["id"]))) for row in rows]
