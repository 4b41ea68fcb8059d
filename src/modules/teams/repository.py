"""Team persistence."""

import sqlite3

import structlog

from src.infrastructure.database import Database, from_db, to_db, utc_now
from src.modules.repositories.models import RepositoryConfig
from src.modules.teams.models import Team

logger = structlog.get_logger()


class TeamRepository:
    """Database access for teams and their repository assignments."""

    def __init__(self, database: Database) -> None:
        """Initialize the repository.

        Args:
            database: Database connection.
        """
        self._db = database

    async def create(self, name: str) -> Team:
        """Create a team.

        Raises:
            ValueError: If the name is taken.
        """
        now = to_db(utc_now())
        try:
            cursor = await self._db.execute(
                "INSERT INTO teams (name, created_at, updated_at) VALUES (?, ?, ?)",
                (name, now, now),
            )
        except sqlite3.IntegrityError as e:
            if "UNIQUE constraint failed" in str(e):
                raise ValueError(f"Team with name '{name}' already exists") from e
            raise

        team = Team(
            id=int(cursor.lastrowid or 0),
            name=name,
            created_at=from_db(now),
            updated_at=from_db(now),
        )
        logger.info("team_created", team_id=team.id, name=name)
        return team

    async def get_by_id(self, team_id: int) -> Team | None:
        row = await self._db.fetch_one("SELECT * FROM teams WHERE id = ?", (team_id,))
        return Team.from_row(dict(row)) if row else None

    async def get_many(self, team_ids: list[int]) -> list[Team]:
        ids = list(dict.fromkeys(team_ids))
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        rows = await self._db.fetch_all(
            f"SELECT * FROM teams WHERE id IN ({placeholders}) ORDER BY id",  # nosec B608
            tuple(ids),
        )
        return [Team.from_row(dict(row)) for row in rows]

    async def exists_by_name(self, name: str) -> bool:
        row = await self._db.fetch_one("SELECT 1 FROM teams WHERE name = ?", (name,))
        return row is not None

    async def list_all(self) -> list[Team]:
        rows = await self._db.fetch_all("SELECT * FROM teams ORDER BY id")
        return [Team.from_row(dict(row)) for row in rows]

    async def rename(self, team_id: int, name: str) -> None:
        """Rename a team.

        Raises:
            ValueError: If the name is taken by another team.
        """
        try:
            await self._db.execute(
                "UPDATE teams SET name = ?, updated_at = ? WHERE id = ?",
                (name, to_db(utc_now()), team_id),
            )
        except sqlite3.IntegrityError as e:
            if "UNIQUE constraint failed" in str(e):
                raise ValueError(f"Team with name '{name}' already exists") from e
            raise
        logger.info("team_renamed", team_id=team_id, name=name)

    async def delete(self, team_id: int) -> bool:
        """Delete a team and its repository assignments.

        Returns:
            True if deleted, False if not found.
        """
        cursor = await self._db.execute("DELETE FROM teams WHERE id = ?", (team_id,))
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("team_deleted", team_id=team_id)
        return deleted

    async def add_repository(self, team_id: int, repository_id: int) -> None:
        await self._db.execute(
            "INSERT OR IGNORE INTO team_repositories (team_id, repository_id) VALUES (?, ?)",
            (team_id, repository_id),
        )
        logger.info("team_repository_assigned", team_id=team_id, repository_id=repository_id)

    async def remove_repository(self, team_id: int, repository_id: int) -> None:
        await self._db.execute(
            "DELETE FROM team_repositories WHERE team_id = ? AND repository_id = ?",
            (team_id, repository_id),
        )
        logger.info("team_repository_removed", team_id=team_id, repository_id=repository_id)

    async def list_repositories(self, team_id: int) -> list[RepositoryConfig]:
        rows = await self._db.fetch_all(
            """
            SELECT rc.* FROM repository_configs rc
            JOIN team_repositories tr ON tr.repository_id = rc.id
            WHERE tr.team_id = ?
            ORDER BY rc.id
            """,
            (team_id,),
        )
        return [RepositoryConfig.from_row(dict(row)) for row in rows]

    async def count_repositories(self, team_id: int) -> int:
        row = await self._db.fetch_one(
            "SELECT COUNT(*) AS count FROM team_repositories WHERE team_id = ?",
            (team_id,),
        )
        return int(row["count"]) if row else 0
