"""SQLite database connection management."""

import sqlite3
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite
import structlog

logger = structlog.get_logger()

# SQL for creating tables
_CREATE_TABLES = """
CREATE TABLE IF NOT EXISTS roles (
    name TEXT PRIMARY KEY
);

INSERT OR IGNORE INTO roles (name) VALUES
    ('ADMIN'), ('ENGINEERING_MANAGER'), ('TECH_LEAD'), ('DEVELOPER');

CREATE TABLE IF NOT EXISTS teams (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    github_id INTEGER UNIQUE NOT NULL,
    github_username TEXT UNIQUE NOT NULL COLLATE NOCASE,
    email TEXT,
    name TEXT,
    avatar_url TEXT,
    is_active INTEGER DEFAULT 1,
    team_id INTEGER,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (team_id) REFERENCES teams(id) ON DELETE SET NULL
);

CREATE INDEX IF NOT EXISTS idx_users_team ON users(team_id);
CREATE INDEX IF NOT EXISTS idx_users_email ON users(email COLLATE NOCASE);

CREATE TABLE IF NOT EXISTS user_roles (
    user_id INTEGER NOT NULL,
    role TEXT NOT NULL,
    PRIMARY KEY (user_id, role),
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
    FOREIGN KEY (role) REFERENCES roles(name)
);

CREATE TABLE IF NOT EXISTS repository_configs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    repository_url TEXT UNIQUE NOT NULL,
    datadog_service_name TEXT,
    deployment_workflow_file_name TEXT
);

CREATE TABLE IF NOT EXISTS team_repositories (
    team_id INTEGER NOT NULL,
    repository_id INTEGER NOT NULL,
    PRIMARY KEY (team_id, repository_id),
    FOREIGN KEY (team_id) REFERENCES teams(id) ON DELETE CASCADE,
    FOREIGN KEY (repository_id) REFERENCES repository_configs(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS sync_status (
    job_name TEXT PRIMARY KEY,
    last_successful_run TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS commits (
    sha TEXT PRIMARY KEY,
    repository_id INTEGER NOT NULL,
    author TEXT NOT NULL,
    message TEXT NOT NULL DEFAULT '',
    date TEXT NOT NULL,
    FOREIGN KEY (repository_id) REFERENCES repository_configs(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_commits_author ON commits(author COLLATE NOCASE);
CREATE INDEX IF NOT EXISTS idx_commits_repository ON commits(repository_id);

CREATE TABLE IF NOT EXISTS commit_parents (
    commit_sha TEXT NOT NULL,
    parent_sha TEXT NOT NULL,
    PRIMARY KEY (commit_sha, parent_sha),
    FOREIGN KEY (commit_sha) REFERENCES commits(sha) ON DELETE CASCADE,
    FOREIGN KEY (parent_sha) REFERENCES commits(sha) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_commit_parents_parent ON commit_parents(parent_sha);

CREATE TABLE IF NOT EXISTS pull_requests (
    id INTEGER PRIMARY KEY,
    repository_id INTEGER NOT NULL,
    number INTEGER,
    title TEXT,
    state TEXT NOT NULL,
    created_at TEXT,
    updated_at TEXT,
    merged_at TEXT,
    first_commit_sha TEXT,
    FOREIGN KEY (repository_id) REFERENCES repository_configs(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS deployments (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    github_id INTEGER UNIQUE NOT NULL,
    repository_id INTEGER NOT NULL,
    name TEXT,
    head_branch TEXT,
    sha TEXT NOT NULL,
    service_name TEXT,
    status TEXT,
    conclusion TEXT,
    environment TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT,
    lead_time_processed INTEGER DEFAULT 0,
    FOREIGN KEY (repository_id) REFERENCES repository_configs(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_deployments_env_created ON deployments(environment, created_at);

CREATE TABLE IF NOT EXISTS incidents (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    datadog_incident_id TEXT UNIQUE NOT NULL,
    repository_id INTEGER,
    title TEXT,
    state TEXT NOT NULL,
    severity TEXT NOT NULL,
    start_time TEXT NOT NULL,
    resolved_time TEXT,
    duration_seconds INTEGER,
    service_name TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (repository_id) REFERENCES repository_configs(id) ON DELETE SET NULL
);

CREATE INDEX IF NOT EXISTS idx_incidents_service_start ON incidents(service_name, start_time);

CREATE TABLE IF NOT EXISTS change_lead_times (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    commit_sha TEXT NOT NULL,
    deployment_id INTEGER NOT NULL,
    lead_time_seconds INTEGER NOT NULL,
    UNIQUE (commit_sha, deployment_id),
    FOREIGN KEY (commit_sha) REFERENCES commits(sha) ON DELETE CASCADE,
    FOREIGN KEY (deployment_id) REFERENCES deployments(id) ON DELETE CASCADE
);
"""


class Database:
    """Async SQLite database wrapper.

    Provides connection management and query execution for SQLite.
    Uses aiosqlite for async operations.
    """

    def __init__(self, db_path: str | Path) -> None:
        """Initialize the database.

        Args:
            db_path: Path to the SQLite database file.
        """
        self._db_path = Path(db_path)
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Connect to the database and create tables if needed."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection = await aiosqlite.connect(self._db_path)
        self._connection.row_factory = aiosqlite.Row

        await self._connection.execute("PRAGMA foreign_keys = ON")

        await self._connection.executescript(_CREATE_TABLES)
        await self._connection.commit()

        logger.info("database_connected", path=str(self._db_path))

    async def disconnect(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
            logger.info("database_disconnected", path=str(self._db_path))

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[aiosqlite.Connection]:
        """Context manager for multi-statement writes.

        Statements executed on the yielded connection are committed together
        or rolled back together.

        Yields:
            The database connection for executing queries.

        Raises:
            RuntimeError: If database is not connected.
        """
        if not self._connection:
            raise RuntimeError("Database not connected")

        try:
            yield self._connection
            await self._connection.commit()
        except Exception:
            await self._connection.rollback()
            raise

    async def execute(
        self,
        sql: str,
        parameters: tuple[object, ...] | dict[str, object] | None = None,
    ) -> aiosqlite.Cursor:
        """Execute a SQL statement.

        Args:
            sql: SQL statement to execute.
            parameters: Optional parameters for the statement.

        Returns:
            Cursor with execution results.

        Raises:
            RuntimeError: If database is not connected.
        """
        if not self._connection:
            raise RuntimeError("Database not connected")

        if parameters:
            cursor = await self._connection.execute(sql, parameters)
        else:
            cursor = await self._connection.execute(sql)

        await self._connection.commit()
        return cursor

    async def execute_many(
        self,
        sql: str,
        rows: list[tuple[object, ...]],
    ) -> int:
        """Execute a statement once per parameter tuple in a single commit.

        Args:
            sql: SQL statement to execute.
            rows: Parameter tuples.

        Returns:
            Number of rows affected.
        """
        if not self._connection:
            raise RuntimeError("Database not connected")
        if not rows:
            return 0

        async with self.transaction() as conn:
            cursor = await conn.executemany(sql, rows)
            return cursor.rowcount

    async def fetch_one(
        self,
        sql: str,
        parameters: tuple[object, ...] | dict[str, object] | None = None,
    ) -> sqlite3.Row | None:
        """Fetch a single row.

        Args:
            sql: SQL query to execute.
            parameters: Optional parameters for the query.

        Returns:
            The first row or None.
        """
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetch_all(
        self,
        sql: str,
        parameters: tuple[object, ...] | dict[str, object] | None = None,
    ) -> list[sqlite3.Row]:
        """Fetch all rows.

        Args:
            sql: SQL query to execute.
            parameters: Optional parameters for the query.

        Returns:
            List of rows.
        """
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())


# Global database instance
_database: Database | None = None


def get_database() -> Database:
    """Get the global database instance.

    Returns:
        The database instance.

    Raises:
        RuntimeError: If database not initialized.
    """
    if _database is None:
        raise RuntimeError("Database not initialized. Call init_database first.")
    return _database


async def init_database(db_path: str | Path) -> Database:
    """Initialize and connect to the database.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        Connected database instance.
    """
    global _database
    _database = Database(db_path)
    await _database.connect()
    return _database
