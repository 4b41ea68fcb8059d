"""Shared test fixtures."""

import tempfile
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from src.infrastructure.database import Database
from src.modules.auth.repository import UserRepository


@pytest.fixture
async def database() -> AsyncGenerator[Database]:
    """Create a temporary test database."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        db = Database(db_path)
        await db.connect()
        yield db
        await db.disconnect()


@pytest.fixture
async def users(database: Database) -> UserRepository:
    """Create a user repository with test database."""
    return UserRepository(database)
