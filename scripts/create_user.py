#!/usr/bin/env python3
"""CLI script to provision users and grant roles before they first log in.

Usage:
    uv run python scripts/create_user.py octocat 583231 --role ADMIN
    uv run python scripts/create_user.py octocat --role TECH_LEAD --role DEVELOPER
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add src to path so we can import modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config import Settings
from src.infrastructure.database.connection import init_database
from src.modules.auth.models import Role, User
from src.modules.auth.repository import UserRepository


async def grant_roles(
    repository: UserRepository,
    github_username: str,
    roles: list[Role],
    github_id: int | None = None,
) -> tuple[User, bool]:
    """Grant roles to a user, creating the user when a GitHub id is given.

    Existing roles are kept; the given roles are added to them.

    Args:
        repository: User repository.
        github_username: GitHub login, matched case-insensitively.
        roles: Roles to add.
        github_id: GitHub account id, required to create a missing user.

    Returns:
        The user with its roles, and whether it was created.

    Raises:
        ValueError: If the user does not exist and no GitHub id was given.
    """
    user = await repository.get_by_username(github_username)
    if user is None:
        if github_id is None:
            raise ValueError(
                f"User {github_username} does not exist; pass its GitHub id to create it"
            )
        created = await repository.create(github_id, github_username, roles=roles)
        return created, True

    for role in roles:
        await repository.add_role(user.id, role)
    updated = await repository.get_by_id(user.id)
    return updated or user, False


async def run(github_username: str, roles: list[Role], github_id: int | None) -> None:
    settings = Settings()
    db = await init_database(settings.database_path)

    try:
        user, created = await grant_roles(
            UserRepository(db), github_username, roles, github_id
        )
        action = "Created" if created else "Updated"
        print(f"✓ {action} user: {user.github_username}")
        print(f"  User ID: {user.id}")
        print(f"  Roles: {', '.join(sorted(r.value for r in user.roles)) or '-'}")

    except ValueError as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await db.disconnect()


def main() -> None:
    """Parse arguments and grant roles."""
    parser = argparse.ArgumentParser(
        description="Provision a user and grant roles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create the first administrator before anyone logs in
  uv run python scripts/create_user.py octocat 583231 --role ADMIN

  # Promote an existing user
  uv run python scripts/create_user.py octocat --role ENGINEERING_MANAGER
        """,
    )

    parser.add_argument("github_username", help="GitHub login")
    parser.add_argument(
        "github_id",
        nargs="?",
        type=int,
        help="GitHub account id (required when the user does not exist yet)",
    )
    parser.add_argument(
        "--role",
        dest="roles",
        action="append",
        type=Role,
        choices=list(Role),
        default=[],
        help="Role to grant; repeat for several roles",
    )

    args = parser.parse_args()

    if not args.roles:
        print("✗ Error: at least one --role is required", file=sys.stderr)
        sys.exit(1)

    asyncio.run(run(args.github_username, args.roles, args.github_id))


if __name__ == "__main__":
    main()
