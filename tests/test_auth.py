"""Tests for authentication module."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import jwt
import pytest

from src.infrastructure.github.schemas import GitHubUser
from src.modules.auth import (
    AccessDeniedError,
    AuthConfigurationError,
    AuthenticationError,
    AuthService,
    Role,
    UserNotFoundError,
)
from src.modules.auth.models import User
from src.modules.auth.repository import UserRepository
from tests.helpers import TEST_JWT_SECRET, make_user


def github_user(login: str, github_id: int = 1) -> GitHubUser:
    return GitHubUser(id=github_id, login=login, email=f"{login}@example.com")


def make_service(
    users: UserRepository,
    *,
    initial_admin: str | None = "octocat",
    organization: str | None = None,
    is_member: bool = False,
) -> AuthService:
    checker = AsyncMock()
    checker.is_member_of_organization = AsyncMock(return_value=is_member)
    return AuthService(
        users,
        jwt_secret=TEST_JWT_SECRET,
        initial_admin_username=initial_admin,
        organization_name=organization,
        membership_checker=checker,
    )


class TestUserModel:
    """Tests for User model."""

    def test_user_from_row(self) -> None:
        """Should create user from database row with roles."""
        now = datetime.now(UTC).isoformat()
        row = {
            "id": 7,
            "github_id": 42,
            "github_username": "octocat",
            "email": "octo@example.com",
            "name": "Octo Cat",
            "avatar_url": None,
            "is_active": 1,
            "team_id": None,
            "created_at": now,
            "updated_at": now,
        }
        user = User.from_row(row, {Role.DEVELOPER})
        assert user.id == 7
        assert user.is_active
        assert user.has_role(Role.DEVELOPER)
        assert not user.is_admin

    def test_has_any_role(self) -> None:
        now = datetime.now(UTC)
        user = User(
            id=1,
            github_id=1,
            github_username="lead",
            email=None,
            name=None,
            avatar_url=None,
            is_active=True,
            team_id=None,
            created_at=now,
            updated_at=now,
            roles={Role.TECH_LEAD},
        )
        assert user.has_any_role(Role.TECH_LEAD, Role.ADMIN)
        assert not user.has_any_role(Role.ENGINEERING_MANAGER)


class TestUserRepository:
    """Tests for UserRepository."""

    async def test_create_user_with_roles(self, users: UserRepository) -> None:
        user = await users.create(1, "octocat", roles=[Role.ADMIN, Role.DEVELOPER])

        loaded = await users.get_by_id(user.id)
        assert loaded is not None
        assert loaded.roles == {Role.ADMIN, Role.DEVELOPER}

    async def test_create_duplicate_username_raises(self, users: UserRepository) -> None:
        await users.create(1, "octocat")
        with pytest.raises(ValueError, match="already exists"):
            await users.create(2, "OctoCat")

    async def test_get_by_username_ignores_case(self, users: UserRepository) -> None:
        await users.create(1, "OctoCat")
        user = await users.get_by_username("octocat")
        assert user is not None
        assert user.github_username == "OctoCat"

    async def test_get_by_email_ignores_case(self, users: UserRepository) -> None:
        await users.create(1, "octocat", email="Octo@Example.com")
        user = await users.get_by_email("octo@example.com")
        assert user is not None
        assert user.github_username == "octocat"

    async def test_replace_roles(self, users: UserRepository) -> None:
        user = await make_user(users, "dev", Role.DEVELOPER)
        await users.replace_roles(user.id, [Role.TECH_LEAD])

        loaded = await users.get_by_id(user.id)
        assert loaded is not None
        assert loaded.roles == {Role.TECH_LEAD}

    async def test_list_all_excludes_inactive(self, users: UserRepository) -> None:
        active = await make_user(users, "active")
        inactive = await make_user(users, "gone")
        await users.set_active(inactive.id, False)

        assert [u.id for u in await users.list_all()] == [active.id]
        assert len(await users.list_all(include_inactive=True)) == 2

    async def test_exists_with_role(self, users: UserRepository) -> None:
        assert not await users.exists_with_role(Role.ADMIN)
        await make_user(users, "admin", Role.ADMIN)
        assert await users.exists_with_role(Role.ADMIN)


class TestProcessLogin:
    """Tests for AuthService.process_login."""

    async def test_initial_admin_becomes_admin(self, users: UserRepository) -> None:
        service = make_service(users)

        result = await service.process_login(github_user("OctoCat"))

        assert result.is_first_admin
        assert result.user.roles == {Role.ADMIN}

    async def test_bootstrap_without_initial_admin_raises(
        self, users: UserRepository
    ) -> None:
        service = make_service(users, initial_admin=None)

        with pytest.raises(AuthConfigurationError):
            await service.process_login(github_user("someone"))

    async def test_bootstrap_rejects_others_without_organization(
        self, users: UserRepository
    ) -> None:
        service = make_service(users)

        with pytest.raises(AccessDeniedError):
            await service.process_login(github_user("someone"))

    async def test_existing_initial_admin_is_promoted(self, users: UserRepository) -> None:
        await make_user(users, "octocat", Role.DEVELOPER)
        service = make_service(users)

        result = await service.process_login(github_user("octocat"))

        assert result.is_first_admin
        assert Role.ADMIN in result.user.roles

    async def test_member_signs_up_as_developer(self, users: UserRepository) -> None:
        await make_user(users, "admin", Role.ADMIN)
        service = make_service(users, organization="acme", is_member=True)

        result = await service.process_login(github_user("newbie", github_id=99))

        assert not result.is_first_admin
        assert result.user.roles == {Role.DEVELOPER}
        assert await users.get_by_username("newbie") is not None

    async def test_non_member_is_denied(self, users: UserRepository) -> None:
        await make_user(users, "admin", Role.ADMIN)
        service = make_service(users, organization="acme", is_member=False)

        with pytest.raises(AccessDeniedError, match="acme"):
            await service.process_login(github_user("stranger", github_id=99))

    async def test_known_user_logs_in(self, users: UserRepository) -> None:
        await make_user(users, "admin", Role.ADMIN)
        dev = await make_user(users, "dev", Role.DEVELOPER)
        service = make_service(users)

        result = await service.process_login(github_user("dev"))

        assert result.user.id == dev.id
        assert not result.is_first_admin


class TestTokens:
    """Tests for session tokens."""

    async def test_token_round_trip(self, users: UserRepository) -> None:
        service = make_service(users)
        user = await make_user(users, "dev", Role.DEVELOPER)

        payload = service.verify_token(service.create_token(user))

        assert payload.sub == str(user.id)
        assert payload.login == "dev"

    async def test_expired_token_rejected(self, users: UserRepository) -> None:
        service = make_service(users)
        past = datetime.now(UTC) - timedelta(hours=2)
        token = jwt.encode(
            {
                "sub": "1",
                "login": "dev",
                "exp": int(past.timestamp()),
                "iat": int(past.timestamp()),
            },
            TEST_JWT_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(AuthenticationError, match="expired"):
            service.verify_token(token)

    async def test_wrong_secret_rejected(self, users: UserRepository) -> None:
        service = make_service(users)
        token = jwt.encode(
            {"sub": "1", "login": "dev", "exp": 9999999999, "iat": 0},
            "a-different-secret-of-sufficient-length",
            algorithm="HS256",
        )

        with pytest.raises(AuthenticationError, match="Invalid"):
            service.verify_token(token)

    async def test_inactive_user_has_no_session(self, users: UserRepository) -> None:
        service = make_service(users)
        user = await make_user(users, "dev")
        await users.set_active(user.id, False)

        assert await service.get_active_user(str(user.id)) is None
        assert await service.get_active_user("not-a-number") is None


class TestAssignRoles:
    """Tests for role assignment."""

    async def test_assign_roles_replaces_set(self, users: UserRepository) -> None:
        service = make_service(users)
        user = await make_user(users, "dev", Role.DEVELOPER)

        updated = await service.assign_roles(user.id, [Role.TECH_LEAD, Role.DEVELOPER])

        assert updated.roles == {Role.TECH_LEAD, Role.DEVELOPER}

    async def test_assign_roles_unknown_user(self, users: UserRepository) -> None:
        service = make_service(users)
        with pytest.raises(UserNotFoundError):
            await service.assign_roles(404, [Role.ADMIN])
