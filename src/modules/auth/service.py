"""Authentication service: OAuth login decisions, sessions and roles."""

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Protocol

import jwt
import structlog

from src.infrastructure.github.schemas import GitHubUser
from src.modules.auth.exceptions import (
    AccessDeniedError,
    AuthConfigurationError,
    AuthenticationError,
    UserNotFoundError,
)
from src.modules.auth.models import LoginResult, Role, User
from src.modules.auth.repository import UserRepository
from src.modules.auth.schemas import TokenPayload

logger = structlog.get_logger()


class MembershipChecker(Protocol):
    """Anything that can answer "is this login a member of that organization"."""

    async def is_member_of_organization(self, username: str, organization: str) -> bool:
        ...


class AuthService:
    """Service for authentication operations.

    Decides who may log in after GitHub OAuth, issues and verifies session
    tokens, and manages role assignments.

    Until the first ADMIN exists the service runs in bootstrap mode: the
    configured initial admin is promoted on login and, when no organization
    is configured, nobody else may sign up.
    """

    def __init__(
        self,
        repository: UserRepository,
        *,
        jwt_secret: str,
        jwt_algorithm: str = "HS256",
        jwt_expire_hours: int = 24,
        initial_admin_username: str | None = None,
        organization_name: str | None = None,
        membership_checker: MembershipChecker | None = None,
    ) -> None:
        """Initialize the auth service.

        Args:
            repository: User repository for database operations.
            jwt_secret: Secret key for JWT signing.
            jwt_algorithm: Algorithm for JWT signing.
            jwt_expire_hours: Hours until token expiration.
            initial_admin_username: GitHub login promoted to ADMIN while no
                admin exists.
            organization_name: GitHub organization whose members may log in.
            membership_checker: Client used to verify organization membership.
        """
        self._repo = repository
        self._jwt_secret = jwt_secret
        self._jwt_algorithm = jwt_algorithm
        self._jwt_expire_hours = jwt_expire_hours
        self._initial_admin = (initial_admin_username or "").strip() or None
        self._organization = (organization_name or "").strip() or None
        self._membership_checker = membership_checker

    @property
    def expire_seconds(self) -> int:
        return self._jwt_expire_hours * 3600

    async def process_login(self, github_user: GitHubUser) -> LoginResult:
        """Resolve or create the local user behind a GitHub login.

        Args:
            github_user: User returned by GitHub after OAuth.

        Returns:
            LoginResult with the user and whether they just became the
            first admin.

        Raises:
            AuthConfigurationError: If bootstrap mode lacks an initial admin.
            AccessDeniedError: If the user may not log in.
        """
        login = github_user.login
        bootstrap = not await self._repo.exists_with_role(Role.ADMIN)
        is_initial_admin = self._is_initial_admin(login)

        user = await self._repo.get_by_username(login)
        if user is not None:
            if bootstrap and is_initial_admin and not user.is_admin:
                await self._repo.add_role(user.id, Role.ADMIN)
                user.roles.add(Role.ADMIN)
                logger.info("first_admin_promoted", user_id=user.id, username=login)
                return LoginResult(user=user, is_first_admin=True)

            logger.info("user_logged_in", user_id=user.id, username=login)
            return LoginResult(user=user, is_first_admin=False)

        if bootstrap:
            if self._initial_admin is None:
                logger.error("initial_admin_not_configured", username=login)
                raise AuthConfigurationError(
                    "No administrator exists and no initial admin username is configured"
                )
            if self._organization is None and not is_initial_admin:
                logger.warning("login_denied_bootstrap", username=login)
                raise AccessDeniedError(
                    login, "only the initial administrator may log in during setup"
                )
            role = Role.ADMIN if is_initial_admin else Role.DEVELOPER
            user = await self._create_user(github_user, role)
            return LoginResult(user=user, is_first_admin=is_initial_admin)

        if self._organization is None:
            logger.warning("login_denied_no_organization", username=login)
            raise AccessDeniedError(login, "no organization is configured")

        if not await self._is_member(login):
            logger.warning(
                "login_denied_not_member", username=login, organization=self._organization
            )
            raise AccessDeniedError(
                login, f"not a member of the {self._organization} organization"
            )

        user = await self._create_user(github_user, Role.DEVELOPER)
        return LoginResult(user=user, is_first_admin=False)

    def create_token(self, user: User) -> str:
        """Create a signed session token for a user."""
        now = datetime.now(UTC)
        expires = now + timedelta(hours=self._jwt_expire_hours)

        # JWT requires integer timestamps for exp and iat
        payload = {
            "sub": str(user.id),
            "login": user.github_username,
            "exp": int(expires.timestamp()),
            "iat": int(now.timestamp()),
        }
        return jwt.encode(payload, self._jwt_secret, algorithm=self._jwt_algorithm)

    def verify_token(self, token: str) -> TokenPayload:
        """Verify and decode a session token.

        Raises:
            AuthenticationError: If token is invalid or expired.
        """
        try:
            payload = jwt.decode(
                token,
                self._jwt_secret,
                algorithms=[self._jwt_algorithm],
            )
            return TokenPayload(
                sub=payload["sub"],
                login=payload["login"],
                exp=datetime.fromtimestamp(payload["exp"], tz=UTC),
                iat=datetime.fromtimestamp(payload["iat"], tz=UTC),
            )

        except jwt.ExpiredSignatureError as e:
            logger.warning("token_expired")
            raise AuthenticationError("Token has expired") from e

        except (jwt.InvalidTokenError, KeyError) as e:
            logger.warning("token_invalid", error=str(e))
            raise AuthenticationError("Invalid token") from e

    async def get_active_user(self, user_id: str) -> User | None:
        """Load the session user with current roles.

        Returns:
            User if it exists and is active, None otherwise.
        """
        try:
            uid = int(user_id)
        except ValueError:
            return None

        user = await self._repo.get_by_id(uid)
        if user is None or not user.is_active:
            return None
        return user

    async def get_user(self, user_id: int) -> User:
        """Get a user by id.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        user = await self._repo.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def list_active_users(self) -> list[User]:
        return await self._repo.list_all()

    async def assign_roles(self, user_id: int, roles: Iterable[Role]) -> User:
        """Replace the role set of a user.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        user = await self.get_user(user_id)
        role_set = set(roles)
        await self._repo.replace_roles(user.id, role_set)
        user.roles = role_set
        return user

    def _is_initial_admin(self, login: str) -> bool:
        return self._initial_admin is not None and login.lower() == self._initial_admin.lower()

    async def _is_member(self, login: str) -> bool:
        if self._membership_checker is None or self._organization is None:
            return False
        return await self._membership_checker.is_member_of_organization(
            login, self._organization
        )

    async def _create_user(self, github_user: GitHubUser, role: Role) -> User:
        user = await self._repo.create(
            github_id=github_user.id,
            github_username=github_user.login,
            email=github_user.email,
            name=github_user.name,
            avatar_url=github_user.avatar_url,
            roles=[role],
        )
        logger.info(
            "user_registered",
            user_id=user.id,
            username=user.github_username,
            role=role.value,
        )
        return user
