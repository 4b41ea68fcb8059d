"""Authentication and user management exceptions."""


class AuthError(Exception):
    """Base exception for authentication operations."""

    pass


class AuthenticationError(AuthError):
    """Raised when a session token is missing, invalid or expired."""

    pass


class AccessDeniedError(AuthError):
    """Raised when a GitHub user is not allowed to log in."""

    def __init__(self, username: str, reason: str) -> None:
        self.username = username
        self.reason = reason
        super().__init__(f"Access denied for {username}: {reason}")


class AuthConfigurationError(AuthError):
    """Raised when login cannot proceed because settings are incomplete."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class UserNotFoundError(AuthError):
    """Raised when a user is not found."""

    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")
