"""
Authentication service.

Registration, login, credential rotation and bearer token handling.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import bcrypt
import jwt
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from wallet_api.models.user import User
from wallet_api.repositories.user_repository import UserRepository
from wallet_api.utils.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
)
from wallet_api.utils.security_logging import log_security_event
from wallet_api.utils.validation import (
    sanitize_input,
    validate_login,
    validate_new_password,
    validate_registration,
)

BCRYPT_ROUNDS = 10
JWT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenPayload:
    """Verified bearer token claims."""

    user_id: int
    username: str


class TokenService:
    """Bearer token issuing and verification (HS256 JWT)."""

    def __init__(self, secret: str, expires_hours: int = 24) -> None:
        """
        Initialize token service.

        Args:
            secret: Token signing secret
            expires_hours: Token lifetime
        """
        self._secret = secret
        self._expires_hours = expires_hours

    def generate_token(self, user: User) -> str:
        """
        Issue a signed bearer token for user.

        Args:
            user: Authenticated user

        Returns:
            Encoded JWT
        """
        now = datetime.now(UTC)
        payload = {
            "sub": str(user.id),
            "username": user.username,
            "iat": now,
            "exp": now + timedelta(hours=self._expires_hours),
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)

    def verify_token(self, token: str) -> TokenPayload:
        """
        Verify bearer token.

        Args:
            token: Encoded JWT

        Returns:
            TokenPayload

        Raises:
            AuthenticationError: Token is invalid or expired
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["sub", "exp"]},
            )
            return TokenPayload(
                user_id=int(claims["sub"]),
                username=claims.get("username", ""),
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("Token expired") from e
        except (jwt.PyJWTError, ValueError) as e:
            log_security_event("Invalid token", {"error": type(e).__name__})
            raise AuthenticationError("Invalid token") from e

    def authenticate_header(self, authorization: str | None) -> TokenPayload:
        """
        Verify an Authorization header value.

        Args:
            authorization: "Bearer <token>"

        Returns:
            TokenPayload

        Raises:
            AuthenticationError: Header missing, malformed or invalid
        """
        if not authorization:
            raise AuthenticationError("Authentication required")

        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise AuthenticationError("Invalid authorization header")

        return self.verify_token(token.strip())


class AuthService:
    """Authentication service."""

    def __init__(self, session: AsyncSession, tokens: TokenService) -> None:
        """
        Initialize auth service.

        Args:
            session: Database session
            tokens: Token service
        """
        self.session = session
        self.tokens = tokens
        self.user_repository = UserRepository(session)

    @staticmethod
    def hash_password(password: str) -> str:
        """
        Hash password using bcrypt.

        Args:
            password: Plain password

        Returns:
            Hashed password
        """
        return bcrypt.hashpw(
            password.encode(), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        ).decode()

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        """
        Verify password against hash.

        Args:
            password: Plain password
            password_hash: Stored bcrypt hash

        Returns:
            True if match
        """
        try:
            return bcrypt.checkpw(password.encode(), password_hash.encode())
        except ValueError:
            # Stored value is not a bcrypt hash, or password over 72 bytes
            return False

    async def register(self, username: str, password: str) -> tuple[User, str]:
        """
        Register new user.

        Args:
            username: Desired username
            password: Plain password

        Returns:
            Tuple of (user, token)

        Raises:
            ValidationError: Weak password or bad username
            ConflictError: Username taken
        """
        username = sanitize_input(username)
        validate_registration(username, password)

        if await self.user_repository.username_exists(username):
            raise ConflictError("Username already exists")

        user = await self.user_repository.create_user(
            username=username,
            password_hash=self.hash_password(password),
        )
        logger.info(f"User registered: id={user.id} username={user.username}")
        return user, self.tokens.generate_token(user)

    async def login(self, username: str, password: str) -> tuple[User, str]:
        """
        Authenticate user by credentials.

        Args:
            username: Username
            password: Plain password

        Returns:
            Tuple of (user, token)

        Raises:
            AuthenticationError: Unknown user or wrong password
        """
        username = sanitize_input(username)
        validate_login(username, password)

        user = await self.user_repository.get_by_username(username)
        if not user or not self.verify_password(password, user.password_hash):
            log_security_event("Login failed", {"username": username})
            raise AuthenticationError("Invalid credentials")

        logger.info(f"User logged in: id={user.id}")
        return user, self.tokens.generate_token(user)

    async def get_user_by_id(self, user_id: int) -> User:
        """
        Get user by ID.

        Raises:
            NotFoundError: User does not exist
        """
        user = await self.user_repository.get_by_id(user_id)
        if not user:
            raise NotFoundError("User")
        return user

    async def change_password(
        self, user_id: int, old_password: str, new_password: str
    ) -> User:
        """
        Rotate user password.

        Args:
            user_id: User ID
            old_password: Current password
            new_password: New password

        Returns:
            Updated user

        Raises:
            ValidationError: New password is weak
            AuthenticationError: Current password is wrong
        """
        validate_new_password(old_password, new_password)

        user = await self.get_user_by_id(user_id)
        if not self.verify_password(old_password, user.password_hash):
            log_security_event(
                "Password change rejected", {"user_id": user_id}
            )
            raise AuthenticationError("Current password is incorrect")

        updated = await self.user_repository.update_password(
            user_id, self.hash_password(new_password)
        )
        logger.info(f"Password changed: user_id={user_id}")
        return updated
