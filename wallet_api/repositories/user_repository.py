"""
User repository.

Data access layer for User model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from wallet_api.models.user import User
from wallet_api.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def create_user(self, username: str, password_hash: str) -> User:
        """
        Create user.

        Args:
            username: Unique handle
            password_hash: bcrypt hash

        Returns:
            Created user

        Raises:
            ConflictError: Username already taken
        """
        return await self.create(
            conflict_message="Username already exists",
            username=username,
            password_hash=password_hash,
        )

    async def get_by_username(self, username: str) -> User | None:
        """
        Get user by username.

        Args:
            username: Username

        Returns:
            User or None
        """
        return await self.get_by(username=username)

    async def username_exists(self, username: str) -> bool:
        """Check if username is taken."""
        return await self.exists(username=username)

    async def update_password(
        self, user_id: int, password_hash: str
    ) -> User | None:
        """
        Replace the stored password hash.

        Args:
            user_id: User ID
            password_hash: New bcrypt hash

        Returns:
            Updated user or None if not found
        """
        return await self.update(user_id, password_hash=password_hash)
