"""
Wallet repository.

Data access layer for Wallet model. Reads made for a caller always
filter by the owning user id.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wallet_api.models.wallet import Wallet
from wallet_api.repositories.base import BaseRepository


class WalletRepository(BaseRepository[Wallet]):
    """Wallet repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize wallet repository."""
        super().__init__(Wallet, session)

    async def create_wallet(
        self,
        user_id: int,
        address: str,
        encrypted_private_key: str,
        network: str,
    ) -> Wallet:
        """
        Create wallet.

        Args:
            user_id: Owner ID
            address: Checksummed address
            encrypted_private_key: Opaque encryption token
            network: Network name

        Returns:
            Created wallet

        Raises:
            ConflictError: Address already stored
        """
        return await self.create(
            conflict_message="Wallet address already exists",
            user_id=user_id,
            address=address,
            encrypted_private_key=encrypted_private_key,
            network=network,
        )

    async def find_by_user_id(self, user_id: int) -> list[Wallet]:
        """
        Get all wallets of a user, newest first.

        Args:
            user_id: Owner ID

        Returns:
            List of wallets
        """
        stmt = (
            select(Wallet)
            .where(Wallet.user_id == user_id)
            .order_by(Wallet.created_at.desc(), Wallet.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_by_id_and_user_id(
        self, wallet_id: int, user_id: int
    ) -> Wallet | None:
        """
        Get wallet only if owned by the user.

        Args:
            wallet_id: Wallet ID
            user_id: Owner ID

        Returns:
            Wallet or None
        """
        return await self.get_by(id=wallet_id, user_id=user_id)

    async def find_by_address(self, address: str) -> Wallet | None:
        """Get wallet by address."""
        return await self.get_by(address=address)

    async def find_by_network(self, network: str) -> list[Wallet]:
        """Get all wallets on a network."""
        result = await self.session.execute(
            select(Wallet).where(Wallet.network == network).order_by(Wallet.id)
        )
        return list(result.scalars().all())

    async def count_by_user_id(self, user_id: int) -> int:
        """Count wallets owned by a user."""
        return await self.count(user_id=user_id)
