"""
Unit tests for UserRepository and WalletRepository.
"""

import pytest

from wallet_api.repositories import UserRepository, WalletRepository
from wallet_api.utils.errors import ConflictError


class TestUserRepository:

    @pytest.mark.asyncio
    async def test_get_by_username(
        self,
        db_session,  # pylint: disable=redefined-outer-name
        test_user,  # pylint: disable=redefined-outer-name
    ):
        repo = UserRepository(db_session)

        user = await repo.get_by_username("alice")

        assert user is not None
        assert user.id == test_user.id
        assert await repo.username_exists("alice")
        assert not await repo.username_exists("bob")
        assert await repo.count() == 1

    @pytest.mark.asyncio
    async def test_duplicate_username_conflicts(
        self,
        db_session,  # pylint: disable=redefined-outer-name
        test_user,  # pylint: disable=redefined-outer-name
    ):
        repo = UserRepository(db_session)

        with pytest.raises(ConflictError):
            await repo.create_user(username="alice", password_hash="x")

    @pytest.mark.asyncio
    async def test_update_password(
        self,
        db_session,  # pylint: disable=redefined-outer-name
        test_user,  # pylint: disable=redefined-outer-name
    ):
        repo = UserRepository(db_session)

        updated = await repo.update_password(test_user.id, "new-hash")

        assert updated.password_hash == "new-hash"


class TestWalletRepository:

    @pytest.mark.asyncio
    async def test_find_by_id_and_user_id_scopes_to_owner(
        self,
        db_session,  # pylint: disable=redefined-outer-name
        test_wallet,  # pylint: disable=redefined-outer-name
        other_user,  # pylint: disable=redefined-outer-name
    ):
        repo = WalletRepository(db_session)

        own = await repo.find_by_id_and_user_id(test_wallet.id, test_wallet.user_id)
        foreign = await repo.find_by_id_and_user_id(test_wallet.id, other_user.id)

        assert own is not None
        assert foreign is None

    @pytest.mark.asyncio
    async def test_find_by_user_id_newest_first(
        self,
        db_session,  # pylint: disable=redefined-outer-name
        test_user,  # pylint: disable=redefined-outer-name
    ):
        repo = WalletRepository(db_session)
        first = await repo.create_wallet(
            user_id=test_user.id,
            address="0x" + "1" * 40,
            encrypted_private_key="token-1",
            network="sepolia",
        )
        second = await repo.create_wallet(
            user_id=test_user.id,
            address="0x" + "2" * 40,
            encrypted_private_key="token-2",
            network="mainnet",
        )

        wallets = await repo.find_by_user_id(test_user.id)

        assert [w.id for w in wallets] == [second.id, first.id]
        assert await repo.count_by_user_id(test_user.id) == 2

    @pytest.mark.asyncio
    async def test_duplicate_address_conflicts(
        self,
        db_session,  # pylint: disable=redefined-outer-name
        test_wallet,  # pylint: disable=redefined-outer-name
    ):
        repo = WalletRepository(db_session)

        with pytest.raises(ConflictError):
            await repo.create_wallet(
                user_id=test_wallet.user_id,
                address=test_wallet.address,
                encrypted_private_key="token",
                network="sepolia",
            )

    @pytest.mark.asyncio
    async def test_find_by_address(
        self,
        db_session,  # pylint: disable=redefined-outer-name
        test_wallet,  # pylint: disable=redefined-outer-name
    ):
        repo = WalletRepository(db_session)

        wallet = await repo.find_by_address(test_wallet.address)

        assert wallet is not None
        assert wallet.id == test_wallet.id

    @pytest.mark.asyncio
    async def test_find_by_network(
        self,
        db_session,  # pylint: disable=redefined-outer-name
        test_wallet,  # pylint: disable=redefined-outer-name
        other_wallet,  # pylint: disable=redefined-outer-name
    ):
        repo = WalletRepository(db_session)

        sepolia = await repo.find_by_network("sepolia")

        assert [w.id for w in sepolia] == [test_wallet.id, other_wallet.id]
        assert await repo.find_by_network("mainnet") == []
