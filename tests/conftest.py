"""
Pytest configuration and shared fixtures.

Tests run against an in-memory SQLite database by default. Set
TEST_DATABASE_URL to run against PostgreSQL instead.
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from tests.helpers.fakes import (
    TEST_ENCRYPTION_KEY,
    TEST_JWT_SECRET,
    TEST_PASSWORD,
    FakeBlockchainService,
)
from wallet_api.config.database import create_session_factory
from wallet_api.config.settings import Settings
from wallet_api.models import User, Wallet
from wallet_api.models.base import Base
from wallet_api.repositories import UserRepository, WalletRepository
from wallet_api.services.auth_service import AuthService, TokenService
from wallet_api.services.reconciliation_service import ReconciliationService
from wallet_api.services.task_registry import TaskRegistry
from wallet_api.utils.encryption import EncryptionService

TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:"
)


# ==================== SETTINGS ====================


@pytest.fixture
def test_settings() -> Settings:
    """Settings for tests, independent of the local .env."""
    return Settings(
        _env_file=None,
        database_url=TEST_DATABASE_URL,
        jwt_secret=TEST_JWT_SECRET,
        encryption_key=TEST_ENCRYPTION_KEY,
        environment="test",
        rpc_url="http://localhost:8545",
        reconcile_pending_on_startup=False,
    )


# ==================== DATABASE FIXTURES ====================


@pytest_asyncio.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine with a fresh schema."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        # One shared connection keeps the in-memory database alive
        engine = create_async_engine(
            TEST_DATABASE_URL,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_async_engine(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(
    async_engine: AsyncEngine,  # pylint: disable=redefined-outer-name
) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(async_engine)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],  # pylint: disable=redefined-outer-name
) -> AsyncGenerator[AsyncSession, None]:
    """
    Create database session for tests.

    Yields:
        AsyncSession: Database session
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


# ==================== COMPONENT FIXTURES ====================


@pytest.fixture
def encryption() -> EncryptionService:
    return EncryptionService(TEST_ENCRYPTION_KEY)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(TEST_JWT_SECRET, expires_hours=1)


@pytest.fixture
def fake_blockchain() -> FakeBlockchainService:
    return FakeBlockchainService()


@pytest.fixture
def task_registry() -> TaskRegistry:
    return TaskRegistry()


@pytest.fixture
def reconciler(
    fake_blockchain: FakeBlockchainService,  # pylint: disable=redefined-outer-name
    session_factory: async_sessionmaker[AsyncSession],  # pylint: disable=redefined-outer-name
    task_registry: TaskRegistry,  # pylint: disable=redefined-outer-name
) -> ReconciliationService:
    return ReconciliationService(fake_blockchain, session_factory, task_registry)


# ==================== MODEL FIXTURES ====================


@pytest_asyncio.fixture
async def test_user(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
) -> User:
    """Create test user with TEST_PASSWORD."""
    user = await UserRepository(db_session).create_user(
        username="alice",
        password_hash=AuthService.hash_password(TEST_PASSWORD),
    )
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def other_user(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
) -> User:
    user = await UserRepository(db_session).create_user(
        username="mallory",
        password_hash=AuthService.hash_password(TEST_PASSWORD),
    )
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def test_wallet(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
    test_user: User,  # pylint: disable=redefined-outer-name
    fake_blockchain: FakeBlockchainService,  # pylint: disable=redefined-outer-name
    encryption: EncryptionService,  # pylint: disable=redefined-outer-name
) -> Wallet:
    """Create wallet with a real key pair owned by test_user."""
    generated = fake_blockchain.create_wallet()
    wallet = await WalletRepository(db_session).create_wallet(
        user_id=test_user.id,
        address=generated.address,
        encrypted_private_key=encryption.encrypt(generated.private_key),
        network="sepolia",
    )
    await db_session.commit()
    return wallet


@pytest_asyncio.fixture
async def other_wallet(
    db_session: AsyncSession,  # pylint: disable=redefined-outer-name
    other_user: User,  # pylint: disable=redefined-outer-name
    fake_blockchain: FakeBlockchainService,  # pylint: disable=redefined-outer-name
    encryption: EncryptionService,  # pylint: disable=redefined-outer-name
) -> Wallet:
    generated = fake_blockchain.create_wallet()
    wallet = await WalletRepository(db_session).create_wallet(
        user_id=other_user.id,
        address=generated.address,
        encrypted_private_key=encryption.encrypt(generated.private_key),
        network="sepolia",
    )
    await db_session.commit()
    return wallet
