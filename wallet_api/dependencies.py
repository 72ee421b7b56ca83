"""
Application dependencies.

Process-scoped components built once at startup and handed to request
handlers. Tests build this with fakes instead of real collaborators.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from aiohttp import web
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from wallet_api.config.database import (
    close_db,
    create_engine,
    create_session_factory,
    init_db,
)
from wallet_api.config.settings import Settings
from wallet_api.services.auth_service import AuthService, TokenService
from wallet_api.services.blockchain import BlockchainService
from wallet_api.services.reconciliation_service import ReconciliationService
from wallet_api.services.task_registry import TaskRegistry
from wallet_api.services.wallet_service import WalletService
from wallet_api.utils.encryption import EncryptionService
from wallet_api.utils.rate_limiter import RateLimiters


@dataclass
class Dependencies:
    """Shared components of one running application."""

    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    blockchain: BlockchainService
    encryption: EncryptionService
    tokens: TokenService
    rate_limiters: RateLimiters
    tasks: TaskRegistry
    reconciler: ReconciliationService
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        blockchain: BlockchainService | None = None,
        engine: AsyncEngine | None = None,
    ) -> "Dependencies":
        """
        Build all components from settings.

        Args:
            settings: Application settings
            blockchain: Chain gateway override
            engine: Database engine override

        Returns:
            Dependencies
        """
        engine = engine or create_engine(settings)
        session_factory = create_session_factory(engine)
        blockchain = blockchain or BlockchainService.from_settings(settings)
        tasks = TaskRegistry()

        return cls(
            settings=settings,
            engine=engine,
            session_factory=session_factory,
            blockchain=blockchain,
            encryption=EncryptionService(settings.encryption_key),
            tokens=TokenService(settings.jwt_secret, settings.jwt_expires_hours),
            rate_limiters=RateLimiters.from_settings(settings),
            tasks=tasks,
            reconciler=ReconciliationService(blockchain, session_factory, tasks),
        )

    def auth_service(self, session: AsyncSession) -> AuthService:
        """Auth service bound to session."""
        return AuthService(session, self.tokens)

    def wallet_service(self, session: AsyncSession) -> WalletService:
        """Wallet service bound to session."""
        return WalletService(
            session,
            blockchain=self.blockchain,
            encryption=self.encryption,
            reconciler=self.reconciler,
        )

    @property
    def uptime_seconds(self) -> float:
        """Seconds since startup."""
        return (datetime.now(UTC) - self.started_at).total_seconds()

    async def startup(self) -> None:
        """Connect external collaborators and resume pending work."""
        await init_db(self.engine)
        await self.blockchain.connect()

        if self.settings.reconcile_pending_on_startup:
            try:
                await self.reconciler.resume_pending()
            except Exception as e:
                logger.warning(f"Failed to resume pending reconciliation: {e}")

        logger.success("Application dependencies started")

    async def shutdown(self) -> None:
        """Stop background work and release connections."""
        await self.tasks.shutdown()
        await self.blockchain.disconnect()
        await close_db(self.engine)
        logger.info("Application dependencies stopped")


DEPS_KEY = web.AppKey("deps", Dependencies)
