"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from functools import lru_cache

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_NETWORKS = ("mainnet", "sepolia", "goerli", "holesky")

# Public fallback endpoints, used only when no provider key is configured
PUBLIC_RPC_URLS = {
    "mainnet": "https://ethereum-rpc.publicnode.com",
    "sepolia": "https://ethereum-sepolia-rpc.publicnode.com",
    "goerli": "https://ethereum-goerli-rpc.publicnode.com",
    "holesky": "https://ethereum-holesky-rpc.publicnode.com",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False
    database_pool_size: int = Field(default=5, ge=1)
    database_max_overflow: int = Field(default=10, ge=0)
    database_pool_timeout: int = Field(
        default=30, ge=1, description="Max seconds to wait for a connection"
    )

    # Security
    jwt_secret: str
    jwt_expires_hours: int = Field(default=24, gt=0)
    encryption_key: str

    # Blockchain
    ethereum_network: str = "sepolia"
    rpc_url: str | None = None
    alchemy_api_key: str | None = None
    etherscan_api_key: str | None = None
    explorer_api_url: str = "https://api.etherscan.io/v2/api"
    history_scan_blocks: int = Field(
        default=1000, ge=1, description="Blocks scanned when explorer is down"
    )
    confirmation_timeout: int = Field(
        default=120, gt=0, description="Seconds to wait for a receipt"
    )
    reconcile_pending_on_startup: bool = True

    # Rate limiting
    rate_limit_max_requests: int = Field(default=100, gt=0)
    rate_limit_window_seconds: int = Field(default=900, gt=0)
    auth_rate_limit_max_attempts: int = Field(default=5, gt=0)
    auth_rate_limit_window_seconds: int = Field(default=900, gt=0)
    transfer_rate_limit_max: int = Field(default=10, gt=0)
    transfer_rate_limit_window_seconds: int = Field(default=3600, gt=0)

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = Field(default=10000, ge=1, le=65535)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Normalize PostgreSQL URLs to the asyncpg driver."""
        if v.startswith("postgres://"):
            v = "postgresql://" + v[len("postgres://"):]
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v.startswith(("postgresql+asyncpg://", "sqlite+aiosqlite://")):
            return v
        raise ValueError(
            "DATABASE_URL must be a postgresql:// or "
            "postgresql+asyncpg:// URL"
        )

    @field_validator("jwt_secret", "encryption_key")
    @classmethod
    def validate_secret_present(cls, v: str) -> str:
        """Reject blank secrets."""
        if not v or not v.strip():
            raise ValueError("secret must not be empty")
        return v

    @field_validator("ethereum_network")
    @classmethod
    def validate_network(cls, v: str) -> str:
        """Validate configured network name."""
        v = v.lower()
        if v not in SUPPORTED_NETWORKS:
            raise ValueError(
                f"ETHEREUM_NETWORK must be one of {', '.join(SUPPORTED_NETWORKS)}"
            )
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment name."""
        v = v.lower()
        if v not in ("production", "development", "test"):
            raise ValueError(
                "ENVIRONMENT must be production, development or test"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        v = v.upper()
        if v not in ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid LOG_LEVEL: {v}")
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate critical settings in production."""
        if not self.is_production:
            return self

        if len(self.jwt_secret) < 32:
            raise ValueError(
                "JWT_SECRET must be at least 32 characters in production"
            )
        if len(self.encryption_key) < 32:
            raise ValueError(
                "ENCRYPTION_KEY must be at least 32 characters in production"
            )
        if self.debug:
            raise ValueError("DEBUG must be disabled in production")
        if not self.rpc_url and not self.alchemy_api_key:
            raise ValueError(
                "RPC_URL or ALCHEMY_API_KEY is required in production"
            )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def provider_url(self) -> str:
        """Resolve the JSON-RPC endpoint for the configured network."""
        if self.rpc_url:
            return self.rpc_url
        if self.alchemy_api_key:
            return (
                f"https://eth-{self.ethereum_network}.g.alchemy.com/v2/"
                f"{self.alchemy_api_key}"
            )
        logger.warning(
            f"No RPC_URL or ALCHEMY_API_KEY set, using public "
            f"{self.ethereum_network} endpoint"
        )
        return PUBLIC_RPC_URLS[self.ethereum_network]


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
