#!/usr/bin/env python3
"""Create database tables directly from models (local development)."""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from wallet_api.config.database import (  # noqa: E402
    close_db,
    create_engine,
    init_db,
)
from wallet_api.config.settings import get_settings  # noqa: E402
from wallet_api.models import Transaction, User, Wallet  # noqa: E402, F401


async def main() -> None:
    """Create all database tables."""
    print("Creating database tables...")

    engine = create_engine(get_settings())
    try:
        await init_db(engine, create_tables=True)
    finally:
        await close_db(engine)

    print("Database tables created successfully")


if __name__ == "__main__":
    asyncio.run(main())
