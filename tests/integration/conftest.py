"""
Fixtures for HTTP-level tests.

The full aiohttp application runs against the test database and the
in-memory chain gateway.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

from tests.helpers.fakes import FakeBlockchainService
from wallet_api.config.settings import Settings
from wallet_api.dependencies import Dependencies
from wallet_api.http_server import create_app


@pytest.fixture
def app_settings(
    test_settings: Settings,  # pylint: disable=redefined-outer-name
) -> Settings:
    """Application settings. Test modules override this fixture."""
    return test_settings


@pytest.fixture
def deps(
    app_settings: Settings,  # pylint: disable=redefined-outer-name
    fake_blockchain: FakeBlockchainService,  # pylint: disable=redefined-outer-name
    async_engine,  # pylint: disable=redefined-outer-name
) -> Dependencies:
    return Dependencies.from_settings(
        app_settings, blockchain=fake_blockchain, engine=async_engine
    )


@pytest_asyncio.fixture
async def client(
    deps: Dependencies,  # pylint: disable=redefined-outer-name
) -> AsyncGenerator[TestClient, None]:
    """Running application with startup and cleanup hooks."""
    test_client = TestClient(TestServer(create_app(deps=deps)))
    await test_client.start_server()
    yield test_client
    await test_client.close()

