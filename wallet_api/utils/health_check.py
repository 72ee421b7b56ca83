"""
Health check utilities.

Liveness and readiness reports for the HTTP endpoints.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from loguru import logger

from wallet_api.config.database import check_db

if TYPE_CHECKING:
    from wallet_api.dependencies import Dependencies


def get_liveness(deps: "Dependencies") -> dict[str, Any]:
    """
    Process liveness, independent of external services.

    Returns:
        Dict with status, timestamp, uptime and environment
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime": round(deps.uptime_seconds, 3),
        "environment": deps.settings.environment,
        "port": deps.settings.port,
    }


async def check_database(deps: "Dependencies") -> dict[str, Any]:
    """
    Check database connectivity.

    Returns:
        Dict with status and details
    """
    if await check_db(deps.engine):
        return {
            "status": "healthy",
            "message": "Database connection successful",
        }
    return {
        "status": "unhealthy",
        "message": "Database connection failed",
    }


async def check_blockchain(deps: "Dependencies") -> dict[str, Any]:
    """
    Check blockchain provider connectivity.

    Returns:
        Dict with status and details
    """
    try:
        health = await deps.blockchain.health_check()
    except Exception as e:
        logger.error(f"Blockchain health check failed: {e}")
        return {
            "status": "unhealthy",
            "message": f"Blockchain connection failed: {e}",
        }

    if not health.get("healthy"):
        return {
            "status": "unhealthy",
            "message": health.get("error", "Provider unhealthy"),
            "network": health.get("network"),
        }
    return {
        "status": "healthy",
        "message": (
            f"Blockchain connection successful "
            f"(Chain ID: {health.get('chain_id')})"
        ),
        "network": health.get("network"),
        "current_block": health.get("current_block"),
    }


async def check_all(deps: "Dependencies") -> dict[str, Any]:
    """
    Perform all readiness checks.

    Returns:
        Dict with overall status and individual check results
    """
    results = {
        "database": await check_database(deps),
        "blockchain": await check_blockchain(deps),
    }

    all_healthy = all(
        check.get("status") == "healthy" for check in results.values()
    )

    return {
        "status": "healthy" if all_healthy else "degraded",
        "checks": results,
        "background_tasks": deps.tasks.pending,
    }
