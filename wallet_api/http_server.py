"""
HTTP server.

aiohttp application serving the GraphQL endpoint plus health and info
endpoints for external monitoring.
"""

from typing import Any

from aiohttp import web
from loguru import logger
from strawberry.aiohttp.views import GraphQLView
from strawberry.http import GraphQLHTTPResponse
from strawberry.types import ExecutionResult

from wallet_api import __version__
from wallet_api.config.settings import Settings, get_settings
from wallet_api.dependencies import DEPS_KEY, Dependencies
from wallet_api.graphql.context import GraphQLContext
from wallet_api.graphql.errors import format_graphql_error
from wallet_api.graphql.schema import schema
from wallet_api.middlewares.rate_limit import rate_limit_middleware
from wallet_api.utils.health_check import check_all, get_liveness


class WalletGraphQLView(GraphQLView):
    """GraphQL view bound to application dependencies."""

    async def get_context(
        self, request: web.Request, response: web.StreamResponse
    ) -> GraphQLContext:
        return GraphQLContext(
            request=request,
            response=response,
            deps=request.app[DEPS_KEY],
        )

    async def process_result(
        self, request: web.Request, result: ExecutionResult
    ) -> GraphQLHTTPResponse:
        data: GraphQLHTTPResponse = {"data": result.data}
        if result.errors:
            is_production = request.app[DEPS_KEY].settings.is_production
            data["errors"] = [
                format_graphql_error(error, is_production)
                for error in result.errors
            ]
        if result.extensions:
            data["extensions"] = result.extensions
        return data


async def health_handler(request: web.Request) -> web.Response:
    """
    Handle /health requests.

    Liveness only: answers while the process runs, regardless of
    database or provider state.
    """
    return web.json_response(get_liveness(request.app[DEPS_KEY]))


async def readiness_handler(request: web.Request) -> web.Response:
    """
    Handle /health/ready requests.

    Returns:
        JSON response with health status:
        - 200: All systems healthy
        - 503: One or more systems degraded/unhealthy
    """
    try:
        status = await check_all(request.app[DEPS_KEY])
        http_code = 200 if status.get("status") == "healthy" else 503
        return web.json_response(status, status=http_code)

    except Exception as e:
        logger.error(f"Readiness check endpoint error: {e}")
        return web.json_response(
            {
                "status": "unhealthy",
                "error": str(e),
            },
            status=503,
        )


async def info_handler(request: web.Request) -> web.Response:
    """Handle /api requests."""
    deps = request.app[DEPS_KEY]
    info: dict[str, Any] = {
        "name": "Wallet API",
        "version": __version__,
        "network": deps.blockchain.network,
        "endpoints": {
            "graphql": "/graphql",
            "health": "/health",
            "ready": "/health/ready",
        },
    }
    return web.json_response(info)


async def _on_startup(app: web.Application) -> None:
    await app[DEPS_KEY].startup()


async def _on_cleanup(app: web.Application) -> None:
    await app[DEPS_KEY].shutdown()


def create_app(
    settings: Settings | None = None,
    deps: Dependencies | None = None,
) -> web.Application:
    """
    Create aiohttp application.

    Args:
        settings: Application settings (defaults to environment)
        deps: Prebuilt dependencies (tests pass fakes here)

    Returns:
        aiohttp Application instance
    """
    if deps is None:
        deps = Dependencies.from_settings(settings or get_settings())
    settings = deps.settings

    app = web.Application(middlewares=[rate_limit_middleware])
    app[DEPS_KEY] = deps

    view = WalletGraphQLView(
        schema=schema,
        graphql_ide=None if settings.is_production else "graphiql",
        allow_queries_via_get=not settings.is_production,
    )
    app.router.add_route("*", "/graphql", view)
    app.router.add_get("/health", health_handler)
    app.router.add_get("/health/ready", readiness_handler)
    app.router.add_get("/api", info_handler)

    app.on_startup.append(_on_startup)
    app.on_cleanup.append(_on_cleanup)

    logger.info(
        f"HTTP application created (environment={settings.environment}, "
        f"network={deps.blockchain.network})"
    )
    return app
