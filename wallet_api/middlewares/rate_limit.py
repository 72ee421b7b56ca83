"""
Rate Limit Middleware - general request quota.

Keys requests by authenticated user id, or by peer address for
anonymous callers. Health endpoints are exempt.
"""

from collections.abc import Awaitable, Callable

from aiohttp import web
from loguru import logger

from wallet_api.dependencies import DEPS_KEY
from wallet_api.graphql.context import authenticate_request, client_ip
from wallet_api.utils.errors import AuthenticationError, RateLimitError

EXEMPT_PREFIXES = ("/health",)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def rate_limit_key(request: web.Request) -> str:
    """User id from a valid bearer token, else the peer address."""
    if request.headers.get("Authorization"):
        try:
            return f"user:{authenticate_request(request).user_id}"
        except AuthenticationError:
            pass
    return f"ip:{client_ip(request)}"


def rate_limit_response(error: RateLimitError) -> web.Response:
    """429 response in GraphQL error shape."""
    return web.json_response(
        {
            "errors": [
                {
                    "message": error.message,
                    "extensions": {
                        "code": error.code,
                        "statusCode": error.status_code,
                        "retryAfter": error.retry_after,
                    },
                }
            ]
        },
        status=error.status_code,
        headers={"Retry-After": str(error.retry_after)},
    )


@web.middleware
async def rate_limit_middleware(
    request: web.Request, handler: Handler
) -> web.StreamResponse:
    """Apply the general rate limit."""
    if request.path.startswith(EXEMPT_PREFIXES):
        return await handler(request)

    key = rate_limit_key(request)
    try:
        request.app[DEPS_KEY].rate_limiters.general.hit(key)
    except RateLimitError as e:
        logger.warning(
            f"Rate limit exceeded for {key} on {request.path}, "
            f"retry after {e.retry_after}s"
        )
        return rate_limit_response(e)

    return await handler(request)
