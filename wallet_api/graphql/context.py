"""
GraphQL request context.
"""

from dataclasses import dataclass

from aiohttp import web

from wallet_api.dependencies import DEPS_KEY, Dependencies
from wallet_api.services.auth_service import TokenPayload
from wallet_api.utils.errors import AuthenticationError

AUTH_RESULT_KEY = "auth_result"


def client_ip(request: web.Request) -> str:
    """Peer address used as the anonymous rate limit key."""
    return request.remote or "unknown"


def authenticate_request(request: web.Request) -> TokenPayload:
    """
    Verify the request's bearer token once.

    The payload, or the AuthenticationError, is kept on the request so
    the rate limit middleware and resolvers share a single verification.

    Raises:
        AuthenticationError: No valid bearer token
    """
    if AUTH_RESULT_KEY not in request:
        try:
            tokens = request.app[DEPS_KEY].tokens
            request[AUTH_RESULT_KEY] = tokens.authenticate_header(
                request.headers.get("Authorization")
            )
        except AuthenticationError as e:
            request[AUTH_RESULT_KEY] = e

    result = request[AUTH_RESULT_KEY]
    if isinstance(result, AuthenticationError):
        raise result
    return result


@dataclass
class GraphQLContext:
    """Per-request context handed to resolvers."""

    request: web.Request
    response: web.StreamResponse | None
    deps: Dependencies

    @property
    def client_ip(self) -> str:
        return client_ip(self.request)

    def require_user(self) -> TokenPayload:
        """
        Authenticated caller of this request.

        Raises:
            AuthenticationError: No valid bearer token
        """
        return authenticate_request(self.request)
