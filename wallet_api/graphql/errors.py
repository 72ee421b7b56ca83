"""
GraphQL error formatting.

Classified errors keep their message and get code/status extensions.
Unclassified errors are masked in production.
"""

from typing import Any

from graphql import GraphQLError
from loguru import logger
from strawberry import Schema
from strawberry.types import ExecutionContext

from wallet_api.utils.errors import AppError, RateLimitError

INTERNAL_ERROR_MESSAGE = "An internal error occurred"
GRAPHQL_VALIDATION_FAILED = "GRAPHQL_VALIDATION_FAILED"


def format_graphql_error(
    error: GraphQLError, is_production: bool
) -> dict[str, Any]:
    """
    Convert a GraphQL error to its response form.

    Args:
        error: Error collected during execution
        is_production: Mask unclassified messages

    Returns:
        Error dict with message, locations, path and extensions
    """
    formatted: dict[str, Any] = dict(error.formatted)
    extensions: dict[str, Any] = dict(formatted.get("extensions") or {})
    original = error.original_error

    if isinstance(original, AppError):
        formatted["message"] = original.message
        extensions["code"] = original.code
        extensions["statusCode"] = original.status_code
        if original.details:
            extensions["details"] = original.details
        if isinstance(original, RateLimitError):
            extensions["retryAfter"] = original.retry_after
    elif original is None:
        # Syntax and validation errors raised by graphql-core itself
        extensions.setdefault("code", GRAPHQL_VALIDATION_FAILED)
    else:
        if is_production:
            formatted["message"] = INTERNAL_ERROR_MESSAGE
        extensions["code"] = "INTERNAL_SERVER_ERROR"
        extensions["statusCode"] = 500

    formatted["extensions"] = extensions
    return formatted


class WalletSchema(Schema):
    """Schema that logs execution errors through loguru."""

    def process_errors(
        self,
        errors: list[GraphQLError],
        execution_context: ExecutionContext | None = None,
    ) -> None:
        for error in errors:
            original = error.original_error
            path = ".".join(str(p) for p in error.path or [])

            if isinstance(original, AppError):
                if original.status_code >= 500:
                    logger.error(
                        f"GraphQL {path or 'operation'} failed: "
                        f"{original.code} {original.message}"
                    )
                else:
                    logger.info(
                        f"GraphQL {path or 'operation'} rejected: "
                        f"{original.code} {original.message}"
                    )
            elif original is None:
                logger.info(f"GraphQL validation error: {error.message}")
            else:
                logger.opt(exception=original).error(
                    f"Unhandled error in GraphQL {path or 'operation'}: "
                    f"{original}"
                )
