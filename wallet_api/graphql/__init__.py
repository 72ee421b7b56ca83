"""
GraphQL API.
"""

from wallet_api.graphql.context import GraphQLContext
from wallet_api.graphql.errors import WalletSchema, format_graphql_error
from wallet_api.graphql.schema import schema

__all__ = [
    "GraphQLContext",
    "WalletSchema",
    "format_graphql_error",
    "schema",
]
