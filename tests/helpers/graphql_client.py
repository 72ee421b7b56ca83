"""
GraphQL request helper for HTTP-level tests.
"""

from typing import Any

from aiohttp.test_utils import TestClient


async def graphql(
    client: TestClient,
    query: str,
    variables: dict[str, Any] | None = None,
    token: str | None = None,
) -> dict[str, Any]:
    """POST a GraphQL operation and return the decoded body."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    resp = await client.post(
        "/graphql",
        json={"query": query, "variables": variables or {}},
        headers=headers,
    )
    return await resp.json()


def error_code(body: dict[str, Any]) -> str | None:
    """Code of the first error in a GraphQL response, if any."""
    errors = body.get("errors") or []
    if not errors:
        return None
    return errors[0].get("extensions", {}).get("code")
