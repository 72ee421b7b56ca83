#!/usr/bin/env python3
"""
Environment Variables Validation Script

Checks that the configured environment loads and has no placeholder
or insecure values.
"""

import sys
from pathlib import Path
from urllib.parse import unquote, urlparse

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pydantic import ValidationError  # noqa: E402

from wallet_api.config.settings import Settings  # noqa: E402

INSECURE_PASSWORDS = {"changeme", "password", "admin", "root", "postgres", ""}


def validate_database_url(url: str) -> tuple[bool, str]:
    """Validate database URL."""
    if url.startswith("sqlite"):
        return True, "OK (sqlite, development only)"
    parsed = urlparse(url)
    if parsed.password is not None:
        password = unquote(parsed.password).lower()
        if password in INSECURE_PASSWORDS:
            return False, f"Password cannot be '{password}'"
    return True, "OK"


def validate_env() -> tuple[bool, list[str]]:
    """
    Validate environment variables.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    try:
        settings = Settings()
    except ValidationError as e:
        return False, [
            f"{'.'.join(str(p) for p in err['loc']) or 'settings'}: {err['msg']}"
            for err in e.errors()
        ]

    errors = []

    for attr_name, env_name in (
        ("jwt_secret", "JWT_SECRET"),
        ("encryption_key", "ENCRYPTION_KEY"),
    ):
        value = getattr(settings, attr_name)
        if "your_" in value.lower() or "placeholder" in value.lower():
            errors.append(f"{env_name} contains placeholder value")
        elif len(value) < 32:
            errors.append(f"{env_name} should be at least 32 characters")

    is_valid, msg = validate_database_url(settings.database_url)
    if not is_valid:
        errors.append(f"DATABASE_URL: {msg}")

    if not settings.rpc_url and not settings.alchemy_api_key:
        print(
            "WARNING: neither RPC_URL nor ALCHEMY_API_KEY is set, "
            "a public RPC endpoint will be used"
        )
    if not settings.etherscan_api_key:
        print(
            "WARNING: ETHERSCAN_API_KEY is not set, transaction history "
            "falls back to scanning recent blocks"
        )

    return not errors, errors


def main() -> int:
    print("Validating environment variables...")
    is_valid, errors = validate_env()

    if is_valid:
        print("All environment variables are valid")
        return 0

    print("Environment validation failed:")
    for error in errors:
        print(f"  - {error}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
