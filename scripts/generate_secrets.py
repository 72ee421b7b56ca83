#!/usr/bin/env python3
"""
Generate fresh secrets for JWT_SECRET and ENCRYPTION_KEY.

Usage:
    python scripts/generate_secrets.py >> .env
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from wallet_api.utils.encryption import EncryptionService  # noqa: E402


def main() -> None:
    print(f"JWT_SECRET={EncryptionService.generate_secret()}")
    print(f"ENCRYPTION_KEY={EncryptionService.generate_secret()}")
    print(
        "# Store ENCRYPTION_KEY safely: losing it makes every stored "
        "wallet key unrecoverable",
        file=sys.stderr,
    )


if __name__ == "__main__":
    main()
