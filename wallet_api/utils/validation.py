"""
Input validation utilities.

Field checks for API arguments. Failures are collected per field and
raised as a single ValidationError.
"""

import re
from decimal import Decimal, InvalidOperation

from web3 import Web3

from wallet_api.models.enums import Network
from wallet_api.utils.errors import InvalidAddressError, ValidationError

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9]{3,30}$")
PASSWORD_PATTERN = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]+$"
)
ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")
TX_HASH_PATTERN = re.compile(r"^0x[a-fA-F0-9]{64}$")
AMOUNT_PATTERN = re.compile(r"^\d+(\.\d+)?$")

PASSWORD_MIN_LENGTH = 8
# bcrypt ignores everything past 72 bytes
PASSWORD_MAX_LENGTH = 72
ETHER_DECIMALS = 18
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10


def validate_eth_address(address: str) -> bool:
    """
    Validate Ethereum address format.

    Mixed-case addresses must also carry a valid EIP-55 checksum.

    Args:
        address: Wallet address

    Returns:
        True if valid
    """
    if not address or not isinstance(address, str):
        return False

    if not ADDRESS_PATTERN.match(address):
        return False

    body = address[2:]
    if body.islower() or body.isupper():
        return True

    return Web3.is_checksum_address(address)


def normalize_eth_address(address: str) -> str:
    """
    Normalize Ethereum address to checksum format.

    Args:
        address: Wallet address

    Returns:
        Checksummed address

    Raises:
        InvalidAddressError: If address is malformed
    """
    if not validate_eth_address(address):
        raise InvalidAddressError(address)

    return Web3.to_checksum_address(address)


def validate_transaction_hash(tx_hash: str) -> bool:
    """
    Validate transaction hash.

    Args:
        tx_hash: Transaction hash

    Returns:
        True if valid
    """
    if not tx_hash or not isinstance(tx_hash, str):
        return False

    return bool(TX_HASH_PATTERN.match(tx_hash))


def _password_errors(password: str, field: str = "password") -> list[dict[str, str]]:
    errors = []
    if not password or len(password) < PASSWORD_MIN_LENGTH:
        errors.append(
            {
                "field": field,
                "message": f"Password must be at least {PASSWORD_MIN_LENGTH} characters",
            }
        )
    elif len(password.encode("utf-8")) > PASSWORD_MAX_LENGTH:
        errors.append(
            {
                "field": field,
                "message": f"Password must be at most {PASSWORD_MAX_LENGTH} bytes",
            }
        )
    elif not PASSWORD_PATTERN.match(password):
        errors.append(
            {
                "field": field,
                "message": (
                    "Password must contain at least one uppercase letter, "
                    "one lowercase letter, one number and one special "
                    "character (@$!%*?&)"
                ),
            }
        )
    return errors


def validate_registration(username: str, password: str) -> None:
    """
    Validate registration input.

    Raises:
        ValidationError: If username or password is invalid
    """
    errors = []
    if not username or not USERNAME_PATTERN.match(username):
        errors.append(
            {
                "field": "username",
                "message": "Username must be 3-30 alphanumeric characters",
            }
        )
    errors.extend(_password_errors(password))

    if errors:
        raise ValidationError(errors=errors)


def validate_login(username: str, password: str) -> None:
    """
    Validate login input.

    Raises:
        ValidationError: If a field is missing
    """
    errors = []
    if not username:
        errors.append({"field": "username", "message": "Username is required"})
    if not password:
        errors.append({"field": "password", "message": "Password is required"})

    if errors:
        raise ValidationError(errors=errors)


def validate_new_password(old_password: str, new_password: str) -> None:
    """
    Validate password change input.

    Raises:
        ValidationError: If the new password is weak or unchanged
    """
    errors = []
    if not old_password:
        errors.append(
            {"field": "oldPassword", "message": "Current password is required"}
        )
    errors.extend(_password_errors(new_password, field="newPassword"))
    if not errors and old_password == new_password:
        errors.append(
            {
                "field": "newPassword",
                "message": "New password must differ from the current one",
            }
        )

    if errors:
        raise ValidationError(errors=errors)


def validate_network(network: str | None) -> str:
    """
    Validate network name.

    Args:
        network: Network name or None for the default

    Returns:
        Normalized network name
    """
    if network is None:
        return Network.SEPOLIA.value

    value = network.strip().lower()
    if value not in {n.value for n in Network}:
        raise ValidationError(
            errors=[
                {
                    "field": "network",
                    "message": "Network must be one of: "
                    + ", ".join(n.value for n in Network),
                }
            ]
        )
    return value


def validate_wallet_id(wallet_id: int, field: str = "walletId") -> int:
    """
    Validate wallet id is a positive integer.

    Raises:
        ValidationError: If not positive
    """
    if isinstance(wallet_id, bool) or not isinstance(wallet_id, int) or wallet_id < 1:
        raise ValidationError(
            errors=[{"field": field, "message": "Must be a positive integer"}]
        )
    return wallet_id


def validate_amount(amount: str) -> str:
    """
    Validate ether amount string.

    Args:
        amount: Decimal string such as "0.01"

    Returns:
        Normalized amount string

    Raises:
        ValidationError: If not a positive decimal with at most 18
            fractional digits
    """
    value = (amount or "").strip()
    if not AMOUNT_PATTERN.match(value):
        raise ValidationError(
            errors=[
                {
                    "field": "amount",
                    "message": "Amount must be a valid positive number",
                }
            ]
        )

    try:
        parsed = Decimal(value)
    except InvalidOperation as e:
        raise ValidationError(
            errors=[{"field": "amount", "message": "Invalid amount"}]
        ) from e

    if parsed <= 0:
        raise ValidationError(
            errors=[
                {"field": "amount", "message": "Amount must be greater than 0"}
            ]
        )

    if "." in value and len(value.split(".", 1)[1]) > ETHER_DECIMALS:
        raise ValidationError(
            errors=[
                {
                    "field": "amount",
                    "message": f"Amount supports at most {ETHER_DECIMALS} decimals",
                }
            ]
        )

    return value


def validate_send_funds(
    wallet_id: int, to_address: str, amount: str
) -> tuple[int, str, str]:
    """
    Validate fund transfer input.

    Returns:
        Tuple of (wallet_id, to_address, amount)

    Raises:
        ValidationError: Bad wallet id or amount
        InvalidAddressError: Malformed recipient
    """
    wallet_id = validate_wallet_id(wallet_id)
    if not validate_eth_address(to_address):
        raise InvalidAddressError(to_address)
    return wallet_id, to_address, validate_amount(amount)


def validate_pagination(
    limit: int | None, offset: int | None
) -> tuple[int, int]:
    """
    Validate pagination arguments.

    Returns:
        Tuple of (limit, offset) with defaults applied
    """
    limit = DEFAULT_PAGE_SIZE if limit is None else limit
    offset = 0 if offset is None else offset

    errors = []
    if limit < 1 or limit > MAX_PAGE_SIZE:
        errors.append(
            {
                "field": "limit",
                "message": f"Limit must be between 1 and {MAX_PAGE_SIZE}",
            }
        )
    if offset < 0:
        errors.append(
            {"field": "offset", "message": "Offset must be 0 or greater"}
        )

    if errors:
        raise ValidationError(errors=errors)
    return limit, offset


def sanitize_input(text: str, max_length: int = 255) -> str:
    """
    Sanitize user input.

    Args:
        text: User input
        max_length: Maximum length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    text = text.strip().replace("\x00", "")
    return text[:max_length]
