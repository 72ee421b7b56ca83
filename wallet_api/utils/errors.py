"""
Application errors.

Tagged error classes raised at the persistence and chain boundaries.
Each carries a stable machine-readable code and an HTTP-equivalent
status, so callers branch on the class, never on the message.
"""

from typing import Any


class AppError(Exception):
    """Base class for all classified application errors."""

    code = "INTERNAL_SERVER_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize for error responses."""
        data: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "statusCode": self.status_code,
        }
        if self.details:
            data["details"] = self.details
        return data


class ValidationError(AppError):
    """Malformed caller input."""

    code = "BAD_USER_INPUT"
    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        errors: list[dict[str, str]] | None = None,
    ) -> None:
        super().__init__(message, {"errors": errors} if errors else None)
        self.errors = errors or []


class AuthenticationError(AppError):
    """Missing or invalid credentials."""

    code = "UNAUTHENTICATED"
    status_code = 401

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class NotFoundError(AppError):
    """Resource is absent or not owned by the caller."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str = "Resource") -> None:
        super().__init__(f"{resource} not found")
        self.resource = resource


class ConflictError(AppError):
    """Duplicate unique key."""

    code = "CONFLICT"
    status_code = 409


class InsufficientFundsError(AppError):
    """Sender balance does not cover the requested amount."""

    code = "INSUFFICIENT_FUNDS"
    status_code = 400

    def __init__(self, required: str, available: str) -> None:
        super().__init__(
            f"Insufficient funds: required {required} ETH, "
            f"available {available} ETH",
            {"required": required, "available": available},
        )
        self.required = required
        self.available = available


class InvalidAddressError(AppError):
    """Malformed Ethereum address."""

    code = "INVALID_ADDRESS"
    status_code = 400

    def __init__(self, address: str) -> None:
        super().__init__(
            f"Invalid Ethereum address: {address}", {"address": address}
        )
        self.address = address


class ChainQueryError(AppError):
    """Node provider or explorer failure."""

    code = "CHAIN_QUERY_ERROR"
    status_code = 502


class ConfirmationTimeoutError(ChainQueryError):
    """Receipt not observed within the confirmation timeout."""

    code = "CONFIRMATION_TIMEOUT"
    status_code = 504

    def __init__(self, tx_hash: str, timeout: float) -> None:
        super().__init__(
            f"Transaction {tx_hash} not confirmed within {timeout}s",
            {"hash": tx_hash, "timeout": timeout},
        )
        self.tx_hash = tx_hash
        self.timeout = timeout


class DecryptionError(AppError):
    """Stored key material could not be decrypted."""

    code = "DECRYPTION_ERROR"
    status_code = 500

    def __init__(self, message: str = "Failed to decrypt data") -> None:
        super().__init__(message)


class RateLimitError(AppError):
    """Caller exceeded a rate limit."""

    code = "TOO_MANY_REQUESTS"
    status_code = 429

    def __init__(
        self,
        retry_after: int,
        message: str = "Too many requests, please try again later",
    ) -> None:
        super().__init__(message)
        self.retry_after = retry_after

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["retryAfter"] = self.retry_after
        return data


class InternalError(AppError):
    """Unclassified failure."""

    code = "INTERNAL_SERVER_ERROR"
    status_code = 500
