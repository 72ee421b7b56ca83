"""
Security logging utility.

Provides standardized security event logging with [SECURITY] prefix.
"""

from typing import Any

from loguru import logger


def log_security_event(event_type: str, details: dict[str, Any]) -> None:
    """
    Log security event with standardized format.

    Args:
        event_type: Type of security event (e.g., "Login failed", "Rate limit exceeded")
        details: Context such as username, user_id, client ip. Never
            passwords, tokens or key material.
    """
    logger.bind(**details).warning(f"[SECURITY] {event_type}")
