"""
Encryption utilities for wallet key material.

AES-256-GCM with a per-call PBKDF2-SHA512 derived key. Token layout is
base64(salt || nonce || tag || ciphertext).
"""

import base64
import binascii
import hashlib
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from wallet_api.utils.errors import DecryptionError

SALT_LENGTH = 64
NONCE_LENGTH = 16
TAG_LENGTH = 16
KEY_LENGTH = 32
PBKDF2_ITERATIONS = 100_000

_HEADER_LENGTH = SALT_LENGTH + NONCE_LENGTH + TAG_LENGTH


class EncryptionService:
    """
    Encryption service for private keys at rest.

    Every call draws a fresh salt and nonce, so encrypting the same
    plaintext twice yields different tokens.
    """

    def __init__(self, secret: str) -> None:
        """
        Initialize encryption service.

        Args:
            secret: Process-wide key material (ENCRYPTION_KEY)
        """
        if not secret:
            raise ValueError("Encryption secret must not be empty")
        self._secret = secret.encode("utf-8")

    def _derive_key(self, salt: bytes) -> bytes:
        return hashlib.pbkdf2_hmac(
            "sha512",
            self._secret,
            salt,
            PBKDF2_ITERATIONS,
            dklen=KEY_LENGTH,
        )

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt plaintext.

        Args:
            plaintext: Text to encrypt

        Returns:
            Opaque base64 token
        """
        salt = secrets.token_bytes(SALT_LENGTH)
        nonce = secrets.token_bytes(NONCE_LENGTH)

        sealed = AESGCM(self._derive_key(salt)).encrypt(
            nonce, plaintext.encode("utf-8"), None
        )
        # AESGCM appends the tag to the ciphertext
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]

        return base64.b64encode(salt + nonce + tag + ciphertext).decode("ascii")

    def decrypt(self, token: str) -> str:
        """
        Decrypt token produced by encrypt().

        Args:
            token: Opaque base64 token

        Returns:
            Decrypted plaintext

        Raises:
            DecryptionError: Token is malformed, tampered with, or was
                produced under a different secret
        """
        try:
            data = base64.b64decode(token.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError, AttributeError) as e:
            raise DecryptionError("Malformed encrypted token") from e

        if len(data) < _HEADER_LENGTH:
            raise DecryptionError("Encrypted token is truncated")

        salt = data[:SALT_LENGTH]
        nonce = data[SALT_LENGTH:SALT_LENGTH + NONCE_LENGTH]
        tag = data[SALT_LENGTH + NONCE_LENGTH:_HEADER_LENGTH]
        ciphertext = data[_HEADER_LENGTH:]

        try:
            plaintext = AESGCM(self._derive_key(salt)).decrypt(
                nonce, ciphertext + tag, None
            )
            return plaintext.decode("utf-8")
        except (InvalidTag, UnicodeDecodeError) as e:
            raise DecryptionError() from e

    @staticmethod
    def generate_secret() -> str:
        """
        Generate new random key material.

        Returns:
            URL-safe secret string
        """
        return secrets.token_urlsafe(48)
